"""Redis key construction and value (de)serialization.

Key names are shared with existing deployments and must stay bit-exact:
- article:top5            ranked snapshot, top articles by likes
- article:latest          ranked snapshot, newest articles
- article:likes:<id>      per-article like counter
- <prefix><session_id>    session record (default prefix "sf_s")

Filesystem session files live at <save_path>/sess_<session_id>.
"""

import json
from pathlib import Path

# TTL constants (in seconds)
TTL_RANKED_SNAPSHOT = 3600  # 1 hour

# Key names
KEY_TOP5 = "article:top5"
KEY_LATEST = "article:latest"
PREFIX_LIKES = "article:likes:"
DEFAULT_SESSION_PREFIX = "sf_s"
SESSION_FILE_PREFIX = "sess_"


def likes_key(article_id: int) -> str:
    """Build the like counter key for an article.

    Example:
        >>> likes_key(42)
        'article:likes:42'
    """
    return f"{PREFIX_LIKES}{int(article_id)}"


def likes_pattern() -> str:
    """Glob pattern matching every like counter key."""
    return f"{PREFIX_LIKES}*"


def parse_likes_key(key: str | bytes) -> int | None:
    """Recover the article id from a like counter key.

    Returns:
        Article id, or None if the key is not a well-formed counter key.
    """
    if isinstance(key, bytes):
        key = key.decode("utf-8", errors="replace")
    if not key.startswith(PREFIX_LIKES):
        return None
    suffix = key[len(PREFIX_LIKES):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def encode_ids(ids: list[int]) -> str:
    """Encode an ordered list of article ids as a compact JSON array."""
    return json.dumps([int(i) for i in ids], separators=(",", ":"))


def decode_ids(payload: str | bytes | None) -> list[int] | None:
    """Decode a cached ranked snapshot.

    Accepts a JSON array of integers or decimal strings (e.g. '["3","1"]').

    Returns:
        Ordered ids, or None when the payload is missing or malformed.
    """
    if payload is None:
        return None
    try:
        parsed = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
        return None
    if not isinstance(parsed, list):
        return None

    ids: list[int] = []
    for item in parsed:
        # bool is an int subclass; never a valid id
        if isinstance(item, bool):
            return None
        if isinstance(item, int):
            ids.append(item)
        elif isinstance(item, str) and item.isdigit():
            ids.append(int(item))
        else:
            return None
    return ids


def session_key(prefix: str, session_id: str) -> str:
    """Build the Redis key for a session record."""
    return f"{prefix}{session_id}"


def session_path(save_path: str | Path, session_id: str) -> Path:
    """Build the filesystem path for a session record."""
    return Path(save_path) / f"{SESSION_FILE_PREFIX}{session_id}"
