"""Session storage with Redis as the primary backend and files as fallback.

Per session id, a record lives in one of three states:
- absent
- on Redis (steady state, expires via TTL)
- on disk at <save_path>/sess_<id> (only while Redis was unreachable)

Transitions:
- write   -> Redis when healthy (stale file removed), else disk
- read    -> served from Redis; a disk record found while Redis is healthy
             is promoted to Redis and the file removed (migration)
- destroy -> removed from both, always succeeds
- gc      -> sweeps old files; Redis records expire on their own

Session ids are opaque on the Redis side. Only ids that are safe file names
ever reach the disk; other ids simply have no disk copy.

Redis failures are logged and turn into the disk path. Filesystem errors
propagate since there is nothing left to fall back to.

The store is meant to sit behind the host application's server-side session
middleware, which calls read/write/destroy/validate/touch per request. This
package itself only wires `build_session_store` into `scripts/session_gc.py`.
"""

import logging
import re
import time
from pathlib import Path

from blogcache.settings import Settings, get_settings
from blogcache.stores.keys import (
    DEFAULT_SESSION_PREFIX,
    SESSION_FILE_PREFIX,
    session_key,
    session_path,
)
from blogcache.stores.redis import ConnectionGate

logger = logging.getLogger("uvicorn.error")

# Ids that map to a single file name under the save directory
_SAFE_FILE_ID_RE = re.compile(r"^[A-Za-z0-9,._-]{1,256}$")

DEFAULT_SESSION_TTL = 1440  # 24 minutes


class InvalidSessionIdError(ValueError):
    """Session id cannot be stored: Redis is unavailable and the id is not a safe file name."""


def _short(session_id: str) -> str:
    return f"{session_id[:8]}..."


class SessionStore:
    """Dual-backend session blob storage.

    Args:
        gate: Connection gate for Redis. Should return bytes (decode_responses=False).
        save_path: Directory for fallback session files. Created if missing.
        prefix: Redis key prefix.
        ttl: Redis TTL in seconds for session records.
    """

    def __init__(
        self,
        gate: ConnectionGate,
        save_path: str | Path,
        *,
        prefix: str = DEFAULT_SESSION_PREFIX,
        ttl: int = DEFAULT_SESSION_TTL,
    ) -> None:
        self._gate = gate
        self._save_path = Path(save_path)
        self._prefix = prefix
        self._ttl = ttl
        self._save_path.mkdir(parents=True, exist_ok=True)

    @property
    def save_path(self) -> Path:
        return self._save_path

    def _key(self, session_id: str) -> str:
        return session_key(self._prefix, session_id)

    def _path(self, session_id: str) -> Path | None:
        """Fallback file for this id, or None if the id is not a safe file name."""
        if not _SAFE_FILE_ID_RE.match(session_id):
            return None
        return session_path(self._save_path, session_id)

    @staticmethod
    def _read_file(path: Path | None) -> bytes:
        if path is None or not path.is_file():
            return b""
        return path.read_bytes()

    async def read(self, session_id: str) -> bytes:
        """Read a session blob.

        Returns:
            The stored blob, or b"" if the session does not exist.
        """
        key = self._key(session_id)
        path = self._path(session_id)

        cached = await self._gate.execute("session read", lambda r: r.get(key))
        if not cached.ok:
            return self._read_file(path)

        if cached.value:
            return _as_bytes(cached.value)

        data = self._read_file(path)
        if not data:
            return b""

        promoted = await self._gate.execute("session migrate", lambda r: r.setex(key, self._ttl, data))
        if promoted.ok:
            path.unlink(missing_ok=True)
            logger.info(f"Session migrated from filesystem to Redis ({_short(session_id)})")
        return data

    async def write(self, session_id: str, data: bytes) -> bool:
        """Store a session blob in Redis, or on disk if Redis is unavailable.

        Raises:
            InvalidSessionIdError: Redis is unavailable and the id cannot be
                used as a file name.
        """
        key = self._key(session_id)
        path = self._path(session_id)

        stored = await self._gate.execute("session write", lambda r: r.setex(key, self._ttl, data))
        if stored.ok:
            if path is not None:
                path.unlink(missing_ok=True)
            return True

        if path is None:
            raise InvalidSessionIdError(
                f"Redis unavailable and session id {_short(session_id)!r} is not a valid file name"
            )
        logger.warning(f"Redis unavailable on session write, falling back to filesystem ({_short(session_id)})")
        path.write_bytes(data)
        return True

    async def destroy(self, session_id: str) -> bool:
        """Remove a session from both backends. Missing sessions are not an error."""
        key = self._key(session_id)
        path = self._path(session_id)

        await self._gate.execute("session destroy", lambda r: r.delete(key))
        if path is not None:
            path.unlink(missing_ok=True)
        return True

    def gc(self, max_age: int) -> int:
        """Delete session files not modified within `max_age` seconds.

        Returns:
            Number of files deleted.
        """
        expiry = time.time() - max_age
        count = 0
        for file in self._save_path.glob(f"{SESSION_FILE_PREFIX}*"):
            if file.is_file() and file.stat().st_mtime < expiry:
                file.unlink(missing_ok=True)
                count += 1
        if count:
            logger.info(f"Session GC removed {count} file(s) from {self._save_path}")
        return count

    async def validate(self, session_id: str) -> bool:
        """True if either backend holds a non-empty record for this id."""
        key = self._key(session_id)
        path = self._path(session_id)

        cached = await self._gate.execute("session validate", lambda r: r.get(key))
        if cached.ok and cached.value:
            return True
        return path is not None and path.is_file() and path.stat().st_size > 0

    async def touch(self, session_id: str, data: bytes) -> bool:
        """Extend a session's lifetime without rewriting it.

        `data` is accepted for handler-interface compatibility and ignored.

        Returns:
            True if a record was found and refreshed on either backend.
        """
        key = self._key(session_id)
        path = self._path(session_id)

        refreshed = await self._gate.execute("session touch", lambda r: r.expire(key, self._ttl))
        if refreshed.ok and refreshed.value:
            return True

        if path is not None and path.is_file():
            path.touch()
            return True
        return False


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def build_session_store(settings: Settings | None = None) -> SessionStore:
    """Session store wired from settings, with its own Redis gate."""
    settings = settings or get_settings()
    gate = ConnectionGate(
        settings.redis_url,
        name="sessions",
        connect_timeout=settings.redis_connect_timeout,
        decode_responses=False,
    )
    return SessionStore(
        gate,
        settings.session_save_path,
        prefix=settings.session_prefix,
        ttl=settings.session_ttl,
    )
