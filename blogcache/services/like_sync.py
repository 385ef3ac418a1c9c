"""Like sync: drain Redis like counters back into the database.

Flow:
1. KEYS article:likes:*
2. For each counter: read it, overwrite Article.likes, delete the key
3. One commit at the end (only if something changed)

Counters whose article no longer exists are dropped (orphans, never
recreated). A counter that cannot be read is left for the next run.

This is a maintenance job: it needs the database, and returns 0 without
touching anything if Redis is unreachable.
"""

import logging
from dataclasses import dataclass

from blogcache.stores.keys import likes_pattern, parse_likes_key
from blogcache.stores.redis import ConnectionGate
from blogcache.stores.repository import ArticleRepository

logger = logging.getLogger("uvicorn.error")


@dataclass
class LikeSyncStats:
    scanned: int = 0
    synced: int = 0
    orphans: int = 0
    malformed: int = 0
    unreadable: int = 0


class LikeSyncReconciler:
    """Writes Redis like counters back to articles and clears them."""

    def __init__(self, gate: ConnectionGate) -> None:
        self._gate = gate

    async def sync(self, repo: ArticleRepository) -> int:
        """Sync all counters.

        Returns:
            Number of articles updated in the database.
        """
        stats = await self.sync_with_stats(repo)
        return stats.synced

    async def sync_with_stats(self, repo: ArticleRepository) -> LikeSyncStats:
        stats = LikeSyncStats()

        listed = await self._gate.execute("like sync keys", lambda r: r.keys(likes_pattern()))
        if not listed.ok:
            return stats

        for key in listed.value or []:
            stats.scanned += 1
            article_id = parse_likes_key(key)

            value = await self._gate.execute("like sync get", lambda r: r.get(key))
            if not value.ok:
                stats.unreadable += 1
                continue
            if value.value is None:
                # Deleted since KEYS (e.g. article removed meanwhile)
                continue

            likes = _parse_count(value.value)
            if article_id is None or likes is None:
                logger.warning(f"Dropping malformed like counter {key!r}={value.value!r}")
                stats.malformed += 1
            else:
                article = await repo.find_by_id(article_id)
                if article is not None:
                    article.likes = likes
                    stats.synced += 1
                else:
                    logger.info(f"Dropping orphan like counter for missing article {article_id}")
                    stats.orphans += 1

            # Failure here is fine: the next run picks the key up again.
            await self._gate.execute("like sync delete", lambda r: r.delete(key))

        if stats.synced > 0:
            await repo.commit()

        logger.info(
            f"Like sync done: scanned={stats.scanned} synced={stats.synced} "
            f"orphans={stats.orphans} malformed={stats.malformed} unreadable={stats.unreadable}"
        )
        return stats


def _parse_count(value: str | bytes | None) -> int | None:
    if value is None:
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    return count if count >= 0 else None
