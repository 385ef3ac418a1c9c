"""Article cache: like counters and ranked snapshots in Redis.

Cache-aside flow for rankings:
1. Read snapshot ids from Redis (article:top5 / article:latest)
2. Resolve ids via the repository and restore the ranking order
3. On miss, malformed payload, empty resolution or Redis down:
   query the ranking from the database and re-cache the ids (TTL)

Like counters:
- init_likes seeds article:likes:<id> from the durable count, never overwriting
- increment_like uses Redis INCR and drops article:top5
- the durable copy stays stale until the like sync job runs

Redis failures never reach the caller. Every public method returns its
documented "unavailable" value (None or no-op) instead. Database errors
from the repository propagate.

Known weak spot: INCR and the top5 delete are two separate calls, so a
concurrent get_top_articles can re-cache a ranking that misses the newest
like. The window is bounded by the snapshot TTL.
"""

import logging
from collections.abc import Callable
from typing import Any

from blogcache.models import Article
from blogcache.stores.keys import (
    KEY_LATEST,
    KEY_TOP5,
    TTL_RANKED_SNAPSHOT,
    decode_ids,
    encode_ids,
    likes_key,
)
from blogcache.stores.redis import CacheResult, ConnectionGate
from blogcache.stores.repository import ArticleRepository

logger = logging.getLogger("uvicorn.error")

DEFAULT_TOP_LIMIT = 5
DEFAULT_LATEST_LIMIT = 3


class ArticleCache:
    """Redis-backed cache for article likes and rankings."""

    def __init__(
        self,
        gate: ConnectionGate,
        *,
        ttl: int = TTL_RANKED_SNAPSHOT,
        top_limit: int = DEFAULT_TOP_LIMIT,
        latest_limit: int = DEFAULT_LATEST_LIMIT,
    ) -> None:
        self._gate = gate
        self._ttl = ttl
        self._top_limit = top_limit
        self._latest_limit = latest_limit

    @property
    def gate(self) -> ConnectionGate:
        return self._gate

    # ============================================================
    # Like counters
    # ============================================================

    async def init_likes(self, article_id: int, current_likes: int) -> None:
        """Seed the Redis counter from the durable count if it does not exist yet.

        Uses SET NX so an existing counter (possibly ahead of the database)
        is never overwritten.
        """
        key = likes_key(article_id)
        await self._gate.execute("init_likes", lambda r: r.set(key, int(current_likes), nx=True))

    async def increment_like(self, article_id: int) -> int | None:
        """Atomically increment the Redis counter and invalidate top5.

        Returns:
            New count, or None if Redis is unavailable. The caller must then
            increment the durable copy itself.
        """
        key = likes_key(article_id)

        async def _incr(r: Any) -> int:
            new_count = await r.incr(key)
            await r.delete(KEY_TOP5)
            return int(new_count)

        result = await self._gate.execute("increment_like", _incr)
        return result.value if result.ok else None

    async def get_likes(self, article_id: int) -> int | None:
        """Read the Redis counter.

        Returns:
            Count, or None if not cached (not the same as zero) or Redis is down.
        """
        result = await self._gate.execute("get_likes", lambda r: r.get(likes_key(article_id)))
        if not result.ok or result.value is None:
            return None
        try:
            return int(result.value)
        except (TypeError, ValueError):
            logger.warning(f"Malformed like counter for article {article_id}: {result.value!r}")
            return None

    # ============================================================
    # Ranked snapshots
    # ============================================================

    async def get_top_articles(self, repo: ArticleRepository) -> list[Article]:
        """Top articles by likes, served from the top5 snapshot when possible."""
        return await self._get_ranked(
            repo,
            key=KEY_TOP5,
            field="likes",
            limit=self._top_limit,
            sort_key=lambda a: a.likes,
        )

    async def get_latest_articles(self, repo: ArticleRepository) -> list[Article]:
        """Newest articles, served from the latest snapshot when possible."""
        return await self._get_ranked(
            repo,
            key=KEY_LATEST,
            field="created_at",
            limit=self._latest_limit,
            sort_key=lambda a: a.created_at,
        )

    async def _get_ranked(
        self,
        repo: ArticleRepository,
        *,
        key: str,
        field: str,
        limit: int,
        sort_key: Callable[[Article], Any],
    ) -> list[Article]:
        cached = await self._get_cached_ids(key)
        if cached.ok and cached.value:
            articles = await repo.find_by_ids(cached.value)
            # find_by_ids does not preserve snapshot order
            articles.sort(key=sort_key, reverse=True)
            if articles:
                return articles

        articles = await repo.find_all_ordered_by(field, "desc", limit)
        await self._cache_ids(key, articles)
        return articles

    async def _get_cached_ids(self, key: str) -> CacheResult[list[int]]:
        result = await self._gate.execute(f"get {key}", lambda r: r.get(key))
        if not result.ok:
            return CacheResult.unavailable()
        if result.value is None:
            return CacheResult.success(None)

        ids = decode_ids(result.value)
        if ids is None:
            logger.warning(f"Malformed cached snapshot at {key}, treating as miss")
            return CacheResult.malformed()
        return CacheResult.success(ids)

    async def _cache_ids(self, key: str, articles: list[Article]) -> None:
        # Only re-cache when the snapshot read just succeeded; do not
        # pay another connect attempt on the fallback path.
        if not self._gate.healthy:
            return
        payload = encode_ids([a.id for a in articles])
        await self._gate.execute(f"set {key}", lambda r: r.setex(key, self._ttl, payload))

    # ============================================================
    # Invalidation
    # ============================================================

    async def invalidate_on_create(self) -> None:
        """A new article changes both rankings."""
        await self._gate.execute("invalidate_on_create", lambda r: r.delete(KEY_TOP5, KEY_LATEST))

    async def invalidate_on_delete(self, article_id: int) -> None:
        """Drop both rankings and the article's like counter."""
        key = likes_key(article_id)
        await self._gate.execute(
            "invalidate_on_delete",
            lambda r: r.delete(KEY_TOP5, KEY_LATEST, key),
        )
