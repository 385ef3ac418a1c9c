"""Redis connection gate for the article cache and session store.

Handles:
- Lazy, memoized connection with a short bounded timeout
- Health tracking (healthy flag flips off the instant any call fails)
- Converting Redis failures into CacheResult values instead of exceptions

There is no background health check. A gate that went unhealthy re-attempts
one connection on the next call, so a long-lived process heals itself and a
short-lived one never pays more than one connect timeout per call.

Each component owns its own gate; gates never share state.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

# Anything that means "Redis is not usable right now"
VOLATILE_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, asyncio.TimeoutError)

ClientFactory = Callable[[], Any]


class CacheStatus(Enum):
    """Outcome of a gated Redis call."""

    OK = "ok"
    UNAVAILABLE = "unavailable"  # connect or operation failure
    MALFORMED = "malformed"  # payload read fine but failed to decode


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """Result of a Redis call that never raises for volatile-store reasons."""

    status: CacheStatus
    value: T | None = None

    @property
    def ok(self) -> bool:
        return self.status is CacheStatus.OK

    @classmethod
    def success(cls, value: T | None) -> "CacheResult[T]":
        return cls(CacheStatus.OK, value)

    @classmethod
    def unavailable(cls) -> "CacheResult[T]":
        return cls(CacheStatus.UNAVAILABLE)

    @classmethod
    def malformed(cls) -> "CacheResult[T]":
        return cls(CacheStatus.MALFORMED)


class ConnectionGate:
    """Memoized, self-healing access to a single Redis endpoint.

    Args:
        redis_url: Redis connection URL.
        name: Label used in log messages (e.g. "article cache").
        connect_timeout: Connect and socket timeout in seconds.
        decode_responses: Return str instead of bytes from Redis.
        client_factory: Optional zero-arg callable building a client (tests).
    """

    def __init__(
        self,
        redis_url: str,
        *,
        name: str = "cache",
        connect_timeout: float = 1.0,
        decode_responses: bool = True,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._name = name
        self._connect_timeout = connect_timeout
        self._decode_responses = decode_responses
        self._client_factory = client_factory or self._default_client
        self._client: Any | None = None
        self._healthy = False
        self._reconnect_lock = asyncio.Lock()

    @property
    def healthy(self) -> bool:
        return self._healthy

    @property
    def name(self) -> str:
        return self._name

    def _default_client(self) -> redis.Redis:
        # Constructing the client does not connect; PING in acquire() does.
        return redis.from_url(
            self._redis_url,
            encoding="utf-8",
            decode_responses=self._decode_responses,
            socket_connect_timeout=self._connect_timeout,
            socket_timeout=self._connect_timeout,
        )

    async def acquire(self) -> Any | None:
        """Return a usable client, or None if Redis is unreachable.

        When healthy, the memoized client is returned without reconnecting.
        Otherwise exactly one connection attempt is made. Concurrent callers
        share that attempt instead of each building their own client.
        """
        if self._healthy and self._client is not None:
            return self._client

        async with self._reconnect_lock:
            if self._healthy and self._client is not None:
                return self._client

            await self._discard_client()
            client = None
            try:
                client = self._client_factory()
                await client.ping()
            except VOLATILE_ERRORS as e:
                logger.warning(f"Cannot connect to Redis for {self._name}: {e}")
                if client is not None:
                    await self._close_quietly(client)
                self._healthy = False
                return None

            self._client = client
            self._healthy = True
            return client

    def mark_unhealthy(self) -> None:
        """Force the next call to re-attempt a connection."""
        self._healthy = False

    async def execute(
        self,
        operation: str,
        fn: Callable[[Any], Awaitable[T]],
    ) -> CacheResult[T]:
        """Run `fn(client)` behind the gate.

        Any Redis failure is logged, flips the gate unhealthy and is returned
        as CacheResult.unavailable(); it never propagates.

        Args:
            operation: Operation name for logs (e.g. "incrementLike").
            fn: Coroutine function receiving the Redis client.
        """
        client = await self.acquire()
        if client is None:
            return CacheResult.unavailable()

        try:
            value = await fn(client)
        except VOLATILE_ERRORS as e:
            logger.warning(f"Redis error on {operation} ({self._name}): {e}")
            self.mark_unhealthy()
            return CacheResult.unavailable()
        return CacheResult.success(value)

    async def close(self) -> None:
        """Close the memoized client (shutdown)."""
        async with self._reconnect_lock:
            self._healthy = False
            await self._discard_client()

    async def _discard_client(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await self._close_quietly(client)

    @staticmethod
    async def _close_quietly(client: Any) -> None:
        # The connection may already be broken; closing is best-effort.
        with contextlib.suppress(*VOLATILE_ERRORS):
            await client.aclose()
