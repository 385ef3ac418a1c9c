import asyncio
import logging

import pytest

from blogcache.stores.redis import CacheStatus, ConnectionGate
from tests.fakes import FakeRedis


class CountingFactory:
    def __init__(self, client: FakeRedis) -> None:
        self.client = client
        self.calls = 0

    def __call__(self) -> FakeRedis:
        self.calls += 1
        return self.client


@pytest.mark.asyncio
async def test_acquire_memoizes_healthy_connection(fake_redis: FakeRedis) -> None:
    factory = CountingFactory(fake_redis)
    gate = ConnectionGate("redis://fake", client_factory=factory)

    assert not gate.healthy
    first = await gate.acquire()
    second = await gate.acquire()

    assert first is fake_redis
    assert second is fake_redis
    assert gate.healthy
    assert factory.calls == 1


@pytest.mark.asyncio
async def test_acquire_returns_none_when_unreachable(fake_redis: FakeRedis, caplog: pytest.LogCaptureFixture) -> None:
    fake_redis.down = True
    gate = ConnectionGate("redis://fake", name="article cache", client_factory=lambda: fake_redis)

    with caplog.at_level(logging.WARNING, logger="uvicorn.error"):
        client = await gate.acquire()

    assert client is None
    assert not gate.healthy
    assert "Cannot connect to Redis for article cache" in caplog.text


@pytest.mark.asyncio
async def test_factory_error_is_absorbed() -> None:
    def broken_factory() -> FakeRedis:
        raise OSError("connection refused")

    gate = ConnectionGate("redis://fake", client_factory=broken_factory)

    assert await gate.acquire() is None
    result = await gate.execute("get", lambda r: r.get("k"))
    assert result.status is CacheStatus.UNAVAILABLE


@pytest.mark.asyncio
async def test_operation_failure_flips_gate_and_next_call_reconnects(fake_redis: FakeRedis) -> None:
    factory = CountingFactory(fake_redis)
    gate = ConnectionGate("redis://fake", client_factory=factory)
    await fake_redis.set("k", "v")

    ok = await gate.execute("get", lambda r: r.get("k"))
    assert ok.ok and ok.value == "v"

    fake_redis.failing.add("get")
    failed = await gate.execute("get", lambda r: r.get("k"))
    assert failed.status is CacheStatus.UNAVAILABLE
    assert failed.value is None
    assert not gate.healthy

    fake_redis.failing.clear()
    healed = await gate.execute("get", lambda r: r.get("k"))
    assert healed.ok and healed.value == "v"
    assert gate.healthy
    assert factory.calls == 2


@pytest.mark.asyncio
async def test_gate_recovers_after_outage(fake_redis: FakeRedis) -> None:
    gate = ConnectionGate("redis://fake", client_factory=lambda: fake_redis)
    fake_redis.down = True
    assert (await gate.execute("ping", lambda r: r.ping())).status is CacheStatus.UNAVAILABLE

    fake_redis.down = False
    result = await gate.execute("ping", lambda r: r.ping())
    assert result.ok
    assert gate.healthy


@pytest.mark.asyncio
async def test_close_resets_state(fake_redis: FakeRedis) -> None:
    gate = ConnectionGate("redis://fake", client_factory=lambda: fake_redis)
    await gate.acquire()

    await gate.close()

    assert not gate.healthy
    assert fake_redis.closed == 1


class SlowPingRedis(FakeRedis):
    async def ping(self) -> bool:
        await asyncio.sleep(0.01)
        return await super().ping()


@pytest.mark.asyncio
async def test_concurrent_acquire_shares_one_reconnect() -> None:
    created: list[SlowPingRedis] = []

    def factory() -> SlowPingRedis:
        client = SlowPingRedis()
        created.append(client)
        return client

    gate = ConnectionGate("redis://fake", client_factory=factory)

    clients = await asyncio.gather(*(gate.acquire() for _ in range(5)))

    assert len(created) == 1
    assert all(c is created[0] for c in clients)
    assert created[0].closed == 0
    assert gate.healthy


@pytest.mark.asyncio
async def test_concurrent_reconnect_after_failure_closes_old_client_once() -> None:
    created: list[SlowPingRedis] = []

    def factory() -> SlowPingRedis:
        client = SlowPingRedis()
        created.append(client)
        return client

    gate = ConnectionGate("redis://fake", client_factory=factory)
    await gate.acquire()
    gate.mark_unhealthy()

    clients = await asyncio.gather(*(gate.acquire() for _ in range(5)))

    assert len(created) == 2
    assert created[0].closed == 1
    assert created[1].closed == 0
    assert all(c is created[1] for c in clients)
