"""ArticleRepository and like sync against a real SQLAlchemy engine (SQLite)."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from blogcache.models import Article
from blogcache.services.like_sync import LikeSyncReconciler
from blogcache.stores.postgres import Base
from blogcache.stores.redis import ConnectionGate
from blogcache.stores.repository import ArticleRepository
from tests.fakes import FakeRedis

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [
                Article(id=1, title="Intro to Redis", slug="intro-to-redis", content="", likes=50,
                        created_at=BASE_TIME - timedelta(hours=30)),
                Article(id=2, title="Postgres tips", slug="postgres-tips", content="", likes=20,
                        created_at=BASE_TIME - timedelta(hours=20)),
                Article(id=3, title="REDIS sessions", slug="redis-sessions", content="", likes=5,
                        created_at=BASE_TIME - timedelta(hours=10)),
                Article(id=4, title="Cache invalidation", slug="cache-invalidation", content="", likes=40,
                        created_at=BASE_TIME - timedelta(hours=5)),
            ]
        )
        await session.commit()

    yield factory

    await engine.dispose()


@pytest.mark.asyncio
async def test_find_by_id_and_slug(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        repo = ArticleRepository(session)

        assert (await repo.find_by_id(2)).slug == "postgres-tips"
        assert (await repo.find_by_slug("redis-sessions")).id == 3
        assert await repo.find_by_id(99) is None
        assert await repo.find_by_slug("nope") is None


@pytest.mark.asyncio
async def test_find_by_ids(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        repo = ArticleRepository(session)

        found = await repo.find_by_ids([3, 1, 99])

        assert sorted(a.id for a in found) == [1, 3]
        assert await repo.find_by_ids([]) == []


@pytest.mark.asyncio
async def test_find_all_ordered_by(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        repo = ArticleRepository(session)

        by_likes = await repo.find_all_ordered_by("likes", "desc", 3)
        newest = await repo.find_all_ordered_by("created_at", "DESC")
        oldest = await repo.find_all_ordered_by("created_at", "asc", 1)

        assert [a.id for a in by_likes] == [1, 4, 2]
        assert [a.id for a in newest] == [4, 3, 2, 1]
        assert [a.id for a in oldest] == [1]


@pytest.mark.asyncio
async def test_find_all_ordered_by_rejects_unknown_columns(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        repo = ArticleRepository(session)

        with pytest.raises(ValueError):
            await repo.find_all_ordered_by("content", "desc")
        with pytest.raises(ValueError):
            await repo.find_all_ordered_by("likes", "sideways")


@pytest.mark.asyncio
async def test_search_by_title_is_case_insensitive(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        repo = ArticleRepository(session)

        found = await repo.search_by_title("redis")

        assert [a.id for a in found] == [3, 1]


@pytest.mark.asyncio
async def test_like_sync_persists_counts(session_factory: async_sessionmaker[AsyncSession]) -> None:
    redis = FakeRedis()
    await redis.set("article:likes:1", "12")
    await redis.set("article:likes:77", "3")
    gate = ConnectionGate("redis://fake", client_factory=lambda: redis)

    async with session_factory() as session:
        synced = await LikeSyncReconciler(gate).sync(ArticleRepository(session))

    assert synced == 1
    assert redis.data == {}

    async with session_factory() as session:
        article = await ArticleRepository(session).find_by_id(1)
        assert article.likes == 12
        assert article.updated_at is not None
        assert await ArticleRepository(session).find_by_id(77) is None
