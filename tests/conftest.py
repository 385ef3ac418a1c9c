"""Shared fixtures."""

import pytest

from blogcache.models import Article
from blogcache.services.article_cache import ArticleCache
from blogcache.stores.redis import ConnectionGate
from tests.fakes import FakeArticleRepository, FakeRedis, make_article


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_redis_bytes() -> FakeRedis:
    return FakeRedis(decode_responses=False)


@pytest.fixture
def gate(fake_redis: FakeRedis) -> ConnectionGate:
    return ConnectionGate("redis://fake:6379/0", name="test", client_factory=lambda: fake_redis)


@pytest.fixture
def article_cache(gate: ConnectionGate) -> ArticleCache:
    return ArticleCache(gate)


@pytest.fixture
def articles() -> list[Article]:
    return [
        make_article(1, likes=50, age_hours=30),
        make_article(2, likes=20, age_hours=20),
        make_article(3, likes=5, age_hours=10),
        make_article(4, likes=40, age_hours=5),
        make_article(5, likes=0, age_hours=1),
        make_article(6, likes=10, age_hours=40),
    ]


@pytest.fixture
def repo(articles: list[Article]) -> FakeArticleRepository:
    return FakeArticleRepository(articles)
