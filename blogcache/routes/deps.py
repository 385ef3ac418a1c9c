"""FastAPI dependencies shared by the routers."""

from collections.abc import AsyncGenerator

from fastapi import Request

from blogcache.services.article_cache import ArticleCache
from blogcache.stores.postgres import get_session
from blogcache.stores.repository import ArticleRepository


async def get_repository() -> AsyncGenerator[ArticleRepository, None]:
    """Article repository bound to a request-scoped DB session."""
    async with get_session() as session:
        yield ArticleRepository(session)


def get_article_cache(request: Request) -> ArticleCache:
    """The application's article cache (owns its own Redis gate)."""
    return request.app.state.article_cache
