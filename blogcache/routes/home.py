"""Home endpoint.

GET /v1/home - Top articles by likes and the latest articles.

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends

from blogcache.routes.deps import get_article_cache, get_repository
from blogcache.schemas import ArticleSummary, HomeResponse
from blogcache.services.article_cache import ArticleCache
from blogcache.stores.repository import ArticleRepository

router = APIRouter()


@router.get("", response_model=HomeResponse)
async def get_home(
    repo: ArticleRepository = Depends(get_repository),
    cache: ArticleCache = Depends(get_article_cache),
) -> HomeResponse:
    """Get home screen data.

    Returns:
        HomeResponse with top (by likes) and latest (by creation time) articles.
    """
    top = await cache.get_top_articles(repo)
    latest = await cache.get_latest_articles(repo)
    return HomeResponse(
        top=[ArticleSummary.from_article(a) for a in top],
        latest=[ArticleSummary.from_article(a) for a in latest],
    )
