"""Article endpoints.

GET    /v1/articles             - List (newest first) or search by title (?q=)
POST   /v1/articles             - Create an article
GET    /v1/articles/{slug}      - Show one article with its live like count
POST   /v1/articles/{id}/like   - Like an article
DELETE /v1/articles/{id}        - Delete an article
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from blogcache.models import Article
from blogcache.routes.deps import get_article_cache, get_repository
from blogcache.schemas import ArticleCreate, ArticleDetail, ArticleSummary, LikeResponse
from blogcache.services.article_cache import ArticleCache
from blogcache.services.articles import (
    SlugConflictError,
    create_article,
    current_likes,
    delete_article,
    like_article,
    list_articles,
)
from blogcache.stores.repository import ArticleRepository

router = APIRouter()


async def _get_article_or_404(repo: ArticleRepository, article_id: int) -> Article:
    article = await repo.find_by_id(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found.")
    return article


@router.get("", response_model=list[ArticleSummary])
async def get_articles(
    q: str = Query(default="", max_length=200, description="Case-insensitive title search"),
    repo: ArticleRepository = Depends(get_repository),
) -> list[ArticleSummary]:
    articles = await list_articles(repo, q)
    return [ArticleSummary.from_article(a) for a in articles]


@router.post("", response_model=ArticleDetail, status_code=201)
async def post_article(
    body: ArticleCreate,
    repo: ArticleRepository = Depends(get_repository),
    cache: ArticleCache = Depends(get_article_cache),
) -> ArticleDetail:
    try:
        article = await create_article(body.title, body.content, cache=cache, repo=repo)
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ArticleDetail.from_article(article)


@router.get("/{slug}", response_model=ArticleDetail)
async def get_article(
    slug: str = Path(min_length=1, max_length=255),
    repo: ArticleRepository = Depends(get_repository),
    cache: ArticleCache = Depends(get_article_cache),
) -> ArticleDetail:
    article = await repo.find_by_slug(slug)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found.")
    likes = await current_likes(article, cache=cache)
    return ArticleDetail.from_article(article, likes=likes)


@router.post("/{article_id}/like", response_model=LikeResponse)
async def post_like(
    article_id: int = Path(ge=1),
    repo: ArticleRepository = Depends(get_repository),
    cache: ArticleCache = Depends(get_article_cache),
) -> LikeResponse:
    """Like an article.

    Counted in Redis when available, in the database otherwise.
    """
    article = await _get_article_or_404(repo, article_id)
    likes = await like_article(article, cache=cache, repo=repo)
    return LikeResponse(likes=likes)


@router.delete("/{article_id}", status_code=204)
async def remove_article(
    article_id: int = Path(ge=1),
    repo: ArticleRepository = Depends(get_repository),
    cache: ArticleCache = Depends(get_article_cache),
) -> Response:
    article = await _get_article_or_404(repo, article_id)
    await delete_article(article, cache=cache, repo=repo)
    return Response(status_code=204)
