"""Article service: likes, creation and deletion with cache upkeep.

Routes are thin and call these functions. Every durable write that changes
a ranking is followed by the matching cache invalidation.
"""

import logging
import re
import unicodedata

from sqlalchemy.exc import IntegrityError

from blogcache.models import Article
from blogcache.services.article_cache import ArticleCache
from blogcache.stores.repository import ArticleRepository

logger = logging.getLogger("uvicorn.error")


class SlugConflictError(Exception):
    """Another article already uses this slug."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Article slug already exists: {slug}")
        self.slug = slug


def slugify(title: str) -> str:
    """Build a URL slug from a title.

    Example:
        >>> slugify("Hello, Wörld!")
        'hello-world'
    """
    ascii_title = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_title.lower()).strip("-")
    return slug or "article"


async def like_article(article: Article, *, cache: ArticleCache, repo: ArticleRepository) -> int:
    """Register one like and return the new count.

    Redis counter when available; otherwise the database row is incremented
    and committed so the like is never lost.
    """
    await cache.init_likes(article.id, article.likes)
    new_count = await cache.increment_like(article.id)
    if new_count is not None:
        return new_count

    logger.info(f"Like cache unavailable, incrementing article {article.id} in database")
    article.likes += 1
    await repo.commit()
    return article.likes


async def current_likes(article: Article, *, cache: ArticleCache) -> int:
    """Live like count: the Redis counter if present, else the durable count."""
    cached = await cache.get_likes(article.id)
    return cached if cached is not None else article.likes


async def create_article(
    title: str,
    content: str,
    *,
    cache: ArticleCache,
    repo: ArticleRepository,
) -> Article:
    """Persist a new article and invalidate both rankings.

    Raises:
        SlugConflictError: The derived slug is taken.
    """
    slug = slugify(title)
    if await repo.find_by_slug(slug) is not None:
        raise SlugConflictError(slug)

    article = Article(title=title, slug=slug, content=content, likes=0)
    repo.add(article)
    try:
        await repo.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent create of the same slug
        await repo.session.rollback()
        raise SlugConflictError(slug) from e

    await cache.invalidate_on_create()
    return article


async def delete_article(article: Article, *, cache: ArticleCache, repo: ArticleRepository) -> None:
    """Delete an article and drop its counter and both rankings."""
    article_id = article.id
    await repo.delete(article)
    await repo.commit()
    await cache.invalidate_on_delete(article_id)


async def list_articles(repo: ArticleRepository, query: str = "") -> list[Article]:
    """All articles newest first, or a title search when `query` is given."""
    query = query.strip()
    if query:
        return await repo.search_by_title(query)
    return await repo.find_all_ordered_by("created_at", "desc")
