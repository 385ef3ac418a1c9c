"""Article repository over an async SQLAlchemy session.

This is the durable side of the article cache: every cache miss, every
fallback like increment and the like sync job go through here.
Errors from the database propagate to the caller.
"""

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogcache.models import Article

# Columns that may be used for ordered listing
ORDERABLE_FIELDS = {
    "likes": Article.likes,
    "created_at": Article.created_at,
    "title": Article.title,
    "id": Article.id,
}


class ArticleRepository:
    """Data access for articles."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def find_by_id(self, article_id: int) -> Article | None:
        return await self._session.get(Article, article_id)

    async def find_by_slug(self, slug: str) -> Article | None:
        result = await self._session.execute(select(Article).where(Article.slug == slug))
        return result.scalar_one_or_none()

    async def find_by_ids(self, ids: Sequence[int]) -> list[Article]:
        """Load articles by id. Result order is unspecified."""
        if not ids:
            return []
        result = await self._session.execute(select(Article).where(Article.id.in_(list(ids))))
        return list(result.scalars().all())

    async def find_all_ordered_by(
        self,
        field: str,
        direction: str = "desc",
        limit: int | None = None,
    ) -> list[Article]:
        """List articles ordered by a single column.

        Args:
            field: One of ORDERABLE_FIELDS.
            direction: "asc" or "desc".
            limit: Maximum number of rows, or None for all.

        Raises:
            ValueError: Unknown field or direction.
        """
        column = ORDERABLE_FIELDS.get(field)
        if column is None:
            raise ValueError(f"Cannot order articles by {field!r}")
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"Invalid sort direction {direction!r}")

        order = column.desc() if direction == "desc" else column.asc()
        # id as tie-breaker keeps rankings stable across equal values
        tie_breaker = Article.id.desc() if direction == "desc" else Article.id.asc()
        query = select(Article).order_by(order, tie_breaker)
        if limit is not None:
            query = query.limit(limit)

        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def search_by_title(self, query: str) -> list[Article]:
        """Case-insensitive title search, newest first."""
        pattern = f"%{query.lower()}%"
        result = await self._session.execute(
            select(Article)
            .where(func.lower(Article.title).like(pattern))
            .order_by(Article.created_at.desc(), Article.id.desc())
        )
        return list(result.scalars().all())

    def add(self, article: Article) -> None:
        self._session.add(article)

    async def delete(self, article: Article) -> None:
        await self._session.delete(article)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        """Write all pending changes in one transaction."""
        await self._session.commit()
