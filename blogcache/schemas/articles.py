"""Schemas for the article and home endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from blogcache.models import Article


class ArticleSummary(BaseModel):
    """An article as shown in lists and rankings."""

    id: int
    title: str
    slug: str
    likes: int = Field(ge=0)
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_article(cls, article: Article, *, likes: int | None = None) -> "ArticleSummary":
        return cls(
            id=article.id,
            title=article.title,
            slug=article.slug,
            likes=article.likes if likes is None else likes,
            created_at=article.created_at,
        )


class ArticleDetail(ArticleSummary):
    """A single article with its content and live like count."""

    content: str

    @classmethod
    def from_article(cls, article: Article, *, likes: int | None = None) -> "ArticleDetail":
        return cls(
            id=article.id,
            title=article.title,
            slug=article.slug,
            content=article.content or "",
            likes=article.likes if likes is None else likes,
            created_at=article.created_at,
        )


class ArticleCreate(BaseModel):
    """Request body for creating an article."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(default="", max_length=100_000)


class LikeResponse(BaseModel):
    """Response payload for POST /v1/articles/{id}/like."""

    likes: int = Field(ge=0)


class HomeResponse(BaseModel):
    """Response payload for GET /v1/home.

    Both lists come from cached ranked snapshots when Redis is up.
    """

    top: list[ArticleSummary]
    latest: list[ArticleSummary]
