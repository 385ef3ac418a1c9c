"""Pydantic schemas for API request/response validation."""

from blogcache.schemas.articles import (
    ArticleCreate,
    ArticleDetail,
    ArticleSummary,
    HomeResponse,
    LikeResponse,
)
from blogcache.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "ArticleCreate",
    "ArticleDetail",
    "ArticleSummary",
    "ErrorDetail",
    "ErrorResponse",
    "HomeResponse",
    "LikeResponse",
]
