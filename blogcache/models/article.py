"""Article model.

The authoritative copy of an article, including its durable like count.
While a Redis counter exists for an article, `likes` here is stale until
the like sync job writes the counter back.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from blogcache.stores.postgres import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    """Blog article."""

    __tablename__ = "articles"
    __table_args__ = (CheckConstraint("likes >= 0", name="ck_articles_likes_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(255))
    # URL slug derived from title (e.g., "hello-world")
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    content: Mapped[str] = mapped_column(Text, default="")

    likes: Mapped[int] = mapped_column(default=0, index=True)  # For top ranking

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Article {self.id} {self.slug!r} likes={self.likes}>"
