"""SQLAlchemy ORM models.

Models represent database tables:
- articles: Blog articles with their durable like counts
"""

from blogcache.models.article import Article

__all__ = ["Article"]
