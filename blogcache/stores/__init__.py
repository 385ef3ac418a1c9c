"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, article repository, ORM operations
- Redis: connection gate, key naming, cached value codecs

No business/invalidation logic in stores - that belongs in services.
"""
