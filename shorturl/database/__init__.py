"""Database layer for URL shortener."""

import logging
from typing import Optional
from urllib.parse import urlparse

from .base import URLShortenerDBBase, DuplicateKeyError
from .memory import URLShortenerMemoryDB
from .postgres import URLShortenerPostgres
from .models import URLMapping, URLMetadata, Visit
from .cache import CacheBase, MemoryCache, RedisCache

__all__ = [
    "URLShortenerDBBase",
    "DuplicateKeyError",
    "URLShortenerMemoryDB",
    "URLShortenerPostgres",
    "URLMapping",
    "URLMetadata",
    "Visit",
    "CacheBase",
    "MemoryCache",
    "RedisCache",
    "create_database",
]


def create_database(
    database_url: str,
    pool_max_size: int = 10,
    create_tables: bool = False,
    max_analytics_entries: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> URLShortenerDBBase:
    """Create the store implementation matching the URL scheme."""
    scheme = urlparse(database_url).scheme
    if scheme == "memory":
        return URLShortenerMemoryDB(
            db_config=database_url,
            max_analytics_entries=max_analytics_entries,
            logger=logger,
        )
    if scheme in ("postgresql", "postgres"):
        return URLShortenerPostgres(
            db_config=database_url,
            pool_max_size=pool_max_size,
            create_tables=create_tables,
            max_analytics_entries=max_analytics_entries,
            logger=logger,
        )
    raise ValueError(f"Unsupported database URL scheme: {scheme!r}")
