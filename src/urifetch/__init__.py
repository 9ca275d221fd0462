"""Conditional HTTP fetching for polling clients.

Keeps track of ETag and Last-Modified validators so that repeated fetches of
the same resource only transfer content when it changed, and reports the
status codes that matter to feed readers (301, 304, 410).
"""

__version__ = "0.2.0"

from typing import Any

from .cache import Cache, MemoryCache, SqliteCache
from .errors import CacheDecodeError, ConfigurationError, FetchError, FetchFailure
from .fetcher import ConditionalFetcher, FetchOptions
from .models import CachedEntry, FetchResult, FetchStatus


async def fetch(uri: str, **options: Any) -> FetchResult:
    """Fetch uri with a short-lived ConditionalFetcher."""
    async with ConditionalFetcher() as fetcher:
        return await fetcher.fetch(uri, **options)


__all__ = [
    "Cache",
    "CacheDecodeError",
    "CachedEntry",
    "ConditionalFetcher",
    "ConfigurationError",
    "FetchError",
    "FetchFailure",
    "FetchOptions",
    "FetchResult",
    "FetchStatus",
    "MemoryCache",
    "SqliteCache",
    "fetch",
]
