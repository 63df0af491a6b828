"""Cache backends for external map API responses."""

from .service import (
    CacheService,
    InMemoryCacheService,
    NullCacheService,
    RedisCacheService,
    cached_fetch,
    create_cache_service,
)

__all__ = [
    "CacheService",
    "InMemoryCacheService",
    "NullCacheService",
    "RedisCacheService",
    "cached_fetch",
    "create_cache_service",
]
