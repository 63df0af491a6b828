"""Caching of Google Maps responses.

This module provides an abstract cache service interface and three
backends for memoizing Google Maps responses:

- ``RedisCacheService``: shared Redis store
- ``InMemoryCacheService``: process-level LRU with TTL
- ``NullCacheService``: never stores anything (always a miss)

Caching is an optimization only. ``cached_fetch`` treats any backend
failure as a miss so a broken cache never fails a request.
"""

import fnmatch
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis

from mapmyway.models import Coordinate, PlaceCategory, TravelMode
from mapmyway.utils.cache import LRUCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 2592000  # 30 days


class CacheService(ABC):
    """Key/value store for JSON-compatible values with per-entry TTL.

    The static ``build_*_key`` helpers define the key layout shared by
    every backend, so entries written by one process can be read by another.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under ``key``, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` (JSON-compatible) under ``key``.

        ``ttl_seconds`` falls back to the backend default when omitted.
        """
        pass

    @abstractmethod
    async def invalidate(self, pattern: str) -> int:
        """Delete every key matching the glob ``pattern``; return how many went."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @staticmethod
    def build_geocode_key(address: str) -> str:
        """Cache key for a geocoded address.

        Example:
            >>> CacheService.build_geocode_key("Tbilisi")
            'geocode:tbilisi'
        """
        return f"geocode:{address.strip().lower()}"

    @staticmethod
    def build_directions_key(start: Coordinate, end: Coordinate, mode: TravelMode) -> str:
        """Cache key for directions between two coordinates.

        Example:
            >>> CacheService.build_directions_key(
            ...     Coordinate(latitude=41.7, longitude=44.8),
            ...     Coordinate(latitude=41.6, longitude=41.6),
            ...     TravelMode.DRIVING,
            ... )
            'direction:41.7,44.8,41.6,41.6,driving'
        """
        return f"direction:{start.to_param()},{end.to_param()},{mode.value}"

    @staticmethod
    def build_places_key(location: Coordinate, category: PlaceCategory, radius: int) -> str:
        """Cache key for a single nearby search.

        Example:
            >>> CacheService.build_places_key(
            ...     Coordinate(latitude=41.7, longitude=44.8),
            ...     PlaceCategory(type="restaurant", keyword="vegan"),
            ...     3000,
            ... )
            'places:41.7,44.8:restaurant:vegan:3000'
        """
        return f"places:{location.to_param()}:{category.cache_token}:{radius}"


class RedisCacheService(CacheService):
    """Shared cache in Redis. Values are stored as JSON strings with ``EX`` expiry."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        default_ttl: int = DEFAULT_TTL_SECONDS,
        client: redis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._client: redis.Redis | None = client

    async def connect(self) -> None:
        """Create the client lazily on first use."""
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def close(self) -> None:
        """Close the Redis connection on shutdown."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get(self, key: str) -> Any | None:
        client = await self._ensure_connected()
        value = await client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # Written by something other than this service
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        client = await self._ensure_connected()
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        await client.set(key, json.dumps(value), ex=ttl)

    async def invalidate(self, pattern: str) -> int:
        """Delete keys matching ``pattern``.

        Uses SCAN rather than KEYS so large keyspaces don't block Redis.
        """
        client = await self._ensure_connected()
        deleted_count = 0

        cursor = 0
        while True:
            cursor, keys = await client.scan(cursor=cursor, match=pattern, count=100)
            if keys:
                deleted_count += await client.delete(*keys)
            if cursor == 0:
                break

        return deleted_count

    async def exists(self, key: str) -> bool:
        client = await self._ensure_connected()
        return bool(await client.exists(key))

    async def delete(self, key: str) -> bool:
        client = await self._ensure_connected()
        result = await client.delete(key)
        return result > 0


class InMemoryCacheService(CacheService):
    """Process-local cache backed by ``LRUCache``."""

    def __init__(self, max_size: int = 4096, default_ttl: int = DEFAULT_TTL_SECONDS) -> None:
        self._store = LRUCache(max_size=max_size, ttl_seconds=default_ttl)

    async def get(self, key: str) -> Any | None:
        return self._store.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        # Round-trip through JSON so callers get the same shapes Redis would return
        self._store.set(key, json.loads(json.dumps(value)), ttl_seconds)

    async def invalidate(self, pattern: str) -> int:
        matching = [key for key in self._store.keys() if fnmatch.fnmatchcase(key, pattern)]
        for key in matching:
            self._store.delete(key)
        return len(matching)

    async def exists(self, key: str) -> bool:
        return self._store.get(key) is not None

    async def delete(self, key: str) -> bool:
        return self._store.delete(key)


class NullCacheService(CacheService):
    """Cache that never hits. Used when caching is disabled."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        return None

    async def invalidate(self, pattern: str) -> int:
        return 0

    async def exists(self, key: str) -> bool:
        return False

    async def delete(self, key: str) -> bool:
        return False


def create_cache_service(backend: str, redis_url: str, default_ttl: int) -> CacheService:
    """Build the cache backend named by configuration."""
    if backend == "redis":
        logger.info(f"[CACHE] Using Redis at {redis_url}")
        return RedisCacheService(redis_url=redis_url, default_ttl=default_ttl)
    if backend == "memory":
        logger.info("[CACHE] Using in-process LRU cache")
        return InMemoryCacheService(default_ttl=default_ttl)
    if backend in ("none", "off", "disabled", ""):
        logger.info("[CACHE] Caching disabled")
        return NullCacheService()
    raise ValueError(f"Unknown cache backend: {backend!r}")


async def cached_fetch(
    cache: CacheService | None,
    key: str,
    loader: Callable[[], Awaitable[T]],
    dump: Callable[[T], Any],
    load: Callable[[Any], T],
    ttl_seconds: int | None = None,
) -> T:
    """Cache-aside lookup around ``loader``.

    Cache read/write failures are logged and otherwise ignored. Errors
    raised by ``loader`` propagate and nothing is cached.
    """
    if cache is not None:
        try:
            cached = await cache.get(key)
        except Exception as e:
            logger.warning(f"[CACHE] Read failed for {key}: {e}")
            cached = None
        if cached is not None:
            try:
                value = load(cached)
            except Exception as e:
                logger.warning(f"[CACHE] Discarding unreadable entry {key}: {e}")
            else:
                logger.debug(f"[CACHE] Hit: {key}")
                return value

    value = await loader()

    if cache is not None:
        try:
            await cache.set(key, dump(value), ttl_seconds)
            logger.debug(f"[CACHE] Set: {key}")
        except Exception as e:
            logger.warning(f"[CACHE] Write failed for {key}: {e}")

    return value
