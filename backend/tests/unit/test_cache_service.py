"""Unit tests for cache backends and cache-aside fetching."""

import fnmatch
from typing import Any

import pytest

from mapmyway.models import Coordinate, PlaceCategory, TravelMode
from mapmyway.services.cache import (
    CacheService,
    InMemoryCacheService,
    NullCacheService,
    RedisCacheService,
    cached_fetch,
    create_cache_service,
)
from mapmyway.utils import cache as lru_module
from mapmyway.utils.cache import LRUCache


class FakeRedis:
    """Subset of the redis.asyncio client used by RedisCacheService."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.data[key] = value
        self.expiry[key] = ex

    async def scan(self, cursor: int = 0, match: str = "*", count: int = 100) -> tuple[int, list[str]]:
        return 0, [k for k in self.data if fnmatch.fnmatchcase(k, match)]

    async def delete(self, *keys: str) -> int:
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def exists(self, key: str) -> int:
        return int(key in self.data)

    async def aclose(self) -> None:
        self.closed = True


class BrokenCache(CacheService):
    async def get(self, key: str) -> Any | None:
        raise ConnectionError("redis down")

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        raise ConnectionError("redis down")

    async def invalidate(self, pattern: str) -> int:
        raise ConnectionError("redis down")

    async def exists(self, key: str) -> bool:
        raise ConnectionError("redis down")

    async def delete(self, key: str) -> bool:
        raise ConnectionError("redis down")


class TestCacheKeys:
    def test_geocode_key_is_normalized(self) -> None:
        assert CacheService.build_geocode_key("  Tbilisi ") == "geocode:tbilisi"

    def test_directions_key(self) -> None:
        key = CacheService.build_directions_key(
            Coordinate(latitude=41.7, longitude=44.8),
            Coordinate(latitude=41.6, longitude=41.6),
            TravelMode.WALKING,
        )
        assert key == "direction:41.7,44.8,41.6,41.6,walking"

    def test_places_key_distinguishes_keyword_and_radius(self) -> None:
        loc = Coordinate(latitude=41.7, longitude=44.8)
        plain = CacheService.build_places_key(loc, PlaceCategory(type="restaurant"), 3000)
        vegan = CacheService.build_places_key(loc, PlaceCategory(type="restaurant", keyword="vegan"), 3000)
        wider = CacheService.build_places_key(loc, PlaceCategory(type="restaurant"), 5000)
        assert vegan == "places:41.7,44.8:restaurant:vegan:3000"
        assert len({plain, vegan, wider}) == 3


class TestInMemoryCacheService:
    @pytest.mark.asyncio
    async def test_set_get(self) -> None:
        cache = InMemoryCacheService()
        await cache.set("geocode:tbilisi", {"lat": 41.7})
        assert await cache.get("geocode:tbilisi") == {"lat": 41.7}
        assert await cache.exists("geocode:tbilisi")

    @pytest.mark.asyncio
    async def test_values_round_trip_through_json(self) -> None:
        cache = InMemoryCacheService()
        await cache.set("k", {"items": (1, 2)})
        assert await cache.get("k") == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_invalidate_pattern(self) -> None:
        cache = InMemoryCacheService()
        for key in ["places:a", "places:b", "geocode:a"]:
            await cache.set(key, 1)
        assert await cache.invalidate("places:*") == 2
        assert await cache.get("geocode:a") == 1
        assert await cache.invalidate("*") == 1

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        cache = InMemoryCacheService()
        await cache.set("k", 1)
        assert await cache.delete("k") is True
        assert await cache.delete("k") is False


class TestLRUCache:
    def test_evicts_least_recently_used(self) -> None:
        cache = LRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert "b" not in cache
        assert cache.get("a") == 1
        assert len(cache) == 2

    def test_entries_expire(self, monkeypatch: pytest.MonkeyPatch) -> None:
        now = [1000.0]
        monkeypatch.setattr(lru_module.time, "monotonic", lambda: now[0])
        cache = LRUCache(ttl_seconds=60)
        cache.set("short", 1, ttl_seconds=5)
        cache.set("long", 2)
        now[0] += 10
        assert cache.get("short") is None
        assert cache.get("long") == 2


class TestRedisCacheService:
    @pytest.mark.asyncio
    async def test_stores_json_with_ttl(self) -> None:
        client = FakeRedis()
        cache = RedisCacheService(default_ttl=120, client=client)  # type: ignore[arg-type]

        await cache.set("k", {"a": 1})
        await cache.set("short", 1, ttl_seconds=5)

        assert client.data["k"] == '{"a": 1}'
        assert client.expiry == {"k": 120, "short": 5}
        assert await cache.get("k") == {"a": 1}
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_non_json_value_returned_raw(self) -> None:
        client = FakeRedis()
        client.data["hello"] = "world"
        cache = RedisCacheService(client=client)  # type: ignore[arg-type]
        assert await cache.get("hello") == "world"

    @pytest.mark.asyncio
    async def test_invalidate_and_close(self) -> None:
        client = FakeRedis()
        cache = RedisCacheService(client=client)  # type: ignore[arg-type]
        await cache.set("places:1", 1)
        await cache.set("direction:1", 1)

        assert await cache.invalidate("places:*") == 1
        assert await cache.exists("direction:1")

        await cache.close()
        assert client.closed


class TestCreateCacheService:
    def test_backends(self) -> None:
        assert isinstance(create_cache_service("memory", "", 60), InMemoryCacheService)
        assert isinstance(create_cache_service("none", "", 60), NullCacheService)
        assert isinstance(create_cache_service("redis", "redis://localhost:6379", 60), RedisCacheService)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_cache_service("memcached", "", 60)


class TestCachedFetch:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self) -> None:
        cache = InMemoryCacheService()
        calls = []

        async def loader() -> int:
            calls.append(1)
            return 42

        for _ in range(2):
            value = await cached_fetch(cache, "k", loader, dump=lambda v: v, load=int)
            assert value == 42
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_broken_cache_falls_through(self) -> None:
        async def loader() -> str:
            return "fresh"

        value = await cached_fetch(BrokenCache(), "k", loader, dump=str, load=str)
        assert value == "fresh"

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_refetched(self) -> None:
        cache = InMemoryCacheService()
        await cache.set("k", "not-a-number")

        async def loader() -> int:
            return 7

        assert await cached_fetch(cache, "k", loader, dump=lambda v: v, load=int) == 7
        assert await cache.get("k") == 7

    @pytest.mark.asyncio
    async def test_loader_errors_propagate_and_are_not_cached(self) -> None:
        cache = InMemoryCacheService()

        async def loader() -> int:
            raise RuntimeError("upstream failed")

        with pytest.raises(RuntimeError):
            await cached_fetch(cache, "k", loader, dump=lambda v: v, load=int)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_no_cache(self) -> None:
        async def loader() -> int:
            return 1

        assert await cached_fetch(None, "k", loader, dump=lambda v: v, load=int) == 1
