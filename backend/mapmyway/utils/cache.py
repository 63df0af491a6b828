"""In-memory LRU cache with per-entry TTL expiration.

Process-level store used when Redis is not configured. Entries survive
across requests in the same uvicorn worker.
"""

import time
from collections import OrderedDict
from typing import Any, Iterator


class LRUCache:
    """TTL-aware LRU cache for JSON-serializable values."""

    def __init__(self, max_size: int = 1024, ttl_seconds: int = 86400) -> None:
        self._cache: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Any | None:
        if key not in self._cache:
            return None
        expires_at, value = self._cache[key]
        if time.monotonic() >= expires_at:
            del self._cache[key]
            return None
        self._cache.move_to_end(key)
        return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        if key in self._cache:
            self._cache.move_to_end(key)
        self._cache[key] = (time.monotonic() + ttl, value)
        if len(self._cache) > self._max_size:
            self._cache.popitem(last=False)

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def keys(self) -> Iterator[str]:
        return iter(list(self._cache.keys()))

    def clear(self) -> None:
        self._cache.clear()
