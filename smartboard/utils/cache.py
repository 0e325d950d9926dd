# smartboard/utils/cache.py
"""Tiny per-process TTL cache, used to keep downloaded background images."""

from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable


class TTLCache:
    """Tiny per-process TTL cache with LRU eviction and explicit invalidation."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        ttl_seconds: int = 30,
        maxsize: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the TTL cache.
        Args:
            enabled: Whether the cache is enabled
            ttl_seconds: Time-to-live for cache entries in seconds
            maxsize: Maximum number of entries in the cache
            clock: Monotonic seconds source (injectable for tests)
        """
        self.enabled = enabled and ttl_seconds > 0 and maxsize > 0
        self.ttl = max(1, ttl_seconds) if self.enabled else 0
        self.maxsize = max(1, maxsize) if self.enabled else 0
        self._clock = clock
        self._store: OrderedDict[Any, tuple[float, Any]] = OrderedDict()
        self._lock = Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: Any, loader: Callable[[], Any] | None = None) -> Any:
        """Get a cache entry by key, loading it if missing or expired."""
        if not self.enabled:
            if loader:
                self._misses += 1
                return loader()
            return None

        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry:
                expires_at, value = entry
                if expires_at > now:
                    self._hits += 1
                    self._store.move_to_end(key)
                    return value
                self._store.pop(key, None)

        self._misses += 1

        if loader is None:
            return None

        value = loader()
        self.set(key, value)
        return value

    def contains(self, key: Any) -> bool:
        """Whether ``key`` holds a live entry; does not touch hit/miss counters."""
        if not self.enabled:
            return False
        with self._lock:
            entry = self._store.get(key)
            return bool(entry) and entry[0] > self._clock()

    def set(self, key: Any, value: Any) -> None:
        """Set a cache entry with the given key and value."""
        if not self.enabled:
            return
        with self._lock:
            if value is None:
                self._store.pop(key, None)
                return
            expires_at = self._clock() + self.ttl
            self._store[key] = (expires_at, value)
            self._store.move_to_end(key)
            if len(self._store) > self.maxsize:
                self._store.popitem(last=False)
                self._evictions += 1

    def invalidate(self, key: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._store.clear()

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics for the status endpoint."""
        with self._lock:
            size = len(self._store)
            hits = self._hits
            misses = self._misses
            evictions = self._evictions

        total_requests = hits + misses
        hit_rate = (hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "enabled": self.enabled,
            "size": size,
            "maxsize": self.maxsize,
            "ttl_seconds": self.ttl,
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hit_rate, 2),
            "evictions": evictions,
        }
