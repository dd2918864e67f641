# services/cache.py
"""Read-through caches for pets and timezones.

Soft caches only: entries expire after ``ttl_ms`` and nothing invalidates
them when another process writes the store. Every ``set`` sweeps expired
entries, so the cache holds at most what was written within one TTL.
"""
from __future__ import annotations

from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from .clock import Clock, now_ms

V = TypeVar("V")


class TTLCache(Generic[V]):
    def __init__(self, ttl_ms: int, clock: Clock = now_ms):
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: Dict[Any, Tuple[int, V]] = {}

    def get(self, key) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        cached_at, value = entry
        if self._clock() - cached_at >= self.ttl_ms:
            del self._entries[key]
            return None
        return value

    def set(self, key, value: V) -> None:
        now = self._clock()
        self._evict_expired(now)
        self._entries[key] = (now, value)

    def _evict_expired(self, now: int) -> None:
        expired = [k for k, (cached_at, _) in self._entries.items() if now - cached_at >= self.ttl_ms]
        for k in expired:
            del self._entries[k]

    def delete(self, key) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullCache(TTLCache):
    """Never stores anything; every read goes to the store."""

    def __init__(self, ttl_ms: int = 0, clock: Clock = now_ms):
        super().__init__(ttl_ms, clock)

    def get(self, key):
        return None

    def set(self, key, value) -> None:
        pass
