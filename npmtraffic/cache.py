"""
In-process two-tier cache.

Each entry carries a fresh horizon nested inside a longer stale horizon.
Entries past the stale horizon are removed lazily on read. Nothing is
persisted and nothing is evicted otherwise.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from npmtraffic.logging import log_cache_event

T = TypeVar("T")


@dataclass
class CacheEntry:
    """A stored value with its expiry timestamps (seconds since epoch)."""

    value: Any
    expires_at: float
    stale_at: float


@dataclass
class CacheLookup(Generic[T]):
    """Outcome of a cache read."""

    hit: bool
    stale: bool = False
    value: T | None = None


class TwoTierCache:
    """
    Key/value store with independent fresh and stale expiry.

    Reads and writes are serialized by a lock; concurrent writers to the
    same key simply overwrite each other (last write wins).

    Example:
        ```python
        cache = TwoTierCache()
        cache.set_with_stale("traffic:react:30:2024-01-01", value, 900, 86400)
        lookup = cache.get_with_stale("traffic:react:30:2024-01-01")
        if lookup.hit and not lookup.stale:
            ...
        ```
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        """
        Initialize an empty cache.

        Args:
            clock: Returns the current time in seconds (default: time.time)
        """
        self._clock = clock or time.time
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheLookup[Any]:
        """Fresh-only read. Expired entries are deleted and reported as a miss."""
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                log_cache_event("MISS", key)
                return CacheLookup(hit=False)
            if now > entry.expires_at:
                del self._store[key]
                log_cache_event("EXPIRED", key)
                return CacheLookup(hit=False)
        log_cache_event("HIT", key)
        return CacheLookup(hit=True, value=entry.value)

    def get_with_stale(self, key: str) -> CacheLookup[Any]:
        """
        Three-way read: fresh hit, stale hit or miss.

        Returns:
            CacheLookup with hit=True, stale=False while now <= expires_at;
            hit=True, stale=True while expires_at < now <= stale_at;
            hit=False afterwards (the entry is deleted)
        """
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                log_cache_event("MISS", key)
                return CacheLookup(hit=False)
            if now > entry.stale_at:
                del self._store[key]
                log_cache_event("EXPIRED", key)
                return CacheLookup(hit=False)
        if now > entry.expires_at:
            log_cache_event("STALE", key)
            return CacheLookup(hit=True, stale=True, value=entry.value)
        log_cache_event("HIT", key)
        return CacheLookup(hit=True, stale=False, value=entry.value)

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value whose fresh and stale horizons coincide."""
        self.set_with_stale(key, value, ttl_seconds, ttl_seconds)

    def set_with_stale(
        self,
        key: str,
        value: Any,
        fresh_seconds: float,
        stale_seconds: float,
    ) -> None:
        """
        Store a value with separate fresh and stale horizons.

        Args:
            key: Cache key
            value: Value to store
            fresh_seconds: Seconds during which the value is served as fresh
            stale_seconds: Seconds during which the value may be served as stale

        Raises:
            ValueError: If fresh_seconds exceeds stale_seconds
        """
        if fresh_seconds > stale_seconds:
            raise ValueError("fresh_seconds must not exceed stale_seconds")

        now = self._clock()
        entry = CacheEntry(
            value=value,
            expires_at=now + fresh_seconds,
            stale_at=now + stale_seconds,
        )
        with self._lock:
            self._store[key] = entry
        log_cache_event("SET", key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
