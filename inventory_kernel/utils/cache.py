"""
BoundedCache -- In-process expiring key/value store with LFU eviction.

Responsibility:
    Holds derived and aggregate data (dashboard figures, reference lists)
    for a bounded time, so that read paths do not recompute them on every
    request.  Mutation paths invalidate the keys they affect.

Architecture position:
    Kernel > Utils.  Independent of the LedgerCoordinator mutex; no I/O.

Invariants enforced:
    - Expiry: an entry is a miss once ``now - inserted_at >= ttl``.  A ``ttl``
      passed to get()/has() overrides the TTL the entry was stored with.
    - Capacity: size never exceeds ``max_size``.  Setting a NEW key at
      capacity evicts the entry with the lowest access count (ties: the
      oldest insertion).  Access counts grow on every hit and are never
      reset by later touches, so this is frequency-based eviction.
    - A stored ``None`` is a hit; misses are told apart by a sentinel.

Failure modes:
    - ValueError on a non-positive default_ttl or max_size.
    - ValidationError from CacheRegistry.get()/clear() for an unknown name.
    - Exceptions raised by a get_or_fetch() supplier propagate; nothing is
      stored for that key.

Concurrency:
    All bookkeeping happens under one RLock.  The get_or_fetch() supplier
    runs OUTSIDE the lock, so two concurrent misses may both compute; the
    last writer wins.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from itertools import count
from typing import Any, TypeVar

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("utils.cache")

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_SIZE = 1000

_MISSING = object()


@dataclass
class CacheEntry:
    """One stored value and its bookkeeping."""

    key: Hashable
    value: Any
    inserted_at: float
    ttl: float
    insertion_order: int
    access_count: int = 0

    def is_expired(self, now: float, ttl: float | None = None) -> bool:
        limit = self.ttl if ttl is None else ttl
        return (now - self.inserted_at) >= limit


@dataclass(frozen=True)
class CacheStats:
    name: str
    size: int
    max_size: int
    keys: tuple[Hashable, ...]
    hit_count: int
    miss_count: int
    eviction_count: int

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return self.hit_count / total if total else 0.0


class BoundedCache:
    """
    Expiring cache with least-frequently-used eviction.

    Contract:
        TTLs are seconds measured on ``clock.monotonic()``.  Keys must be
        hashable.  Values are returned as stored, not copied.
    """

    def __init__(
        self,
        name: str = "default",
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Clock | None = None,
    ):
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl}")
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self.name = name
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock or SystemClock()
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.RLock()
        self._order = count()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, key: Hashable, ttl: float | None) -> Any:
        now = self._clock.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now, ttl):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return _MISSING
            entry.access_count += 1
            self._hits += 1
            return entry.value

    def get(self, key: Hashable, ttl: float | None = None, default: Any = None) -> Any:
        """Return the cached value, or ``default`` on a miss."""
        value = self._lookup(key, ttl)
        return default if value is _MISSING else value

    def has(self, key: Hashable, ttl: float | None = None) -> bool:
        return self._lookup(key, ttl) is not _MISSING

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        """Store ``value``, replacing any entry for ``key``."""
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        now = self._clock.monotonic()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_one()
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                inserted_at=now,
                ttl=self.default_ttl if ttl is None else ttl,
                insertion_order=next(self._order),
            )

    def _evict_one(self) -> None:
        victim = min(
            self._entries.values(),
            key=lambda e: (e.access_count, e.insertion_order),
        )
        del self._entries[victim.key]
        self._evictions += 1
        logger.debug(
            "cache_entry_evicted",
            extra={
                "cache": self.name,
                "key": str(victim.key),
                "access_count": victim.access_count,
            },
        )

    def delete(self, key: Hashable) -> bool:
        """Remove ``key``; returns whether it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_many(self, keys: Iterable[Hashable]) -> int:
        with self._lock:
            return sum(1 for k in keys if self._entries.pop(k, None) is not None)

    def get_or_fetch(
        self,
        key: Hashable,
        supplier: Callable[[], T],
        ttl: float | None = None,
    ) -> T:
        """
        Return the cached value, computing and storing it on a miss.

        The supplier is called without the lock held.
        """
        value = self._lookup(key, ttl)
        if value is not _MISSING:
            return value
        fresh = supplier()
        self.set(key, fresh, ttl)
        return fresh

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop every entry older than the default TTL; returns how many."""
        now = self._clock.monotonic()
        with self._lock:
            expired = [
                k for k, e in self._entries.items()
                if e.is_expired(now, self.default_ttl)
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(
                "cache_cleanup",
                extra={"cache": self.name, "removed": len(expired)},
            )
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                name=self.name,
                size=len(self._entries),
                max_size=self.max_size,
                keys=tuple(self._entries),
                hit_count=self._hits,
                miss_count=self._misses,
                eviction_count=self._evictions,
            )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

DEFAULT_CACHE_TTLS: dict[str, float] = {
    "default": 30 * 60,
    "reference": 60 * 60,
    "dashboard": 5 * 60,
}


class CacheRegistry:
    """
    The named caches of one running core.

    Built once at start-up and passed to whatever needs a cache; there is
    no module-level instance.
    """

    def __init__(self, caches: Iterable[BoundedCache]):
        self._caches: dict[str, BoundedCache] = {}
        for cache in caches:
            if cache.name in self._caches:
                raise ValueError(f"Duplicate cache name: {cache.name}")
            self._caches[cache.name] = cache

    @classmethod
    def with_defaults(
        cls,
        clock: Clock | None = None,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> CacheRegistry:
        return cls(
            BoundedCache(name, ttl, max_size, clock)
            for name, ttl in DEFAULT_CACHE_TTLS.items()
        )

    @classmethod
    def from_config(cls, config, clock: Clock | None = None) -> CacheRegistry:
        """Build from an ``inventory_config.CacheConfig``."""
        return cls(
            BoundedCache(spec.name, spec.ttl_seconds, spec.max_size, clock)
            for spec in config.caches
        )

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._caches)

    def get(self, name: str) -> BoundedCache:
        try:
            return self._caches[name]
        except KeyError:
            raise ValidationError("cache", f"unknown cache '{name}'") from None

    def __getitem__(self, name: str) -> BoundedCache:
        return self.get(name)

    def cleanup_all(self) -> dict[str, int]:
        """Run the expiry sweep on every cache; returns removals per cache."""
        removed = {name: cache.cleanup() for name, cache in self._caches.items()}
        logger.info("cache_cleanup_completed", extra={"removed": removed})
        return removed

    def clear(self, name: str | None = None) -> None:
        targets = self._caches.values() if name is None else [self.get(name)]
        for cache in targets:
            cache.clear()
        logger.info("cache_cleared", extra={"cache": name or "all"})

    def stats(self) -> list[CacheStats]:
        return [cache.get_stats() for cache in self._caches.values()]
