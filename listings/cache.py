"""In-process TTL cache for aggregated search results.

Entries expire a fixed time after insertion and, once the cache is full,
the oldest-inserted entry is evicted (FIFO: reads do not refresh entries).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from cachetools import FIFOCache

from exceptions import CacheCorruptionError
from listings.constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS
from listings.models import CacheStats, StandardListing
from observability.metrics import (
    cache_entries,
    cache_evictions_total,
    cache_hits_total,
    cache_misses_total,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    listings: Tuple[StandardListing, ...]
    stored_at: float
    errors: Tuple[str, ...] = ()


class ListingCache:
    """Thread-safe fingerprint -> listings cache.

    ``clock`` defaults to ``time.monotonic`` and can be replaced in tests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._store: FIFOCache = FIFOCache(maxsize=self.max_entries)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _validate(self, key: str, entry: object) -> CacheEntry:
        if not isinstance(entry, CacheEntry) or entry.key != key:
            raise CacheCorruptionError("Cache entry has the wrong shape", detail={"key": key})
        if not isinstance(entry.listings, tuple) or not all(
            isinstance(item, StandardListing) for item in entry.listings
        ):
            raise CacheCorruptionError("Cache entry holds non-listing values", detail={"key": key})
        if not isinstance(entry.stored_at, (int, float)):
            raise CacheCorruptionError("Cache entry has no timestamp", detail={"key": key})
        if not isinstance(entry.errors, tuple) or not all(isinstance(e, str) for e in entry.errors):
            raise CacheCorruptionError("Cache entry has malformed errors", detail={"key": key})
        return entry

    def _miss(self) -> None:
        self._misses += 1
        cache_misses_total.inc()

    def get(self, key: str) -> Optional[List[StandardListing]]:
        """Listings stored under ``key``, or None if absent, expired or corrupt."""
        entry = self.get_entry(key)
        return list(entry.listings) if entry is not None else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            raw = self._store.get(key)
            if raw is None:
                self._miss()
                return None

            try:
                entry = self._validate(key, raw)
            except CacheCorruptionError as e:
                logger.warning("Evicting corrupt cache entry %s: %s", key[:12], e.message)
                del self._store[key]
                self._evictions += 1
                cache_evictions_total.labels(reason="corrupt").inc()
                cache_entries.set(len(self._store))
                self._miss()
                return None

            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._store[key]
                self._expirations += 1
                cache_evictions_total.labels(reason="expired").inc()
                cache_entries.set(len(self._store))
                self._miss()
                return None

            self._hits += 1
            cache_hits_total.inc()
            return entry

    def set(self, key: str, listings: Sequence[StandardListing], *, errors: Sequence[str] = ()) -> None:
        with self._lock:
            if key in self._store:
                # re-insert so the entry's FIFO position matches its timestamp
                del self._store[key]
            elif len(self._store) >= self.max_entries:
                oldest_key, _ = self._store.popitem()
                self._evictions += 1
                cache_evictions_total.labels(reason="capacity").inc()
                logger.debug("Cache full, evicted oldest entry %s", oldest_key[:12])
            self._store[key] = CacheEntry(
                key=key, listings=tuple(listings), stored_at=self._clock(), errors=tuple(errors)
            )
            cache_entries.set(len(self._store))

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            cache_entries.set(0)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def stats(self) -> CacheStats:
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                size=len(self._store),
                max_size=self.max_entries,
                ttl_seconds=self.ttl_seconds,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                hit_rate=(self._hits / lookups) if lookups else 0.0,
            )
