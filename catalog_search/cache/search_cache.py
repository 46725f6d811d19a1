"""
In-memory result cache for ranked searches.

Caches full ranked result sets per (region, language, query, result filter)
with a fixed time-to-live. Lookups of unrelated keys never wait on each
other; concurrent misses on the same key compute once.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from cachetools import LRUCache  # type: ignore[import-untyped]

from ..domain.entities import CacheEntry, CacheKey, ScoredItem
from ..domain.exceptions import CacheException, ValidationException
from ..metrics import (
    track_cache_eviction,
    track_cache_hit,
    track_cache_invalidation,
    track_cache_miss,
    track_cache_stale,
    update_cache_size,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 1000

HIT = "hit"
MISS = "miss"
STALE = "stale"


class _KeyLock:
    """Compute lock for one key plus the number of threads holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class SearchCache:
    """
    LRU cache of ranked result sets with lazy TTL expiry.

    An entry written at time T is served for lookups before T + TTL and
    recomputed from T + TTL on; the expired entry is dropped on that lookup.
    Entries are immutable tuples that become visible only once fully built,
    so readers never see a partial result set.

    Locking:
    - a short map lock guards the LRU structure and the statistics
    - a lock per missing key serializes its computation; it exists only
      while some thread computes or waits on that key, so a slow
      computation blocks nothing but other misses on the same key

    Attributes:
        ttl_seconds: Maximum age of a served entry
        max_entries: LRU capacity
        hits: Lookups served from cache
        misses: Lookups that found nothing
        stale: Lookups that found an expired entry
        evictions: Entries dropped to make room
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
        cache_type: str = "search",
    ):
        """
        Initialize search cache.

        Args:
            ttl_seconds: Time-to-live of an entry in seconds (default: 300)
            max_entries: Maximum number of cached result sets (default: 1000)
            clock: Monotonic time source in seconds
            cache_type: Label used for metrics
        """
        if ttl_seconds <= 0:
            raise ValidationException("ttl_seconds", ttl_seconds, "must be positive")
        if max_entries < 1:
            raise ValidationException("max_entries", max_entries, "must be at least 1")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.cache_type = cache_type
        self._clock = clock

        self._entries: LRUCache = LRUCache(maxsize=max_entries)
        self._lock = threading.Lock()
        self._key_locks: Dict[CacheKey, _KeyLock] = {}
        self._generation = 0

        # Statistics
        self.hits = 0
        self.misses = 0
        self.stale = 0
        self.evictions = 0
        self.invalidations = 0
        self.computations = 0

        logger.info(
            f"Initialized SearchCache with ttl={ttl_seconds}s, max_entries={max_entries}"
        )

    def get(self, key: CacheKey) -> Optional[Tuple[ScoredItem, ...]]:
        """
        Get a cached result set.

        Args:
            key: Composite cache key

        Returns:
            The result tuple if present and younger than the TTL, None otherwise
        """
        entry, status = self._lookup(key)
        self._record(key, status)
        return entry.results if entry else None

    def get_or_compute(
        self, key: CacheKey, compute_fn: Callable[[], Iterable[ScoredItem]]
    ) -> List[ScoredItem]:
        """
        Return the cached result set or compute, store and return it.

        Concurrent callers missing on the same key wait for a single
        computation instead of repeating it.

        Args:
            key: Composite cache key
            compute_fn: Produces the ranked results on a miss

        Returns:
            Ranked results (a fresh list; the cached tuple is never exposed for mutation)

        Raises:
            CacheException: compute_fn raised; nothing is stored
        """
        entry, status = self._lookup(key)
        if entry is not None:
            self._record(key, status)
            return list(entry.results)

        with self._key_lock(key):
            # Another caller may have filled the key while we waited
            entry, second_status = self._lookup(key)
            if entry is not None:
                self._record(key, second_status)
                return list(entry.results)
            self._record(key, status)

            with self._lock:
                generation = self._generation

            try:
                results = tuple(compute_fn())
            except Exception as e:
                logger.error(f"Cache compute failed for {key}: {e}")
                raise CacheException("compute", str(e)) from e

            with self._lock:
                self.computations += 1
                if generation == self._generation:
                    self._store(key, results)
                else:
                    logger.debug(f"Discarding result for {key}: cache invalidated during compute")

        return list(results)

    def set(self, key: CacheKey, results: Iterable[ScoredItem]) -> None:
        """
        Store a result set.

        Args:
            key: Composite cache key
            results: Ranked results; materialized before they become visible
        """
        frozen = tuple(results)
        with self._lock:
            self._store(key, frozen)

    def invalidate_key(self, key: CacheKey) -> bool:
        """
        Drop a single entry.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            self._generation += 1
            self.invalidations += 1
            size = len(self._entries)

        track_cache_invalidation("key", self.cache_type)
        update_cache_size(self.cache_type, size)
        logger.debug(f"Invalidated cache key {key}: removed={removed}")
        return removed

    def invalidate(self, region: Optional[str] = None, language: Optional[str] = None) -> int:
        """
        Drop all entries for a region/language pair, a region, a language, or everything.

        Args:
            region: Region to clear; None matches every region
            language: Language to clear; None matches every language

        Returns:
            Number of entries removed
        """
        if region is None and language is None:
            return self.clear()

        with self._lock:
            doomed = [
                key
                for key in list(self._entries.keys())
                if (region is None or key.region == region)
                and (language is None or key.language == language)
            ]
            for key in doomed:
                del self._entries[key]
            self._generation += 1
            self.invalidations += 1
            size = len(self._entries)

        if region is not None and language is not None:
            scope = "region_language"
        elif region is not None:
            scope = "region"
        else:
            scope = "language"
        track_cache_invalidation(scope, self.cache_type)
        update_cache_size(self.cache_type, size)
        logger.info(f"Invalidated {len(doomed)} cache entries (region={region}, language={language})")
        return len(doomed)

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
            self.invalidations += 1

        track_cache_invalidation("all", self.cache_type)
        update_cache_size(self.cache_type, 0)
        logger.info(f"Cleared {count} entries from search cache")
        return count

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._lock:
            total_requests = self.hits + self.misses + self.stale
            hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0

            return {
                "size": len(self._entries),
                "max_size": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
                "stale": self.stale,
                "evictions": self.evictions,
                "invalidations": self.invalidations,
                "computations": self.computations,
                "total_requests": total_requests,
                "hit_rate_percent": int(round(hit_rate)),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @contextmanager
    def _key_lock(self, key: CacheKey) -> Iterator[None]:
        """Hold the compute lock of one key; the lock is dropped with its last user."""
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[key]

    def pending_computations(self) -> int:
        """Number of keys currently being computed or waited on."""
        with self._lock:
            return len(self._key_locks)

    def _lookup(self, key: CacheKey) -> Tuple[Optional[CacheEntry], str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, MISS
            if entry.is_expired(self._clock(), self.ttl_seconds):
                del self._entries[key]
                return None, STALE
            return entry, HIT

    def _record(self, key: CacheKey, status: str):
        with self._lock:
            if status == HIT:
                self.hits += 1
            elif status == STALE:
                self.stale += 1
            else:
                self.misses += 1

        if status == HIT:
            logger.debug(f"Cache HIT: {key}")
            track_cache_hit(self.cache_type)
        elif status == STALE:
            logger.debug(f"Cache STALE: {key}")
            track_cache_stale(self.cache_type)
        else:
            logger.debug(f"Cache MISS: {key}")
            track_cache_miss(self.cache_type)

    def _store(self, key: CacheKey, results: Tuple[ScoredItem, ...]):
        """Insert an entry; the caller holds the map lock."""
        if len(self._entries) >= self.max_entries and key not in self._entries:
            self.evictions += 1
            track_cache_eviction(self.cache_type)

        self._entries[key] = CacheEntry(key=key, results=results, created_at=self._clock())
        update_cache_size(self.cache_type, len(self._entries))
        logger.debug(f"Cached: {key} ({len(results)} results, TTL: {self.ttl_seconds}s)")
