"""
Time-bounded search result cache.

Entries are keyed by ``(user_id, normalized_query)`` and live for a fixed TTL.

Features:
- Thread-safe operations with RLock
- Lazy expiry on lookup plus a periodic background sweep
- Per-user invalidation when a user's deals, contacts or events change
- Bounded size with oldest-first eviction
- Injectable clock for deterministic tests

The cache is an ordinary object: create one at startup, hand it to the
orchestrator, and ``stop()`` it at shutdown.
"""

from collections import OrderedDict
from collections.abc import Callable
import logging
from threading import Event, RLock, Thread
import time
from typing import Generic, Self, TypeAlias, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0

CacheKey: TypeAlias = tuple[str, str]

V = TypeVar("V")


def normalize_query(query: str) -> str:
    """Cache-key form of a query: lower-cased and trimmed."""
    return query.lower().strip()


class SearchCache(Generic[V]):
    """
    Thread-safe TTL cache for search results.

    Example:
        >>> cache = SearchCache[dict](ttl=300)
        >>> cache.put("user-1", "High value deals ", {"deals": []})
        >>> cache.get("user-1", "high value deals")
        {'deals': []}
        >>> cache.invalidate_user("user-1")
        >>> cache.get("user-1", "high value deals") is None
        True
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl: Entry lifetime in seconds
            sweep_interval: Seconds between background expiry sweeps
            max_entries: Capacity; the oldest entry is evicted when full
            clock: Monotonic time source in seconds
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self._entries: OrderedDict[CacheKey, tuple[V, float]] = OrderedDict()
        self._ttl = ttl
        self._sweep_interval = sweep_interval
        self._max_entries = max_entries
        self._clock = clock
        self._lock = RLock()

        self._stop_event = Event()
        self._sweeper: Thread | None = None

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expired = 0

    def get(self, user_id: str, query: str) -> V | None:
        """
        Return the cached value for ``(user_id, query)`` or None on a miss.

        An expired entry is a miss; it is left for the sweep to remove.
        """
        key = (user_id, normalize_query(query))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                self._misses += 1
                return None

            self._hits += 1
            return value

    def put(self, user_id: str, query: str, value: V) -> None:
        """Insert or overwrite an entry; it expires ``ttl`` seconds from now."""
        key = (user_id, normalize_query(query))
        with self._lock:
            expires_at = self._clock() + self._ttl

            if key in self._entries:
                self._entries[key] = (value, expires_at)
                self._entries.move_to_end(key)
                return

            if len(self._entries) >= self._max_entries:
                self._evict_oldest()

            self._entries[key] = (value, expires_at)

    def invalidate_user(self, user_id: str) -> int:
        """
        Remove every entry belonging to ``user_id``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [key for key in self._entries if key[0] == user_id]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.debug("Invalidated %d cached searches for user %s", len(stale), user_id)
        return len(stale)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expired = 0

    def sweep(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            self._expired += len(expired)

        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    def _evict_oldest(self) -> None:
        """Evict the least recently written entry."""
        if not self._entries:
            return
        self._entries.popitem(last=False)
        self._evictions += 1

    def start(self) -> None:
        """Start the background sweep thread (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return

        self._stop_event.clear()
        self._sweeper = Thread(
            target=self._sweep_loop,
            name="flowsearch-cache-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.info(
            "Search cache sweeper started (ttl=%ss, interval=%ss)",
            self._ttl,
            self._sweep_interval,
        )

    def stop(self) -> None:
        """Stop the background sweep thread and wait for it to exit."""
        if self._sweeper is None:
            return

        self._stop_event.set()
        self._sweeper.join(timeout=self._sweep_interval + 1)
        self._sweeper = None
        logger.info("Search cache sweeper stopped")

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Search cache sweep failed")

    @property
    def running(self) -> bool:
        """Whether the background sweeper is alive."""
        return self._sweeper is not None and self._sweeper.is_alive()

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        """Number of stored entries, expired ones included until swept."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        user_id, query = key
        with self._lock:
            return (user_id, normalize_query(query)) in self._entries

    @property
    def stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dict with size, hits, misses, evictions, expired, hit_rate
        """
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0

            return {
                "size": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expired": self._expired,
                "hit_rate": f"{hit_rate:.2f}%",
            }

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
