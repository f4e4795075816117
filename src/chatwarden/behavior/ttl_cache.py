"""
Time-to-live cache for derived per-user behavior snapshots.

Entries are stamped on write and treated as missing once older than the
configured TTL. Expired entries are dropped lazily on read and in bulk by
:meth:`TTLCache.evict_expired`, which the periodic behavior sweep calls.
"""

from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar
import time

from chatwarden.util.logger import get_logger

logger = get_logger("ttl_cache")

V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    TTL-based key/value cache.

    Caches values with timestamps and expires entries after a configured
    time-to-live. The clock is injectable so tests can move time forward.
    """

    def __init__(self, ttl_seconds: float = 1800, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Time-to-live in seconds for cached entries (default: 1800)
            clock: Monotonic time source in seconds
        """
        self._cache: Dict[str, Tuple[float, V]] = {}
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def get(self, cache_key: str) -> Optional[V]:
        """
        Return the cached value if still fresh, None if expired or missing.
        """
        entry = self._cache.get(cache_key)
        if entry is None:
            return None

        timestamp, value = entry
        if self._clock() - timestamp < self._ttl_seconds:
            logger.debug("[CACHE] Hit for key: %s", cache_key)
            return value

        del self._cache[cache_key]
        logger.debug("[CACHE] Expired key: %s", cache_key)
        return None

    def set(self, cache_key: str, value: V) -> None:
        self._cache[cache_key] = (self._clock(), value)
        logger.debug("[CACHE] Set key: %s", cache_key)

    def invalidate(self, cache_key: Optional[str] = None) -> int:
        """
        Drop one key, or every entry when ``cache_key`` is None.

        Returns:
            Number of entries removed
        """
        if cache_key is None:
            count = len(self._cache)
            self._cache.clear()
            logger.debug("[CACHE] Cleared all %d entries", count)
            return count
        return 1 if self._cache.pop(cache_key, None) is not None else 0

    def evict_expired(self) -> int:
        """
        Remove every entry older than the TTL.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, (timestamp, _) in self._cache.items() if now - timestamp >= self._ttl_seconds]
        for key in expired:
            del self._cache[key]
        if expired:
            logger.debug("[CACHE] Evicted %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> Dict[str, float]:
        return {
            "size": len(self._cache),
            "ttl_seconds": self._ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._cache)
