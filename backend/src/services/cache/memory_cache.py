"""In-memory key/value cache with per-key time-to-live."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Counters describing cache usage."""

    hits: int = 0
    misses: int = 0
    keys: int = 0
    evictions: int = 0


class MemoryCache:
    """Thread-safe TTL cache.

    Expired entries are never returned; they are physically removed either on
    access or by evict_expired(), which the CacheHandle runs periodically.
    """

    def __init__(
        self,
        default_ttl: float = 600.0,
        max_keys: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            default_ttl: Seconds an entry lives when set() gets no ttl (0 means forever)
            max_keys: Maximum number of entries (0 means unlimited)
            clock: Monotonic time source, injectable for tests
        """
        self.default_ttl = default_ttl
        self.max_keys = max_keys
        self._clock = clock
        self._entries: Dict[str, tuple] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """Store a value.

        Returns:
            False if the cache is full and the key is new, True otherwise
        """
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl if ttl > 0 else None
        with self._lock:
            if (
                self.max_keys
                and key not in self._entries
                and len(self._entries) >= self.max_keys
            ):
                logger.warning(f"Cache full ({self.max_keys} keys), rejecting {key}")
                return False
            self._entries[key] = (value, expires_at)
        return True

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry):
                del self._entries[key]
                self._stats.evictions += 1
                entry = None
            if entry is None:
                self._stats.misses += 1
                return default
            self._stats.hits += 1
            return entry[0]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry)

    def evict_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._expired(entry)]
            for key in expired:
                del self._entries[key]
            self._stats.evictions += len(expired)
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                keys=len(self._entries),
                evictions=self._stats.evictions,
            )

    def _expired(self, entry: tuple) -> bool:
        expires_at = entry[1]
        return expires_at is not None and expires_at <= self._clock()
