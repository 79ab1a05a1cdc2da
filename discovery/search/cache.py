"""Time-boxed in-memory cache for provider responses."""

import logging
import threading
import time
from typing import Any, Callable

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_MAX_ENTRIES = 1000
EVICT_FRACTION = 0.2


class ResponseCache:
    """Named TTL cache with coarse "drop the stalest fifth" eviction.

    Expiry is handled by a cachetools ``TTLCache`` driven by ``clock``.
    Values are stored as (payload, stored_at) so that, when an insert would
    overflow ``max_entries``, the oldest 20 % by write time are removed in a
    single pass instead of one LRU entry at a time.
    """

    def __init__(
        self,
        name: str,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl, timer=clock)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached payload, or None if absent or expired."""
        with self._lock:
            self._entries.expire()
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
        return _copy(entry[0])

    def set(self, key: str, payload: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries.expire()
            if len(self._entries) >= self.max_entries:
                self._evict_stalest()
            self._entries[key] = (_copy(payload), self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def stats(self) -> dict:
        with self._lock:
            self._entries.expire()
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
            }

    def _evict_stalest(self) -> None:
        # Caller holds the lock
        count = max(1, int(self.max_entries * EVICT_FRACTION))
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1][1])[:count]
        for key, _ in oldest:
            del self._entries[key]
        logger.debug("Cache %s evicted %d stale entries", self.name, len(oldest))


def _copy(payload: Any) -> Any:
    # Records are frozen; copying the container is enough to avoid aliasing
    if isinstance(payload, list):
        return list(payload)
    return payload
