"""
In-memory cache of search results for the interactive search box.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from app.api.models.search import SearchResultSet

logger = logging.getLogger(__name__)

CACHE_MAX_SIZE = 50
CACHE_TTL_SECONDS = 5 * 60


@dataclass
class CacheEntry:
    key: str
    data: SearchResultSet
    timestamp: float


def normalize_query(query: str) -> str:
    """Cache key for a query: trimmed and lower-cased."""
    return query.strip().lower()


class SearchCache:
    """
    Size-bounded, time-expiring search result cache.

    Eviction is insertion-ordered: when full, the entry stored longest
    ago goes first, however recently it was read.
    """

    def __init__(
        self,
        capacity: int = CACHE_MAX_SIZE,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: str) -> bool:
        return normalize_query(query) in self._entries

    def lookup(self, query: str) -> Optional[SearchResultSet]:
        """Cached results for ``query``, or None when absent or expired."""
        entry = self._entries.get(normalize_query(query))
        if entry and self._clock() - entry.timestamp < self.ttl_seconds:
            return entry.data
        return None

    def store(self, query: str, data: SearchResultSet) -> None:
        """Cache ``data`` under ``query``, making room first."""
        key = normalize_query(query)
        self.evict_stale()

        # Re-storing a key moves it to the newest position
        self._entries.pop(key, None)
        if len(self._entries) >= self.capacity:
            oldest_key, _ = self._entries.popitem(last=False)
            logger.debug("Search cache full, evicted %r", oldest_key)

        self._entries[key] = CacheEntry(key=key, data=data, timestamp=self._clock())

    def evict_stale(self) -> int:
        """Drop every entry older than the TTL. Returns how many were removed."""
        now = self._clock()
        stale = [
            key for key, entry in self._entries.items()
            if now - entry.timestamp > self.ttl_seconds
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
