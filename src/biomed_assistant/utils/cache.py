"""
In-memory TTL cache for completed literature lookups.

One ``ResultCache`` is built at process start and handed to whichever client
needs it. Entries expire lazily on read and are also removed by a periodic
sweep so keys that are never read again do not accumulate forever.
"""

import asyncio
import logging
import re
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from biomed_assistant.constants import CACHE_SWEEP_INTERVAL, CACHE_TTL

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    """Lower-case, trim and collapse whitespace runs to single spaces."""
    return _WHITESPACE_RE.sub(" ", query.lower().strip())


def cache_key(query: str, max_results: int) -> str:
    """Return the cache key for a query and result limit."""
    return f"{normalize_query(query)}:{max_results}"


@dataclass
class CacheEntry:
    key: str
    value: Any
    timestamp: float


class ResultCache:
    """Thread-safe TTL map. No size bound; expiry is the only eviction."""

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                logger.debug("Cache expired for %s", key)
                return None
        logger.debug("Cache hit for %s", key)
        return entry.value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, timestamp=self._clock())

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Cache sweep removed %d entries", len(stale))
        return len(stale)

    def stats(self) -> dict[str, Any]:
        """Entry counts split by freshness, plus the TTL in hours."""
        with self._lock:
            now = self._clock()
            expired = sum(1 for e in self._entries.values() if self._expired(e, now))
            total = len(self._entries)
        return {
            "total_entries": total,
            "valid_entries": total - expired,
            "expired_entries": expired,
            "cache_ttl_hours": self.ttl / 3600,
        }

    def clear(self) -> int:
        """Drop every entry and return how many there were."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cache cleared (%d entries)", count)
        return count

    async def run_sweeper(self, interval: float = CACHE_SWEEP_INTERVAL) -> None:
        """Sweep every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.sweep()
