"""
In-process TTL cache for backend responses.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass
class CacheEntry:
    """A cached value and the clock reading at which it stops being valid."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Expired from ``expires_at`` on, so a read exactly TTL seconds after the write misses."""
        return now >= self.expires_at


class ResponseCache:
    """Best-effort, single-process memoization of backend reads.

    Entries expire ``ttl_seconds`` after they are set and are evicted lazily
    on the next lookup. Keys are built by callers; the cache treats them as
    opaque strings. Nothing here raises: a miss, an expired entry and a key
    that was never set all look the same to the caller.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 metrics: Optional["MetricsCollector"] = None):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.metrics = metrics
        self.logger = get_logger("console.cache")

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key``, replacing any existing entry."""
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``."""
        entry = self._entries.get(key)
        if entry is None:
            self._record("miss")
            return default

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._record("expired")
            self.logger.debug("Cache entry expired", key=key)
            return default

        self._record("hit")
        return entry.value

    def invalidate(self, key: str) -> None:
        """Drop ``key`` if present."""
        if self._entries.pop(key, None) is not None:
            self.logger.debug("Invalidated cache entry", key=key)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``."""
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        if stale:
            self.logger.debug("Invalidated cache entries", prefix=prefix, count=len(stale))
        return len(stale)

    def clear(self) -> None:
        """Drop all entries."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("response_cache_lookups_total", result=result)
