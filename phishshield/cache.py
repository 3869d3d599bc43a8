"""Verdict cache for PhishShield.

Holds the most recent classification result per URL so repeated tab events
do not hit the classification service again.

Supports:
- Case-insensitive URL keys
- TTL expiry (expired entries read as absent, purged on the next sweep)
- Capacity bound with batch eviction of the oldest half
- Thread-safe operations
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

from .utils.clock import Clock, SystemClock
from .utils.urls import cache_key

if TYPE_CHECKING:
    from .models import Verdict

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_SIZE = 1000


class VerdictEntry:
    """Represents a cached verdict with the time it was stored."""

    __slots__ = ("key", "verdict", "stored_at")

    def __init__(self, key: str, verdict: Verdict, stored_at: float):
        self.key = key
        self.verdict = verdict
        self.stored_at = stored_at

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        """Check if this entry has outlived the TTL."""
        return self.age(now) > ttl_seconds


class VerdictCache:
    """
    In-memory verdict store bounded by age and size.

    Usage:
        cache = VerdictCache(ttl_seconds=300, max_size=1000)

        cache.put("https://Example.com/", verdict)
        entry = cache.get("https://example.com/")

    When a put leaves more than `max_size` entries, the oldest entries by
    store time are dropped until `max_size // 2` remain. This is a batch
    sweep, not per-insert LRU.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the verdict cache.

        Args:
            ttl_seconds: Maximum age before an entry reads as absent
            max_size: Maximum number of entries held at once
            clock: Time source; defaults to the monotonic system clock
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 2:
            raise ValueError("max_size must be at least 2")

        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.clock = clock or SystemClock()

        self._entries: Dict[str, VerdictEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return self.get(url) is not None

    def get(self, url: str) -> Optional[VerdictEntry]:
        """
        Get the cached entry for a URL if present and fresh.

        Args:
            url: URL in any letter case

        Returns:
            The entry, or None if not found or older than the TTL
        """
        key = cache_key(url)
        now = self.clock.now()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now, self.ttl_seconds):
                self._misses += 1
                return None
            self._hits += 1
            return entry

    def put(self, url: str, verdict: Verdict) -> VerdictEntry:
        """
        Store a verdict, replacing any previous entry for the URL.

        Args:
            url: URL in any letter case
            verdict: Result to cache

        Returns:
            The stored entry
        """
        key = cache_key(url)
        entry = VerdictEntry(key=key, verdict=verdict, stored_at=self.clock.now())

        with self._lock:
            # Re-insert so iteration order follows store order
            self._entries.pop(key, None)
            self._entries[key] = entry
            self.sweep_expired()
            if len(self._entries) > self.max_size:
                self._evict_oldest_half()

        return entry

    def sweep_expired(self) -> int:
        """Remove every entry older than the TTL. Returns the number removed."""
        now = self.clock.now()
        with self._lock:
            expired = [
                key for key, entry in self._entries.items()
                if entry.is_expired(now, self.ttl_seconds)
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("Swept %d expired verdicts", len(expired))
        return len(expired)

    def _evict_oldest_half(self) -> None:
        target = self.max_size // 2
        ordered = sorted(self._entries.values(), key=lambda e: e.stored_at)
        drop = ordered[: len(ordered) - target]
        for entry in drop:
            del self._entries[entry.key]
        self._evictions += len(drop)
        logger.debug("Cache over capacity; evicted %d oldest verdicts", len(drop))

    def clear(self) -> None:
        """Drop all cached verdicts."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
