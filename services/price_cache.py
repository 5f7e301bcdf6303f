"""
Process-wide price cache and provider rate limiter.

Both are plain objects built once per process and handed to
MarketDataService; neither is a module-level global. No locking:
concurrent writers race and the last one wins, which is fine for
idempotent quote fetches.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the clock reading when it was stored."""
    value: Any
    stored_at: float


class PriceCache:
    """
    Key -> value cache with a freshness window per entry.

    Stale entries are kept: callers fall back to them when a fresh fetch
    is impossible.
    """

    def __init__(self, ttl_seconds: float = 20.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get_fresh(self, key: str) -> Optional[Any]:
        """Value stored less than ``ttl_seconds`` ago, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at < self.ttl_seconds:
            return entry.value
        return None

    def get_last_known(self, key: str) -> Optional[Any]:
        """Most recent value regardless of age."""
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()


class SlidingWindowRateLimiter:
    """
    Allows at most ``max_calls`` per ``window_seconds`` for each key.

    Each key (one per upstream provider) keeps the timestamps of granted
    calls; a call is granted when fewer than ``max_calls`` fall inside the
    trailing window. Capacity refills continuously as old calls age out.
    """

    def __init__(
        self,
        max_calls: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._calls: Dict[str, Deque[float]] = {}

    def _prune(self, key: str, now: float) -> Deque[float]:
        calls = self._calls.setdefault(key, deque())
        while calls and now - calls[0] >= self.window_seconds:
            calls.popleft()
        return calls

    def try_acquire(self, key: str) -> bool:
        """Record a call for ``key`` and return True, or return False when the window is full."""
        now = self._clock()
        calls = self._prune(key, now)
        if len(calls) < self.max_calls:
            calls.append(now)
            return True
        logger.debug(f"Rate limit reached for {key}: {len(calls)} calls in {self.window_seconds}s")
        return False
