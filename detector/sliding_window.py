"""Sliding window of timestamps for one entity key.

Used by the state store to track recent activity per key (e.g. refused
connections per source IP).  Deque-based: O(1) append, amortized O(1)
eviction.  Not thread-safe on its own — EntityStateStore holds the lock.
"""

import bisect
import time
from collections import deque


class SlidingWindow:
    __slots__ = ("max_age", "_buf")

    def __init__(self, max_age_seconds: float):
        self.max_age = max_age_seconds
        self._buf: deque[float] = deque()

    def add(self, timestamp: float, now: float | None = None) -> bool:
        """Append a timestamp. Returns False (and drops) if already expired."""
        if now is None:
            now = time.time()
        self._evict(now)
        if timestamp < now - self.max_age:
            return False
        # Callers on different threads can hand in slightly out-of-order
        # timestamps; keep the buffer sorted so head eviction stays exact.
        if not self._buf or timestamp >= self._buf[-1]:
            self._buf.append(timestamp)
        else:
            bisect.insort(self._buf, timestamp)
        return True

    def count(self, window_seconds: float, now: float | None = None) -> int:
        """Number of timestamps strictly newer than now - window_seconds."""
        if now is None:
            now = time.time()
        self._evict(now)
        cutoff = now - window_seconds
        return len(self._buf) - bisect.bisect_right(self._buf, cutoff)

    def _evict(self, now: float) -> None:
        cutoff = now - self.max_age
        while self._buf and self._buf[0] < cutoff:
            self._buf.popleft()

    def __len__(self) -> int:
        return len(self._buf)
