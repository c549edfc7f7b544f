"""Per-entity detection state shared by every evaluating thread.

Two kinds of state, both keyed by composite entity keys such as
``"ip:203.0.113.9"`` or ``"user:alice"``:

  counters — lifetime totals (failed logins, user activity).  Never windowed;
             they only go away on reset().
  windows  — timestamp sequences pruned to the retention window (1 hour)
             on every read and write.

Locking is striped by key hash so two threads hammering different IPs don't
serialize on one lock, while two threads on the same IP never lose an
increment.
"""

import threading
import time
from collections import defaultdict

from detector.sliding_window import SlidingWindow

RETENTION_SECONDS = 3600
_STRIPES = 16


class EntityStateStore:

    def __init__(self, retention_seconds: float = RETENTION_SECONDS,
                 stripes: int = _STRIPES):
        self.retention_seconds = retention_seconds
        self._locks = [threading.Lock() for _ in range(stripes)]
        self._counts: dict[str, int] = defaultdict(int)
        self._windows: dict[str, SlidingWindow] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    # ------------------------------------------------------------------
    # Lifetime counters
    # ------------------------------------------------------------------

    def increment_count(self, key: str) -> int:
        """Atomically add one to key's total and return the new total."""
        with self._lock_for(key):
            self._counts[key] += 1
            return self._counts[key]

    def get_count(self, key: str) -> int:
        with self._lock_for(key):
            return self._counts.get(key, 0)

    # ------------------------------------------------------------------
    # Timestamp windows
    # ------------------------------------------------------------------

    def record_timestamp(self, key: str, when: float | None = None) -> None:
        """Append `when` (epoch seconds, default now) and prune past retention."""
        now = time.time()
        if when is None:
            when = now
        with self._lock_for(key):
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = SlidingWindow(self.retention_seconds)
            window.add(when, now)
            if not window:
                # everything aged out, including this timestamp
                del self._windows[key]

    def count_within_window(self, key: str, window_seconds: float) -> int:
        now = time.time()
        with self._lock_for(key):
            window = self._windows.get(key)
            if window is None:
                return 0
            count = window.count(window_seconds, now)
            if not window:
                del self._windows[key]
            return count

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Hard reset: drop every counter and window."""
        for lock in self._locks:
            lock.acquire()
        try:
            self._counts.clear()
            self._windows.clear()
        finally:
            for lock in reversed(self._locks):
                lock.release()

    def counter_keys(self, prefix: str = "") -> int:
        """Number of counter keys, optionally only those starting with prefix."""
        return sum(1 for k in list(self._counts) if k.startswith(prefix))

    def window_keys(self) -> int:
        return len(self._windows)
