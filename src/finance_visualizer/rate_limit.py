"""
Finance Visualizer - Rate Limiting

Request throttling is a component handed to the application factory rather
than module-level state. RateLimiter is the interface; FixedWindowRateLimiter
keeps its counters in process memory. A deployment running several instances
supplies an implementation backed by a shared store instead.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int


class RateLimiter(ABC):
    """Counts requests per client key."""

    @abstractmethod
    def hit(self, key):
        """Record one request for ``key`` and return its RateLimitStatus."""

    def reset(self):
        """Forget all counters."""


class FixedWindowRateLimiter(RateLimiter):
    """
    Allow ``max_requests`` per ``window_seconds`` for each key.

    A key's window starts at its first request and restarts on the first
    request after it has expired. Expired keys are pruned on every hit.
    """

    def __init__(self, window_seconds, max_requests, clock=time.monotonic):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.clock = clock
        self._windows = {}  # key -> [window_start, count]
        self._lock = threading.Lock()

    def hit(self, key):
        now = self.clock()
        with self._lock:
            expired = [k for k, (started, _) in self._windows.items() if now - started > self.window_seconds]
            for k in expired:
                del self._windows[k]

            window = self._windows.setdefault(key, [now, 0])
            window[1] += 1
            count = window[1]

        return RateLimitStatus(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
        )

    def reset(self):
        with self._lock:
            self._windows.clear()

