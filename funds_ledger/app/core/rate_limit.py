"""Fixed-window request limiter.

One limiter lives for the lifetime of the application: it is created in the
lifespan start-up hook, stored on ``app.state`` and reset on shutdown. Nothing
else holds a reference to its counters.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .errors import RateLimitExceeded


PURGE_INTERVAL_SECONDS = 60.0


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_purge = clock() + PURGE_INTERVAL_SECONDS

    def hit(self, identifier: str) -> None:
        """Count one request for ``identifier``; raise once the window is full."""
        now = self._clock()
        with self._lock:
            if now >= self._next_purge:
                self._purge(now)
            window = self._windows.get(identifier)
            if window is None or now >= window.reset_at:
                self._windows[identifier] = _Window(count=1, reset_at=now + self.window_seconds)
                return
            if window.count >= self.max_requests:
                raise RateLimitExceeded(retry_after=math.ceil(window.reset_at - now))
            window.count += 1

    def _purge(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_purge = now + PURGE_INTERVAL_SECONDS

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)
