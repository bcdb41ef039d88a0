"""Fixed-window request rate limiting keyed by caller identity."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds when the current window ends


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Allows ``max_requests`` per ``window_seconds`` for each identifier.

    A window opens on an identifier's first request and all requests inside
    it share one counter. The next request after the window closes opens a
    fresh one.

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length in seconds.
        clock: Returns the current time in seconds; defaults to time.time.
    """

    def __init__(
        self,
        max_requests: int = 120,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str) -> RateLimitResult:
        """Count a request for ``identifier`` and decide whether to allow it."""
        with self._lock:
            now = self._clock()
            window = self._windows.get(identifier)

            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now, count=0)
                self._windows[identifier] = window

            reset_time = window.started_at + self.window_seconds

            if window.count >= self.max_requests:
                return RateLimitResult(allowed=False, remaining=0, reset_time=reset_time)

            window.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=self.max_requests - window.count,
                reset_time=reset_time,
            )

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._windows.pop(identifier, None)
