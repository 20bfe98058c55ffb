"""Fixed-window request counter, keyed so one instance can track many callers."""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict, Tuple

from .errors import RateLimitError


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        message: str = "Rate limit exceeded. Please wait before making more requests.",
    ):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive.")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        # key -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        # The Coinbase client is called from worker threads.
        self._guard = threading.Lock()

    def _current(self, key: str, now: float) -> Tuple[float, int]:
        start, count = self._windows.get(key, (now, 0))
        if now - start > self.window_seconds:
            return now, 0
        return start, count

    def acquire(self, key: str = "default") -> int:
        """Count one request; returns the requests left in the window."""
        with self._guard:
            now = self._clock()
            start, count = self._current(key, now)
            if count >= self.max_requests:
                self._windows[key] = (start, count)
                retry_after = math.ceil(self.window_seconds - (now - start))
                raise RateLimitError(self.message, retry_after=max(retry_after, 0))
            self._windows[key] = (start, count + 1)
            return self.max_requests - count - 1

    def remaining(self, key: str = "default") -> int:
        with self._guard:
            _, count = self._current(key, self._clock())
            return max(self.max_requests - count, 0)

    def reset(self, key: str | None = None) -> None:
        with self._guard:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
