"""In-memory sliding-window admission control for generation requests.

Each caller id owns a deque of admission timestamps (milliseconds). Only
admitted attempts are recorded, so rejected calls never count toward future
admission. State lives for the lifetime of the process and is not shared
between processes.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Optional

from app.core.config import RateLimitSettings

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """Per-caller sliding-window rate limiter."""

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_ms: int = 60 * 60 * 1000,
        clock: Optional[Clock] = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock: Clock = clock or _monotonic_ms
        self._requests: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg: RateLimitSettings) -> "RateLimiter":
        return cls(max_requests=cfg.max_requests, window_ms=cfg.window_ms)

    def _prune(self, entry: deque[float], now: float) -> None:
        # Timestamps are appended in clock order, so expired ones sit at the left
        while entry and now - entry[0] >= self.window_ms:
            entry.popleft()

    def check_and_record(self, caller_id: str) -> bool:
        """Return True and record the attempt if the caller is under quota."""
        with self._lock:
            now = self._clock()
            entry = self._requests.setdefault(caller_id, deque())
            self._prune(entry, now)
            if len(entry) >= self.max_requests:
                return False
            entry.append(now)
            return True

    def remaining(self, caller_id: str) -> int:
        """Admissions left for the caller in the current window."""
        with self._lock:
            entry = self._requests.get(caller_id)
            if not entry:
                return self.max_requests
            now = self._clock()
            active = sum(1 for ts in entry if now - ts < self.window_ms)
            return max(0, self.max_requests - active)

    def retry_after_ms(self, caller_id: str) -> int:
        """Milliseconds until the oldest counted admission leaves the window.

        Returns 0 when the caller could be admitted right now.
        """
        with self._lock:
            entry = self._requests.get(caller_id)
            if not entry:
                return 0
            now = self._clock()
            active = [ts for ts in entry if now - ts < self.window_ms]
            if len(active) < self.max_requests:
                return 0
            oldest = active[len(active) - self.max_requests]
            return max(0, int(oldest + self.window_ms - now))

    def clear(self, caller_id: str) -> None:
        with self._lock:
            self._requests.pop(caller_id, None)

    def clear_all(self) -> None:
        with self._lock:
            self._requests.clear()
