"""Fixed-window per-client rate limiting."""
import math
import time
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single hit against the limiter."""

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        """Standard `RateLimit-*` response headers."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_seconds)
        return headers


class FixedWindowRateLimiter:
    """Count requests per client key inside fixed time windows.

    Counters are only touched from the event loop, so no locking is needed.
    Expired windows are swept from memory at most once per window.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # key -> (window start, request count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitResult:
        """Record one request for `key` and report whether it is allowed."""
        now = self._clock()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)

        reset = max(0, math.ceil(start + self.window_seconds - now))
        return RateLimitResult(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_seconds=reset,
        )

    def _sweep(self, now: float) -> None:
        """Drop every window that has expired."""
        self._windows = {
            key: (start, count)
            for key, (start, count) in self._windows.items()
            if now - start < self.window_seconds
        }
        self._last_sweep = now

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        self._windows.clear()
