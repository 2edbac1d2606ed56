"""
Rolling-window rate limiter for outbound provider requests.

Slots are reserved under a threading lock and the caller sleeps outside it, so one limiter
can be shared by concurrent tasks, threads and event loops. Callers are served in call order.
"""
import asyncio
import logging
import math
import threading
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    At most N requests per rolling window. Fractional rates widen the window instead:
    0.5 req/s becomes 1 request per 2 seconds.
    """

    def __init__(self, requests_per_second: float) -> None:
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self.max_requests = max(1, math.floor(requests_per_second))
        self.window_seconds = self.max_requests / requests_per_second
        self._requests: list[float] = []
        self._lock = threading.Lock()

    def _reserve(self) -> float:
        """Record the next permitted send time; return how long the caller must wait."""
        with self._lock:
            now = time.monotonic()
            cutoff = now - self.window_seconds
            self._requests = [t for t in self._requests if t > cutoff]
            if len(self._requests) >= self.max_requests:
                # Window saturated: go when the oldest request that still counts leaves it
                send_at = self._requests[-self.max_requests] + self.window_seconds
            else:
                send_at = now
            self._requests.append(send_at)
            return max(0.0, send_at - now)

    async def limit(self) -> None:
        """Suspend until another request fits in the window."""
        delay = self._reserve()
        if delay > 0:
            logger.debug("Rate limiter: waiting %.2fs", delay)
            await asyncio.sleep(delay)

    def in_window(self) -> int:
        with self._lock:
            cutoff = time.monotonic() - self.window_seconds
            return sum(1 for t in self._requests if t > cutoff)
