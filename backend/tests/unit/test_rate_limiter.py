"""
Unit tests for the rolling-window rate limiter.
"""
import asyncio
import time

import pytest

from playscanner.services.providers.rate_limiter import RateLimiter


class TestWindow:
    def test_fractional_rate_widens_window(self):
        limiter = RateLimiter(0.5)
        assert limiter.max_requests == 1
        assert limiter.window_seconds == 2.0

    def test_integer_rate(self):
        limiter = RateLimiter(10)
        assert limiter.max_requests == 10
        assert limiter.window_seconds == 1.0

    def test_non_positive_rate(self):
        with pytest.raises(ValueError):
            RateLimiter(0)


class TestReservation:
    def test_wait_once_window_is_full(self):
        limiter = RateLimiter(2)
        assert limiter._reserve() == 0.0
        assert limiter._reserve() == 0.0
        delay = limiter._reserve()
        assert 0.9 < delay <= 1.0

    def test_in_window_counts(self):
        limiter = RateLimiter(5)
        for _ in range(3):
            limiter._reserve()
        assert limiter.in_window() == 3

    def test_limit_spaces_requests(self):
        limiter = RateLimiter(20)  # 20 per second

        async def burst():
            started = time.monotonic()
            for _ in range(21):
                await limiter.limit()
            return time.monotonic() - started

        elapsed = asyncio.run(burst())
        assert elapsed >= 0.9
