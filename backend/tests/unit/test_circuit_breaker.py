"""
Unit tests for the collector circuit breaker.
"""
import pytest

from playscanner.services.collector.circuit_breaker import CircuitBreaker


@pytest.fixture
def breaker(clock):
    return CircuitBreaker(failure_threshold=3, cooldown=60, clock=clock)


class TestCircuitBreaker:
    def test_starts_closed(self, breaker):
        assert breaker.state == "closed"
        assert not breaker.is_open()

    def test_opens_at_threshold(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        assert not breaker.is_open()
        breaker.record_failure()
        assert breaker.is_open()
        assert breaker.state == "open"

    def test_success_resets(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        assert breaker.failures == 1
        assert not breaker.is_open()

    def test_half_open_after_cooldown(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(30)
        assert breaker.is_open()
        clock.advance(31)
        assert not breaker.is_open()
        assert breaker.state == "half-open"

    def test_half_open_success_closes(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(61)
        breaker.is_open()
        breaker.record_success()
        assert breaker.state == "closed"
        assert breaker.failures == 0

    def test_half_open_failure_reopens(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(61)
        breaker.is_open()
        breaker.record_failure()
        assert breaker.is_open()


class TestDefaults:
    def test_five_failures_open_then_half_open(self, clock):
        breaker = CircuitBreaker(clock=clock)
        for _ in range(4):
            breaker.record_failure()
        assert not breaker.is_open()
        breaker.record_failure()
        assert breaker.is_open()
        clock.advance(60.5)
        assert not breaker.is_open()
        breaker.record_success()
        assert breaker.failures == 0
        assert breaker.state == "closed"
