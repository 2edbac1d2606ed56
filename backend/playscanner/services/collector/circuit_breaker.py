"""Consecutive-failure circuit breaker shared by all tasks of a collector."""
import logging
import threading
import time
from typing import Callable, Literal

from playscanner.core.constants import CIRCUIT_COOLDOWN_SECONDS, CIRCUIT_FAILURE_THRESHOLD

logger = logging.getLogger(__name__)

State = Literal["closed", "open", "half-open"]


class CircuitBreaker:
    """
    closed -> open after `failure_threshold` consecutive failures. While open, is_open() is
    True until `cooldown` seconds have passed since the last failure; the next is_open() then
    moves to half-open and lets one call through. Any success resets to closed.
    """

    def __init__(
        self,
        failure_threshold: int = CIRCUIT_FAILURE_THRESHOLD,
        cooldown: float = CIRCUIT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._last_failure_at = 0.0
        self._state: State = "closed"

    def record_success(self) -> None:
        with self._lock:
            if self._state != "closed":
                logger.info("Circuit breaker closed after successful call")
            self._failures = 0
            self._state = "closed"

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_at = self._clock()
            if self._failures >= self.failure_threshold and self._state != "open":
                logger.warning("Circuit breaker opened after %s consecutive failures", self._failures)
                self._state = "open"

    def is_open(self) -> bool:
        with self._lock:
            if self._state != "open":
                return False
            if self._clock() - self._last_failure_at > self.cooldown:
                self._state = "half-open"
                return False
            return True

    @property
    def state(self) -> State:
        with self._lock:
            return self._state

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures
