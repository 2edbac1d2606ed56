"""Success/failure counters for a collector. Thread-safe; one instance per collector."""
import threading
from typing import Any


class CollectionMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._successes = 0
        self._failures = 0
        self._total_execution_ms = 0

    def record_success(self, execution_ms: int) -> None:
        with self._lock:
            self._successes += 1
            self._total_execution_ms += execution_ms

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            total = self._successes + self._failures
            return {
                "total_requests": total,
                "successes": self._successes,
                "failures": self._failures,
                "success_rate": (self._successes / total * 100) if total else 0.0,
                "average_execution_time": (self._total_execution_ms / self._successes) if self._successes else 0.0,
            }
