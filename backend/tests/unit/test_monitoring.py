"""
Unit tests for component health summaries and scheduled jobs.
"""
import threading
from datetime import datetime, timedelta, timezone

import pytest

from playscanner.scheduler import collection_job
from playscanner.services.cache.persistent import CollectionLogEntry, PersistentCacheService
from playscanner.services.monitoring import (
    check_cache_health,
    check_collection_health,
    collection_summary,
    collection_trends,
    data_freshness,
)
from tests.conftest import make_slot


@pytest.fixture
def persistent(session_factory):
    return PersistentCacheService(session_factory, retry_delay=0)


def _log(cache, status, city="London"):
    cache.log_collection(
        CollectionLogEntry(collection_id="c", city=city, date="2025-06-01", status=status, slots_collected=5)
    )


class TestCollectionHealth:
    def test_healthy(self, persistent):
        for _ in range(4):
            _log(persistent, "success")
        health = check_collection_health(persistent)
        assert health["status"] == "healthy"
        assert health["success_rate"] == "100.0%"

    def test_degraded_below_80(self, persistent):
        for status in ("success", "success", "success", "error"):
            _log(persistent, status)
        assert check_collection_health(persistent)["status"] == "degraded"

    def test_unhealthy_below_50(self, persistent):
        for status in ("success", "error", "error"):
            _log(persistent, status)
        health = check_collection_health(persistent, detailed=True)
        assert health["status"] == "unhealthy"
        assert health["details"]["last_successful_collection"] is not None


class TestCacheHealth:
    def test_no_entries_is_degraded(self, persistent):
        health = check_cache_health(persistent)
        assert health["status"] == "degraded"
        assert health["warning"] == "No active cache entries found"

    def test_with_entries(self, persistent):
        persistent.set_cached_data("London", "2025-06-01", [make_slot()])
        health = check_cache_health(persistent, detailed=True)
        assert health["status"] == "healthy"
        assert health["details"]["total_slots"] == 1


class TestSummaries:
    def test_data_freshness(self):
        now = datetime.now(timezone.utc)
        assert data_freshness(None) == "unknown"
        assert data_freshness((now - timedelta(minutes=5)).isoformat()) == "fresh"
        assert data_freshness((now - timedelta(minutes=90)).isoformat()) == "recent"
        assert data_freshness((now - timedelta(hours=5)).isoformat()) == "stale"

    def test_summary_and_trends(self):
        rows = [
            {"city": "london", "status": "success", "slots_collected": 10, "execution_time_ms": 100},
            {"city": "london", "status": "error", "slots_collected": 0, "execution_time_ms": 50},
            {"city": "paris", "status": "success", "slots_collected": 4, "execution_time_ms": 300},
        ]
        summary = collection_summary(rows)
        assert summary["successful"] == 2
        assert summary["failed"] == 1
        assert summary["total_slots"] == 14
        assert summary["average_execution_time"] == 200.0
        assert collection_trends(rows)["by_city"]["london"] == {"success": 1, "error": 1}


class _Result:
    collection_id = "prod_1"
    status = "success"
    total_time = 5

    def to_dict(self):
        return {"status": self.status}


class _Collector:
    def __init__(self, started=None, release=None):
        self.started = started
        self.release = release

    async def collect_with_intelligence(self):
        if self.started is not None:
            self.started.set()
            self.release.wait(timeout=5)
        return _Result()


class TestScheduledJobs:
    def test_collection_job_returns_result(self):
        assert collection_job.run_collection_job(_Collector()) == {"status": "success"}

    def test_overlapping_run_skipped(self):
        started, release = threading.Event(), threading.Event()
        outcome = {}
        worker = threading.Thread(
            target=lambda: outcome.setdefault("first", collection_job.run_collection_job(_Collector(started, release)))
        )
        worker.start()
        assert started.wait(timeout=5)
        assert collection_job.run_collection_job(_Collector()) is None
        release.set()
        worker.join(timeout=5)
        assert outcome["first"] == {"status": "success"}

    def test_cleanup_job(self, persistent):
        persistent.set_cached_data("London", "2025-06-01", [make_slot()], ttl=-1)
        assert collection_job.run_cache_cleanup_job(persistent) == 1
