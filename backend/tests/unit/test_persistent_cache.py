"""
Unit tests for the database-backed availability cache.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from playscanner.models import VenueRow
from playscanner.services.cache.persistent import (
    CollectionLogEntry,
    PersistentCacheService,
    format_cache_age,
)
from playscanner.services.providers.types import SearchParams
from tests.conftest import make_slot, make_venue


@pytest.fixture
def cache(session_factory):
    return PersistentCacheService(session_factory, default_ttl=1800, retry_delay=0)


@pytest.fixture
def broken_cache():
    """Database with no tables: every query fails."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    yield PersistentCacheService(sessionmaker(bind=engine), retry_delay=0)
    engine.dispose()


def _params(**overrides) -> SearchParams:
    base = {"sport": "padel", "location": "London", "date": "2025-06-01"}
    base.update(overrides)
    return SearchParams(**base)


class TestFormatCacheAge:
    NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_buckets(self):
        assert format_cache_age(self.NOW - timedelta(seconds=20), self.NOW) == "fresh"
        assert format_cache_age(self.NOW - timedelta(minutes=5), self.NOW) == "5m old"
        assert format_cache_age(self.NOW - timedelta(minutes=150), self.NOW) == "2h old"

    def test_naive_is_utc(self):
        naive = (self.NOW - timedelta(minutes=3)).replace(tzinfo=None)
        assert format_cache_age(naive, self.NOW) == "3m old"

    def test_unknown(self):
        assert format_cache_age(None) == "unknown"


class TestReadWrite:
    def test_roundtrip(self, cache):
        slots = [make_slot(price=3000), make_slot(venue_id="v2", start="2025-06-01T16:00", price=4000)]
        cache.set_cached_data("London", "2025-06-01", slots)
        loaded = cache.get_cached_data("london", "2025-06-01")
        assert [s.id for s in loaded] == [s.id for s in slots]
        assert loaded[0].start_time == slots[0].start_time
        assert loaded[1].venue.id == "v2"

    def test_miss(self, cache):
        assert cache.get_cached_data("London", "2030-01-01") is None

    def test_expired_is_miss(self, cache):
        cache.set_cached_data("London", "2025-06-01", [make_slot()], ttl=-1)
        assert cache.get_cached_data("London", "2025-06-01") is None

    def test_overwrite_replaces_slots(self, cache):
        cache.set_cached_data("London", "2025-06-01", [make_slot(), make_slot(start="2025-06-01T16:00")])
        cache.set_cached_data("London", "2025-06-01", [make_slot(price=9999)])
        loaded = cache.get_cached_data("London", "2025-06-01")
        assert len(loaded) == 1
        assert loaded[0].price == 9999
        assert cache.get_cache_stats()["total_entries"] == 1

    def test_cache_age_fresh(self, cache):
        cache.set_cached_data("London", "2025-06-01", [make_slot()])
        assert cache.get_cache_age("London", "2025-06-01") == "fresh"
        assert cache.get_cache_age("Paris", "2025-06-01") == "unknown"


class TestSearch:
    def test_filters_and_sorts(self, cache):
        slots = [
            make_slot(venue_id="a", start="2025-06-01T19:00", price=3000),
            make_slot(venue_id="b", start="2025-06-01T18:00", price=5000),
            make_slot(venue_id="c", start="2025-06-01T18:00", price=2500),
        ]
        cache.set_cached_data("London", "2025-06-01", slots)
        result = cache.search(_params(max_price=4500))
        assert result.source == "cached"
        assert [s.venue.id for s in result.results] == ["c", "a"]
        assert result.total_results == 2
        assert result.providers == ["playtomic"]
        assert result.cache_age == "fresh"

    def test_empty(self, cache):
        result = cache.search(_params(location="Nowhere"))
        assert result.results == []
        assert result.cache_age == "empty"
        assert result.source == "cached"


class TestCollectionLog:
    def test_recent_and_success_rate(self, cache):
        for i, status in enumerate(["success", "success", "error", "success"]):
            cache.log_collection(
                CollectionLogEntry(
                    collection_id=f"c{i}", city="London", date="2025-06-01", status=status, slots_collected=10
                )
            )
        recent = cache.get_recent_collections(2)
        assert [r["collection_id"] for r in recent] == ["c3", "c2"]
        assert recent[0]["city"] == "london"
        assert cache.get_collection_success_rate(24) == 75.0

    def test_success_rate_without_history(self, cache):
        assert cache.get_collection_success_rate() == 0.0


class TestVenues:
    def test_store_venue_upserts(self, cache, session_factory):
        cache.store_venue(make_venue("v1", name="Old Name"), "London")
        cache.store_venue(make_venue("v1", name="New Name"), "London")
        with session_factory() as db:
            rows = db.query(VenueRow).all()
            assert len(rows) == 1
            assert rows[0].venue_name == "New Name"
            assert rows[0].city == "london"


class TestMaintenance:
    def test_cleanup(self, cache):
        cache.set_cached_data("London", "2025-06-01", [make_slot()], ttl=-1)
        cache.set_cached_data("London", "2025-06-02", [make_slot(start="2025-06-02T10:00")])
        assert cache.cleanup() == 1
        assert cache.get_cache_stats()["total_entries"] == 1

    def test_stats(self, cache):
        cache.set_cached_data("London", "2025-06-01", [make_slot(), make_slot(start="2025-06-01T16:00")])
        cache.set_cached_data("Manchester", "2025-06-02", [make_slot(start="2025-06-02T10:00")])
        stats = cache.get_cache_stats()
        assert stats["active_entries"] == 2
        assert stats["total_slots"] == 3
        assert stats["cities_covered"] == 2
        assert stats["date_range"] == {"oldest": "2025-06-01", "newest": "2025-06-02"}

    def test_health(self, cache):
        health = cache.health_check()
        assert health["healthy"] is True
        assert health["details"]["connection"] == "ok"


class TestDegradedDatabase:
    """Reads degrade to empty answers; only writes raise."""

    def test_reads_degrade(self, broken_cache):
        assert broken_cache.get_cached_data("London", "2025-06-01") is None
        assert broken_cache.get_cache_stats() == PersistentCacheService.default_stats()
        assert broken_cache.get_recent_collections() == []
        assert broken_cache.cleanup() == 0
        assert broken_cache.health_check()["healthy"] is False

    def test_log_and_venue_never_raise(self, broken_cache):
        broken_cache.log_collection(
            CollectionLogEntry(collection_id="x", city="London", date="2025-06-01", status="error")
        )
        broken_cache.store_venue(make_venue(), "London")

    def test_write_raises(self, broken_cache):
        with pytest.raises(SQLAlchemyError):
            broken_cache.set_cached_data("London", "2025-06-01", [make_slot()])
