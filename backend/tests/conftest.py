# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from playscanner.db.base import Base
from playscanner.models import CacheEntryRow, CollectionLog, VenueRow  # noqa: F401
from playscanner.services.providers.types import (
    CourtSlot,
    PadelMeta,
    SlotFeatures,
    Venue,
    VenueLocation,
    generate_slot_id,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_venue(venue_id: str = "v1", name: str = "Padel Club", city: str = "London") -> Venue:
    return Venue(
        id=venue_id,
        name=name,
        provider="playtomic",
        location=VenueLocation(city=city),
    )


def make_slot(
    venue_id: str = "v1",
    start: str = "2025-06-01T14:00",
    duration: int = 90,
    price: int = 3000,
    indoor: bool = True,
    court_type: str = "indoor",
    resource_id: str | None = None,
) -> CourtSlot:
    start_time = datetime.fromisoformat(start).replace(tzinfo=timezone.utc)
    return CourtSlot(
        id=generate_slot_id("playtomic", venue_id, start_time, resource_id),
        sport="padel",
        provider="playtomic",
        venue=make_venue(venue_id),
        start_time=start_time,
        end_time=start_time + timedelta(minutes=duration),
        duration=duration,
        price=price,
        booking_url=f"https://playtomic.com/clubs/{venue_id}",
        features=SlotFeatures(indoor=indoor),
        sport_meta=PadelMeta(court_type=court_type),
        last_updated=datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def session_factory():
    """In-memory SQLite shared across threads, with all PLAYScanner tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


class FakeProvider:
    """
    In-memory ProviderAdapter. `responses` is consumed one per fetch: a list of slots is
    returned, an exception is raised. When exhausted, `default` is returned.
    """

    def __init__(self, name="fake", responses=None, default=None, sports=("padel",), delay=0.0, healthy=True):
        self.name = name
        self.sports = sports
        self.regions = ("uk",)
        self.rate_limit = 1000.0
        self.responses = list(responses or [])
        self.default = default if default is not None else []
        self.delay = delay
        self.healthy = healthy
        self.calls = []

    async def fetch_availability(self, params):
        import asyncio

        self.calls.append(params)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.responses.pop(0) if self.responses else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def get_venue_details(self, venue_id):
        return make_venue(venue_id)

    async def health_check(self):
        return self.healthy

    def get_booking_url(self, venue_id, *args, **kwargs):
        return f"https://example.test/{venue_id}"
