"""
Unit tests for the Playtomic provider against a mocked HTTP transport.
"""
import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from playscanner.core.errors import ProviderError, ScrapingError
from playscanner.services.playtomic import config as playtomic_config
from playscanner.services.playtomic.client import PlaytomicClient
from playscanner.services.providers.playtomic_provider import PlaytomicProvider
from playscanner.services.providers.types import SearchParams

BASE = "https://playtomic.com"


def _tenant(tenant_id, name, status="ACTIVE"):
    return {
        "tenant_id": tenant_id,
        "tenant_uid": f"{tenant_id}-club",
        "tenant_name": name,
        "playtomic_status": status,
        "address": {"city": "London", "coordinate": {"lat": 51.5, "lon": -0.1}},
        "resources": [{"resource_id": "r1", "properties": {"resource_type": "indoor"}}],
    }


def _availability(*slots):
    return [
        {
            "resource_id": "r1",
            "slots": [{"start_time": t, "duration": 90, "price": p} for t, p in slots],
        }
    ]


class FakePlaytomic:
    """Routes requests by path; records every request."""

    def __init__(self, tenants=None, availability=None, pages=None, tenants_status=200):
        self.tenants = tenants if tenants is not None else []
        self.availability = availability or {}
        self.pages = pages or {}
        self.tenants_status = tenants_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/v1/tenants":
            if self.tenants_status != 200:
                return httpx.Response(self.tenants_status)
            return httpx.Response(200, json=self.tenants)
        if path.startswith("/api/v1/tenants/"):
            tenant_id = path.rsplit("/", 1)[-1]
            match = next((t for t in self.tenants if t["tenant_id"] == tenant_id), None)
            return httpx.Response(200, json=match) if match else httpx.Response(404)
        if path == "/api/v1/availability":
            data = self.availability.get(request.url.params["tenant_id"])
            if isinstance(data, int):
                return httpx.Response(data)
            return httpx.Response(200, json=data or [])
        if path in self.pages:
            status, body = self.pages[path]
            return httpx.Response(status, text=body)
        if path == "/":
            return httpx.Response(200, text="ok")
        return httpx.Response(404)

    def paths(self):
        return [r.url.path for r in self.requests]


def _provider(fake, **kwargs):
    client = PlaytomicClient(BASE, transport=httpx.MockTransport(fake))
    options = {
        "rate_limit": 1000,
        "debug": False,
        "inter_batch_delay": 0,
        "retry_base_delay": 0,
        "retry_jitter": 0,
    }
    options.update(kwargs)
    return PlaytomicProvider(client, **options)


def _params(**overrides):
    base = {"sport": "padel", "location": "London", "date": "2025-06-01"}
    base.update(overrides)
    return SearchParams(**base)


class TestFetchAvailability:
    def test_tenant_api_path(self):
        fake = FakePlaytomic(
            tenants=[
                _tenant("t1", "Padel Social Club"),
                _tenant("t2", "Test Club"),
                _tenant("t3", "Closed Club", status="INACTIVE"),
            ],
            availability={"t1": _availability(("20:00:00", "40 GBP"), ("08:00:00", "30 GBP"))},
        )
        slots = asyncio.run(_provider(fake).fetch_availability(_params()))
        assert [s.start_time.hour for s in slots] == [8, 20]
        assert all(s.venue.id == "t1" for s in slots)
        assert slots[0].booking_url == f"{BASE}/clubs/t1-club"
        availability_calls = [r for r in fake.requests if r.url.path == "/api/v1/availability"]
        assert len(availability_calls) == 1
        assert availability_calls[0].url.params["start_min"] == "2025-06-01T00:00:00"

    def test_request_filters_applied(self):
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Social Club")],
            availability={"t1": _availability(("18:00:00", "36 GBP"), ("19:00:00", "60 GBP"), ("21:00:00", "30 GBP"))},
        )
        slots = asyncio.run(
            _provider(fake).fetch_availability(_params(start_time="18:00", end_time="21:00", max_price=4500))
        )
        assert [s.start_time.hour for s in slots] == [18]

    def test_failed_venue_is_swallowed(self):
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Social Club"), _tenant("t2", "Other Padel")],
            availability={"t1": _availability(("18:00:00", "36 GBP")), "t2": 500},
        )
        outcome = asyncio.run(_provider(fake).fetch_availability_detailed(_params()))
        assert len(outcome.slots) == 1
        assert outcome.venues_processed == 1
        assert [(e.scope, e.key) for e in outcome.errors] == [("venue", "t2")]

    def test_batches_cover_all_venues(self):
        tenants = [_tenant(f"t{i}", f"Padel Club {chr(65 + i)}") for i in range(5)]
        availability = {t["tenant_id"]: _availability(("10:00:00", "30 GBP")) for t in tenants}
        fake = FakePlaytomic(tenants=tenants, availability=availability)
        outcome = asyncio.run(_provider(fake, batch_size=2).fetch_availability_detailed(_params()))
        assert outcome.venues_processed == 5
        assert len(outcome.slots) == 5

    def test_debug_fetches_first_venue_only(self):
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Social Club"), _tenant("t2", "Other Padel")],
            availability={
                "t1": _availability(("18:00:00", "36 GBP")),
                "t2": _availability(("18:00:00", "36 GBP")),
            },
        )
        slots = asyncio.run(_provider(fake, debug=True).fetch_availability(_params()))
        assert {s.venue.id for s in slots} == {"t1"}


class TestDiscovery:
    def test_html_fallback_and_venue_page(self):
        fake = FakePlaytomic(
            tenants_status=500,
            pages={
                "/search": (
                    200,
                    '<div class="venue-card" data-venue-id="123"><span class="venue-name">Court House</span></div>',
                ),
                "/venue/123": (200, '<button data-time="10:00" data-price="£30" data-court="c1"></button>'),
            },
        )
        outcome = asyncio.run(_provider(fake).fetch_availability_detailed(_params()))
        assert [s.venue.id for s in outcome.slots] == ["123"]
        assert outcome.slots[0].price == 3000
        assert outcome.slots[0].booking_url == f"{BASE}/clubs/123"
        assert outcome.errors[0].scope == "discovery"
        assert outcome.errors[0].key == "api"

    def test_nothing_found_is_empty_not_error(self):
        fake = FakePlaytomic(tenants=[], pages={"/search": (200, "<html></html>")})
        outcome = asyncio.run(_provider(fake).fetch_availability_detailed(_params(location="Atlantis")))
        assert outcome.slots == []
        assert outcome.venues_processed == 0

    def test_every_strategy_failing_raises_after_retries(self):
        fake = FakePlaytomic(tenants_status=503)
        provider = _provider(fake, max_retries=2)
        with pytest.raises(ScrapingError, match="Failed after 2 attempts"):
            asyncio.run(provider.fetch_availability(_params()))
        assert fake.paths().count("/api/v1/tenants") == 2

    def test_rate_limited_tenant_search_falls_through(self):
        fake = FakePlaytomic(
            tenants_status=429,
            pages={"/search": (200, '{"venues": [{"id": 77, "name": "Json Padel"}]}'), "/venue/77": (200, "")},
        )
        venues, failures = asyncio.run(_provider(fake).search_venues("London"))
        assert [v.id for v in venues] == ["77"]
        assert failures[0].message == "Rate limit exceeded"


class TestVenueDetailsAndHealth:
    def test_venue_details(self):
        fake = FakePlaytomic(tenants=[_tenant("t1", "Padel Social Club")])
        provider = _provider(fake)
        venue = asyncio.run(provider.get_venue_details("t1"))
        assert venue.name == "Padel Social Club"
        assert provider.get_booking_url("t1") == f"{BASE}/clubs/t1-club"

    def test_venue_details_not_found(self):
        provider = _provider(FakePlaytomic())
        with pytest.raises(ProviderError) as exc:
            asyncio.run(provider.get_venue_details("missing"))
        assert exc.value.code == "VENUE_FETCH_ERROR"
        assert exc.value.status_code == 404

    def test_booking_url_without_tenant(self):
        provider = _provider(FakePlaytomic())
        assert provider.get_booking_url("abc", "court-1", "2025-06-01", "18:00") == f"{BASE}/clubs/abc"

    def test_health_check(self):
        assert asyncio.run(_provider(FakePlaytomic()).health_check()) is True

    def test_health_check_never_raises(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = PlaytomicClient(BASE, transport=httpx.MockTransport(refuse))
        provider = PlaytomicProvider(client, rate_limit=1000)
        assert asyncio.run(provider.health_check()) is False

    def test_region(self):
        assert _provider(FakePlaytomic()).region_for("Madrid") == "es"


class TestRetryBackoff:
    def test_exponential_delays_with_jitter(self):
        fake = FakePlaytomic(tenants_status=503)
        provider = _provider(fake, max_retries=3, retry_base_delay=2.0, retry_jitter=1.0)
        with patch("playscanner.services.providers.playtomic_provider.random.uniform", return_value=0.5), patch(
            "playscanner.services.providers.playtomic_provider.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            with pytest.raises(ScrapingError, match="Failed after 3 attempts"):
                asyncio.run(provider.fetch_availability(_params()))
        assert [c.args[0] for c in sleep.await_args_list] == [2.5, 4.5]

    def test_debug_mode_single_attempt(self):
        fake = FakePlaytomic(tenants_status=503)
        with pytest.raises(ScrapingError, match="Failed after 1 attempts"):
            asyncio.run(_provider(fake, debug=True).fetch_availability(_params()))
        assert fake.paths().count("/api/v1/tenants") == 1


class TestMalformedTenants:
    def test_bad_coordinates_skip_only_that_venue(self):
        bad = _tenant("t2", "Other Padel")
        bad["address"] = {"coordinate": {"lat": "n/a"}}
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Social Club"), bad],
            availability={"t1": _availability(("18:00:00", "36 GBP"))},
        )
        outcome = asyncio.run(_provider(fake).fetch_availability_detailed(_params()))
        assert [s.venue.id for s in outcome.slots] == ["t1"]
        assert [(e.scope, e.key) for e in outcome.errors] == [("venue", "t2")]
        assert "/api/v1/availability" in fake.paths()

    def test_non_string_name_is_skipped(self):
        bad = _tenant("t2", "Other Padel")
        bad["tenant_name"] = 123
        fake = FakePlaytomic(
            tenants=[bad, _tenant("t1", "Padel Social Club")],
            availability={"t1": _availability(("09:00:00", "30 GBP"))},
        )
        slots = asyncio.run(_provider(fake).fetch_availability(_params()))
        assert [s.venue.id for s in slots] == ["t1"]

    def test_unexpected_strategy_error_becomes_scraping_error(self):
        fake = FakePlaytomic(tenants=[_tenant("t1", "Padel Social Club")])
        provider = _provider(fake, max_retries=2)
        with patch(
            "playscanner.services.providers.playtomic_provider.location_coordinates",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(ScrapingError, match="Failed after 2 attempts"):
                asyncio.run(provider.fetch_availability(_params()))
        # html and alternative strategies still ran on each attempt
        assert fake.paths().count("/search") >= 2

    def test_unexpected_api_error_falls_through_to_html(self):
        fake = FakePlaytomic(
            pages={"/search": (200, '{"venues": [{"id": 77, "name": "Json Padel"}]}')},
        )
        with patch(
            "playscanner.services.providers.playtomic_provider.location_coordinates",
            side_effect=RuntimeError("boom"),
        ):
            venues, failures = asyncio.run(_provider(fake).search_venues("London"))
        assert [v.id for v in venues] == ["77"]
        assert [(f.scope, f.key, f.message) for f in failures] == [("discovery", "api", "boom")]

    def test_malformed_venue_details_are_typed(self):
        bad = _tenant("t1", "Padel Social Club")
        bad["address"] = {"coordinate": {"lon": "east"}}
        with pytest.raises(ProviderError) as exc:
            asyncio.run(_provider(FakePlaytomic(tenants=[bad])).get_venue_details("t1"))
        assert exc.value.code == "VENUE_FETCH_ERROR"


class TestRegionRouting:
    def test_region_base_url_used_for_every_request(self, monkeypatch):
        monkeypatch.setitem(playtomic_config.REGION_BASE_URLS, "es", "https://es.playtomic.test")
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Madrid Club")],
            availability={"t1": _availability(("19:00:00", "24 EUR"))},
        )
        slots = asyncio.run(_provider(fake).fetch_availability(_params(location="Madrid")))
        assert {r.url.host for r in fake.requests} == {"es.playtomic.test"}
        assert slots[0].booking_url == "https://es.playtomic.test/clubs/t1-club"
        assert slots[0].venue.contact.website == "https://es.playtomic.test/clubs/t1-club"

    def test_default_region_keeps_client_host(self, monkeypatch):
        monkeypatch.setitem(playtomic_config.REGION_BASE_URLS, "es", "https://es.playtomic.test")
        fake = FakePlaytomic(
            tenants=[_tenant("t1", "Padel Social Club")],
            availability={"t1": _availability(("19:00:00", "36 GBP"))},
        )
        asyncio.run(_provider(fake).fetch_availability(_params()))
        assert {r.url.host for r in fake.requests} == {"playtomic.com"}
