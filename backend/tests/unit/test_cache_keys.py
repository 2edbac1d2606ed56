"""
Unit tests for cache key derivation.
"""
from playscanner.services.cache.keys import (
    generate_search_key,
    health_key,
    persistent_cache_key,
    venue_key,
)
from playscanner.services.providers.types import PadelFilters, SearchParams, SportSpecificFilters


def _params(**overrides) -> SearchParams:
    base = {"sport": "padel", "location": "London", "date": "2025-06-01"}
    base.update(overrides)
    return SearchParams(**base)


class TestSearchKey:
    """Logically equal requests share a key."""

    def test_location_case_insensitive(self):
        assert generate_search_key(_params(location="London")) == generate_search_key(_params(location=" london "))

    def test_prefix_and_layout(self):
        key = generate_search_key(_params(start_time="18:00", max_price=4500, indoor=True))
        assert key == "search:padel:london:2025-06-01:18:00::4500:true:{}"

    def test_filters_canonical(self):
        a = _params(filters=SportSpecificFilters(padel=PadelFilters(level="open", court_type="indoor")))
        b = _params(filters={"padel": {"courtType": "indoor", "level": "open"}})
        assert generate_search_key(a) == generate_search_key(b)

    def test_empty_filters_match_no_filters(self):
        assert generate_search_key(_params(filters=SportSpecificFilters())) == generate_search_key(_params())

    def test_different_params_differ(self):
        assert generate_search_key(_params(indoor=True)) != generate_search_key(_params(indoor=False))
        assert generate_search_key(_params(date="2025-06-02")) != generate_search_key(_params())


class TestOtherKeys:
    def test_venue_and_health(self):
        assert venue_key("playtomic", "abc") == "venue:playtomic:abc"
        assert health_key("playtomic") == "health:playtomic"

    def test_persistent_key(self):
        assert persistent_cache_key("London", "2025-06-01") == "london:2025-06-01"
