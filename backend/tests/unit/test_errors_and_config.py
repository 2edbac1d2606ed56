"""
Unit tests for error mapping, settings parsing and the DB session dependency.
"""
from playscanner.config import Settings
from playscanner.core.errors import (
    CircuitOpenError,
    ProviderError,
    RateLimitError,
    ScrapingError,
    SwallowedError,
    error_to_http,
)
from playscanner.db.session import get_db


class TestErrorToHttp:
    def test_rate_limit(self):
        exc = error_to_http(RateLimitError("playtomic"))
        assert exc.status_code == 503
        assert exc.detail == {"error": "Rate limit exceeded", "code": "RATE_LIMIT", "provider": "playtomic"}

    def test_scraping(self):
        exc = error_to_http(ScrapingError("HTTP 500", "playtomic", 500))
        assert exc.status_code == 502
        assert exc.detail["code"] == "SCRAPING_ERROR"

    def test_generic_provider_error(self):
        assert error_to_http(ProviderError("x", "p", "VENUE_FETCH_ERROR")).status_code == 502

    def test_circuit_open(self):
        assert error_to_http(CircuitOpenError("open")).status_code == 503

    def test_unknown(self):
        exc = error_to_http(RuntimeError("boom"))
        assert exc.status_code == 500
        assert exc.detail == {"error": "boom"}

    def test_swallowed_error_str(self):
        assert str(SwallowedError("venue", "t1", "HTTP 500")) == "venue:t1: HTTP 500"


class TestSettings:
    def test_city_list(self):
        s = Settings(_env_file=None, collector_cities=" London, Manchester ,")
        assert s.city_list() == ["London", "Manchester"]

    def test_strips_secret(self):
        assert Settings(_env_file=None, playscanner_collect_secret="  abc \n").playscanner_collect_secret == "abc"


class TestGetDb:
    def test_yields_and_closes_session(self):
        gen = get_db()
        db = next(gen)
        assert db is not None
        gen.close()
