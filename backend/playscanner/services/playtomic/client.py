"""Playtomic client: lowest level, sends requests only. Parsing lives in playtomic.parsing."""
from urllib.parse import quote_plus

import httpx

from playscanner.services.playtomic.config import (
    DEFAULT_BASE_URL,
    SEARCH_PAGE_SIZE,
    SEARCH_RADIUS_METERS,
    SPORT_ID,
    api_headers,
)
from playscanner.services.playtomic.types import PlaytomicResourceAvailability, PlaytomicTenant
from playscanner.services.providers.scraping_client import ScrapingClient

PROVIDER_NAME = "playtomic"


class PlaytomicClient:
    """Tenant search, availability and HTML page fetches. Errors propagate as ScrapingError/RateLimitError."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        http: ScrapingClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http or ScrapingClient(PROVIDER_NAME, transport=transport)

    def with_base_url(self, base_url: str) -> "PlaytomicClient":
        """Same transport and headers, different host (per-region requests)."""
        if base_url.rstrip("/") == self.base_url:
            return self
        return PlaytomicClient(base_url, http=self._http)

    async def search_tenants(
        self,
        lat: float,
        lng: float,
        *,
        radius: int = SEARCH_RADIUS_METERS,
        size: int = SEARCH_PAGE_SIZE,
    ) -> list[PlaytomicTenant]:
        """GET /api/v1/tenants around a coordinate. Non-list bodies are treated as no tenants."""
        data = await self._http.fetch_json(
            f"{self.base_url}/api/v1/tenants",
            params={
                "coordinate": f"{lat},{lng}",
                "sport_id": SPORT_ID,
                "radius": radius,
                "size": size,
            },
            headers=api_headers(f"{self.base_url}/"),
        )
        return data if isinstance(data, list) else []

    async def get_tenant(self, tenant_id: str) -> PlaytomicTenant:
        data = await self._http.fetch_json(
            f"{self.base_url}/api/v1/tenants/{tenant_id}",
            headers=api_headers(f"{self.base_url}/"),
        )
        return data if isinstance(data, dict) else {}

    async def get_availability(self, tenant_id: str, date: str) -> list[PlaytomicResourceAvailability]:
        """GET /api/v1/availability for one tenant and one day (club-local 00:00..23:59)."""
        data = await self._http.fetch_json(
            f"{self.base_url}/api/v1/availability",
            params={
                "sport_id": SPORT_ID,
                "start_min": f"{date}T00:00:00",
                "start_max": f"{date}T23:59:59",
                "tenant_id": tenant_id,
            },
            headers=api_headers(f"{self.base_url}/clubs/{tenant_id}"),
        )
        return data if isinstance(data, list) else []

    async def get_search_page(self, location: str) -> str:
        return await self._http.fetch_text(
            f"{self.base_url}/search",
            params={"q": location, "sport": "padel"},
        )

    def alternative_search_urls(self, location: str) -> list[str]:
        q = quote_plus(location)
        return [
            f"{self.base_url}/venues?location={q}&sport=padel",
            f"{self.base_url}/search?q={q}",
            f"{self.base_url}/find-venues?city={q}",
        ]

    async def get_page(self, url: str) -> str:
        return await self._http.fetch_text(url)

    async def get_venue_page(self, venue_id: str, date: str) -> str:
        return await self._http.fetch_text(
            f"{self.base_url}/venue/{venue_id}",
            params={"date": date},
        )

    async def ping(self) -> None:
        """GET the home page. Raises on any failure."""
        await self._http.fetch(self.base_url)
