"""
Live search: memory cache, then parallel provider fan-out with per-provider timeouts.

A provider that fails or times out is reported in SearchResult.errors; the others still
contribute. Results are deduplicated and sorted (start time, then price) so ordering does
not depend on which provider answered first.
"""
import asyncio
import logging
import time
from typing import Any

from playscanner.core.constants import (
    HEALTH_CHECK_TTL_SECONDS,
    SEARCH_PROVIDER_TIMEOUT_SECONDS,
    SEARCH_RESULTS_TTL_SECONDS,
    VENUE_DETAILS_TTL_SECONDS,
)
from playscanner.services.cache.keys import generate_search_key, health_key, venue_key
from playscanner.services.cache.memory import MemoryCache
from playscanner.services.filters import merge_provider_results
from playscanner.services.providers.base import ProviderAdapter
from playscanner.services.providers.registry import ProviderRegistry
from playscanner.services.providers.types import CourtSlot, SearchParams, SearchResult, Venue

logger = logging.getLogger(__name__)


class SearchService:
    def __init__(
        self,
        cache: MemoryCache,
        registry: ProviderRegistry,
        *,
        provider_timeout: float = SEARCH_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self.cache = cache
        self.registry = registry
        self.provider_timeout = provider_timeout

    async def _fetch_one(self, provider: ProviderAdapter, params: SearchParams) -> tuple[str, list[CourtSlot], str | None]:
        try:
            slots = await asyncio.wait_for(provider.fetch_availability(params), timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            logger.warning("Provider %s timed out after %ss", provider.name, self.provider_timeout)
            return provider.name, [], f"Provider request timed out after {self.provider_timeout}s"
        except Exception as e:
            logger.warning("Provider %s failed: %s", provider.name, e)
            return provider.name, [], str(e) or type(e).__name__
        return provider.name, slots, None

    async def search(self, params: SearchParams) -> SearchResult:
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        key = generate_search_key(params)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit: %s", key)
            return cached.model_copy(update={"search_time": elapsed_ms()})

        providers = self.registry.providers_for_sport(params.sport)
        if not providers:
            return SearchResult(filters=params, search_time=elapsed_ms(), source="live")

        outcomes = await asyncio.gather(*(self._fetch_one(p, params) for p in providers))
        slot_lists: list[list[CourtSlot]] = []
        successful: list[str] = []
        errors: list[str] = []
        for name, slots, error in outcomes:
            if slots:
                slot_lists.append(slots)
                successful.append(name)
            if error:
                errors.append(f"{name}: {error}")

        merged = merge_provider_results(slot_lists)
        result = SearchResult(
            results=merged,
            total_results=len(merged),
            search_time=elapsed_ms(),
            providers=successful,
            filters=params,
            source="live",
            errors=errors or None,
        )
        # A total failure is not cached as a genuine "no slots" answer
        if merged or not errors:
            self.cache.set(key, result, SEARCH_RESULTS_TTL_SECONDS)
        logger.info(
            "Search %s %s %s: %s results from %s in %sms",
            params.sport, params.location, params.date, len(merged), successful, result.search_time,
        )
        return result

    async def get_provider_health(self) -> dict[str, bool]:
        """Per-provider health, each cached for HEALTH_CHECK_TTL_SECONDS."""

        async def check(name: str) -> tuple[str, bool]:
            key = health_key(name)
            cached = self.cache.get(key)
            if cached is not None:
                return name, cached
            provider = self.registry.get_provider(name)
            try:
                healthy = bool(await provider.health_check())
            except Exception:
                logger.warning("Health check for %s raised", name, exc_info=True)
                healthy = False
            self.cache.set(key, healthy, HEALTH_CHECK_TTL_SECONDS)
            return name, healthy

        results = await asyncio.gather(*(check(n) for n in self.registry.list_providers()))
        return dict(results)

    async def get_venue_details(self, provider_name: str, venue_id: str) -> Venue:
        """Venue details, cached per (provider, venue). Raises KeyError or ProviderError."""
        key = venue_key(provider_name, venue_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        venue = await self.registry.get_provider(provider_name).get_venue_details(venue_id)
        self.cache.set(key, venue, VENUE_DETAILS_TTL_SECONDS)
        return venue

    def clear_cache(self, params: SearchParams | None = None) -> None:
        if params is not None:
            self.cache.delete(generate_search_key(params))
        else:
            self.cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()

    def get_available_providers(self) -> list[dict[str, Any]]:
        out = []
        for name in self.registry.list_providers():
            p = self.registry.get_provider(name)
            out.append({"name": p.name, "sports": list(p.sports), "regions": list(p.regions)})
        return out

    async def test_provider(self, provider_name: str, params: SearchParams) -> dict[str, Any]:
        """Call one provider directly (no cache, no timeout) and report what happened."""
        if provider_name not in self.registry:
            return {
                "success": False,
                "results": [],
                "error": f"Provider {provider_name} not found",
                "response_time": 0,
            }
        provider = self.registry.get_provider(provider_name)
        started = time.monotonic()
        try:
            results = await provider.fetch_availability(params)
        except Exception as e:
            logger.warning("Provider test for %s failed: %s", provider_name, e)
            return {
                "success": False,
                "results": [],
                "error": str(e),
                "response_time": int((time.monotonic() - started) * 1000),
            }
        return {
            "success": True,
            "results": results,
            "response_time": int((time.monotonic() - started) * 1000),
        }
