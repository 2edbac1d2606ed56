"""
Playtomic availability provider: venue discovery, batched per-venue availability, retry.

Discovery tries the tenants API, then the search page HTML, then alternative listing pages.
Raw tenant payloads are kept in self.tenants (venue id -> tenant) for availability and
booking URLs; Venue itself stays provider-agnostic.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from playscanner.config import settings
from playscanner.core.constants import (
    PROVIDER_INTER_BATCH_DELAY_SECONDS,
    PROVIDER_MAX_RETRIES,
    PROVIDER_RETRY_BASE_DELAY_SECONDS,
    PROVIDER_RETRY_JITTER_SECONDS,
    PROVIDER_VENUE_BATCH_SIZE,
)
from playscanner.core.errors import ProviderError, ScrapingError, SwallowedError
from playscanner.services.filters import filter_by_search_params
from playscanner.services.playtomic import (
    PlaytomicClient,
    PlaytomicTenant,
    detect_region,
    is_real_venue,
    location_coordinates,
    parse_availability,
    parse_venue_page_slots,
    parse_venues_from_html,
    transform_tenant,
)
from playscanner.services.playtomic.config import base_url_for_region
from playscanner.services.playtomic.parsing import tenant_slug
from playscanner.services.providers.rate_limiter import RateLimiter
from playscanner.services.providers.types import CourtSlot, SearchParams, Venue

logger = logging.getLogger(__name__)


@dataclass
class FetchOutcome:
    """Slots plus everything skipped along the way (venues, slots, discovery strategies)."""
    slots: list[CourtSlot] = field(default_factory=list)
    errors: list[SwallowedError] = field(default_factory=list)
    venues_processed: int = 0


class PlaytomicProvider:
    name = "playtomic"
    sports: tuple[str, ...] = ("padel",)
    regions: tuple[str, ...] = ("uk", "es", "fr", "it")

    def __init__(
        self,
        client: PlaytomicClient | None = None,
        *,
        rate_limit: float | None = None,
        debug: bool | None = None,
        batch_size: int = PROVIDER_VENUE_BATCH_SIZE,
        inter_batch_delay: float = PROVIDER_INTER_BATCH_DELAY_SECONDS,
        max_retries: int = PROVIDER_MAX_RETRIES,
        retry_base_delay: float = PROVIDER_RETRY_BASE_DELAY_SECONDS,
        retry_jitter: float = PROVIDER_RETRY_JITTER_SECONDS,
    ) -> None:
        self.rate_limit = rate_limit if rate_limit is not None else settings.playtomic_rate_limit
        self._limiter = RateLimiter(self.rate_limit)
        self._client = client or PlaytomicClient(base_url_for_region("uk"))
        self.debug = settings.playscanner_debug if debug is None else debug
        self.batch_size = max(1, batch_size)
        self.inter_batch_delay = inter_batch_delay
        self.max_retries = max(1, max_retries)
        self.retry_base_delay = retry_base_delay
        self.retry_jitter = retry_jitter
        self.tenants: dict[str, PlaytomicTenant] = {}

    @property
    def base_url(self) -> str:
        return self._client.base_url

    # --- availability ---

    async def fetch_availability(self, params: SearchParams) -> list[CourtSlot]:
        outcome = await self.fetch_availability_detailed(params)
        return outcome.slots

    async def fetch_availability_detailed(self, params: SearchParams) -> FetchOutcome:
        """
        Retry the whole discover-and-fetch run on provider errors: base * 2^(n-1) plus jitter
        between attempts. Debug mode makes a single attempt. Raises ScrapingError when every
        attempt failed.
        """
        attempts = 1 if self.debug else self.max_retries
        last_error: ProviderError | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._fetch_direct(params)
            except ProviderError as e:
                last_error = e
                logger.warning(
                    "Playtomic fetch attempt %s/%s failed for %s %s: %s",
                    attempt, attempts, params.location, params.date, e,
                )
                if attempt < attempts:
                    delay = self.retry_base_delay * 2 ** (attempt - 1) + random.uniform(0, self.retry_jitter)
                    await asyncio.sleep(delay)
        raise ScrapingError(
            f"Failed after {attempts} attempts: {last_error}", self.name
        ) from last_error

    async def _fetch_direct(self, params: SearchParams) -> FetchOutcome:
        client = self.client_for(params.location)
        venues, errors = await self.search_venues(params.location, client)
        if self.debug:
            venues = venues[:1]
        outcome = FetchOutcome(errors=list(errors))
        for i in range(0, len(venues), self.batch_size):
            if i and self.inter_batch_delay > 0:
                await asyncio.sleep(self.inter_batch_delay)
            batch = venues[i : i + self.batch_size]
            results = await asyncio.gather(
                *(self._fetch_venue(client, v, params.date) for v in batch),
                return_exceptions=True,
            )
            for venue, res in zip(batch, results):
                if isinstance(res, BaseException):
                    if not isinstance(res, Exception):
                        raise res
                    logger.warning("Skipping venue %s (%s): %s", venue.id, venue.name, res)
                    outcome.errors.append(SwallowedError("venue", venue.id, str(res)))
                    continue
                slots, slot_errors = res
                outcome.slots.extend(slots)
                outcome.errors.extend(slot_errors)
                outcome.venues_processed += 1
        filtered = filter_by_search_params(outcome.slots, params)
        outcome.slots = sorted(filtered, key=lambda s: (s.start_time, s.price))
        logger.info(
            "Playtomic %s %s: %s slots from %s/%s venues",
            params.location, params.date, len(outcome.slots), outcome.venues_processed, len(venues),
        )
        return outcome

    async def _fetch_venue(
        self, client: PlaytomicClient, venue: Venue, date: str
    ) -> tuple[list[CourtSlot], list[SwallowedError]]:
        tenant = self.tenants.get(venue.id)
        booking_url = self._booking_url(client.base_url, venue.id)
        await self._limiter.limit()
        if tenant is not None:
            entries = await client.get_availability(venue.id, date)
            return parse_availability(entries, venue, tenant, date, booking_url)
        html = await client.get_venue_page(venue.id, date)
        return parse_venue_page_slots(html, venue, date, booking_url)

    # --- discovery ---

    def client_for(self, location: str) -> PlaytomicClient:
        """Client bound to the base URL of the location's region."""
        return self._client.with_base_url(base_url_for_region(self.region_for(location)))

    async def search_venues(
        self, location: str, client: PlaytomicClient | None = None
    ) -> tuple[list[Venue], list[SwallowedError]]:
        """
        First strategy that yields venues wins. Returns ([], errors) when strategies ran but
        found nothing; raises ScrapingError only when every strategy failed outright.
        Malformed tenants are skipped and reported in errors.
        """
        client = client or self.client_for(location)
        strategies: list[tuple[str, Callable[..., Awaitable[list[Venue]]]]] = [
            ("api", self._discover_via_api),
            ("html", self._discover_via_html),
            ("alternative", self._discover_via_alternatives),
        ]
        failures: list[SwallowedError] = []
        any_completed = False
        for label, strategy in strategies:
            try:
                venues = await strategy(client, location, failures)
            except Exception as e:
                if not isinstance(e, ProviderError):
                    logger.exception("Venue discovery via %s raised unexpectedly for %s", label, location)
                else:
                    logger.warning("Venue discovery via %s failed for %s: %s", label, location, e)
                failures.append(SwallowedError("discovery", label, str(e)))
                continue
            any_completed = True
            if venues:
                logger.debug("Discovered %s venues via %s for %s", len(venues), label, location)
                return venues, failures
        if not any_completed:
            raise ScrapingError(
                f"Venue discovery failed for {location}: " + "; ".join(str(f) for f in failures),
                self.name,
            )
        return [], failures

    async def _discover_via_api(
        self, client: PlaytomicClient, location: str, errors: list[SwallowedError]
    ) -> list[Venue]:
        lat, lng = location_coordinates(location)
        await self._limiter.limit()
        tenants = await client.search_tenants(lat, lng)
        venues: list[Venue] = []
        for tenant in tenants:
            if not isinstance(tenant, dict):
                continue
            try:
                if not is_real_venue(tenant):
                    continue
                venue = transform_tenant(tenant, client.base_url)
            except (AttributeError, TypeError, ValueError) as e:
                key = str(tenant.get("tenant_id") or "?")
                logger.warning("Skipping malformed tenant %s: %s", key, e)
                errors.append(SwallowedError("venue", key, str(e)))
                continue
            if not venue.id:
                continue
            self.tenants[venue.id] = tenant
            venues.append(venue)
        return venues

    async def _discover_via_html(
        self, client: PlaytomicClient, location: str, errors: list[SwallowedError]
    ) -> list[Venue]:
        await self._limiter.limit()
        html = await client.get_search_page(location)
        return parse_venues_from_html(html, client.base_url, location)

    async def _discover_via_alternatives(
        self, client: PlaytomicClient, location: str, errors: list[SwallowedError]
    ) -> list[Venue]:
        last_error: ProviderError | None = None
        fetched = 0
        for url in client.alternative_search_urls(location):
            await self._limiter.limit()
            try:
                html = await client.get_page(url)
            except ProviderError as e:
                last_error = e
                continue
            fetched += 1
            venues = parse_venues_from_html(html, client.base_url, location)
            if venues:
                return venues
        if not fetched and last_error is not None:
            raise last_error
        return []


    # --- venue / health / booking ---

    async def get_venue_details(self, venue_id: str) -> Venue:
        try:
            await self._limiter.limit()
            tenant = await self._client.get_tenant(venue_id)
        except ProviderError as e:
            raise ProviderError(
                f"Failed to fetch venue details for {venue_id}: {e}",
                self.name,
                "VENUE_FETCH_ERROR",
                e.status_code,
            ) from e
        if not tenant:
            raise ProviderError(f"Venue {venue_id} not found", self.name, "VENUE_FETCH_ERROR", 404)
        try:
            venue = transform_tenant(tenant, self.base_url)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderError(
                f"Malformed venue data for {venue_id}: {e}", self.name, "VENUE_FETCH_ERROR"
            ) from e
        self.tenants[venue_id] = tenant
        return venue

    async def health_check(self) -> bool:
        try:
            await self._client.ping()
        except Exception as e:
            logger.warning("Playtomic health check failed: %s", e)
            return False
        return True

    def get_booking_url(self, venue_id: str, *args, **kwargs) -> str:
        """Club page on playtomic.com. Extra arguments (court, date, time) are accepted and ignored."""
        return self._booking_url(self.base_url, venue_id)

    def _booking_url(self, base_url: str, venue_id: str) -> str:
        slug = tenant_slug(self.tenants.get(venue_id), venue_id)
        return f"{base_url}/clubs/{slug}"

    def region_for(self, location: str) -> str:
        return detect_region(location)
