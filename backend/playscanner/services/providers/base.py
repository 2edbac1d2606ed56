"""Protocol for availability providers. All adapters return the same normalized CourtSlot shape."""
from typing import Protocol, runtime_checkable

from playscanner.services.providers.types import CourtSlot, SearchParams, Venue


@runtime_checkable
class ProviderAdapter(Protocol):
    """Interface for Playtomic, Matchi, Powerleague, etc. Same contract; only discovery/fetch differs."""

    name: str
    sports: tuple[str, ...]
    regions: tuple[str, ...]
    rate_limit: float  # requests per second

    async def fetch_availability(self, params: SearchParams) -> list[CourtSlot]:
        """
        Discover venues for params.location, fetch each venue's availability for params.date,
        apply time/price/indoor filters. Per-venue failures are skipped; only systemic
        failures (discovery finds nothing via any strategy after retries) raise.
        """
        ...

    async def get_venue_details(self, venue_id: str) -> Venue:
        """Fetch enriched venue data. Raises ProviderError on failure."""
        ...

    async def health_check(self) -> bool:
        """Lightweight reachability check. Never raises."""
        ...

    def get_booking_url(self, venue_id: str, *args, **kwargs) -> str:
        """External deep link for redirecting the user. Pure, no I/O."""
        ...
