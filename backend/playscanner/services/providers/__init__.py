"""
Availability providers: Playtomic today, Matchi/Powerleague later.
Each provider discovers and fetches in its own way but returns the same normalized CourtSlot
shape, so search, cache and collectors stay provider-agnostic.
"""
from playscanner.services.providers.base import ProviderAdapter
from playscanner.services.providers.rate_limiter import RateLimiter
from playscanner.services.providers.types import CourtSlot, SearchParams, SearchResult, Venue

__all__ = [
    "CourtSlot",
    "ProviderAdapter",
    "RateLimiter",
    "SearchParams",
    "SearchResult",
    "Venue",
]
