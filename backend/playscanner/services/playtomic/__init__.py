"""Playtomic integration: client sends requests, parsing normalizes payloads, config holds the tables."""
from playscanner.services.playtomic.client import PlaytomicClient
from playscanner.services.playtomic.config import detect_region, location_coordinates
from playscanner.services.playtomic.parsing import (
    extract_structured_data,
    is_real_venue,
    parse_availability,
    parse_venue_page_slots,
    parse_venues_from_html,
    transform_tenant,
)
from playscanner.services.playtomic.types import (
    PlaytomicResourceAvailability,
    PlaytomicSlot,
    PlaytomicTenant,
)

__all__ = [
    "PlaytomicClient",
    "PlaytomicResourceAvailability",
    "PlaytomicSlot",
    "PlaytomicTenant",
    "detect_region",
    "extract_structured_data",
    "is_real_venue",
    "location_coordinates",
    "parse_availability",
    "parse_venue_page_slots",
    "parse_venues_from_html",
    "transform_tenant",
]
