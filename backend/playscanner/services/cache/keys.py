"""Cache key derivation. Logically equal requests must map to the same key."""
import json

from playscanner.services.providers.types import SearchParams


def _canonical_filters(params: SearchParams) -> str:
    if params.filters is None:
        return "{}"
    data = params.filters.model_dump(mode="json", exclude_none=True)
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def generate_search_key(params: SearchParams) -> str:
    """
    search:{sport}:{location lower}:{date}:{start}:{end}:{max_price}:{indoor}:{filters json}.
    Filters are serialized with sorted keys and None fields dropped.
    """
    parts = [
        params.sport,
        params.location.strip().lower(),
        params.date,
        params.start_time or "",
        params.end_time or "",
        "" if params.max_price is None else str(params.max_price),
        "" if params.indoor is None else str(params.indoor).lower(),
        _canonical_filters(params),
    ]
    return "search:" + ":".join(parts)


def venue_key(provider: str, venue_id: str) -> str:
    return f"venue:{provider}:{venue_id}"


def health_key(provider: str) -> str:
    return f"health:{provider}"


def persistent_cache_key(city: str, date: str) -> str:
    """Persistent store key: one row per (city, date)."""
    return f"{city.strip().lower()}:{date}"
