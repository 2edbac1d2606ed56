"""
Normalized types for all availability providers. Same shape regardless of Playtomic/Matchi/etc.

Models are frozen: a fresh collection run builds new instances instead of mutating old ones.
Field names are snake_case in Python and camelCase on the wire (API responses, cache rows).
"""
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Sport = Literal["padel", "football"]
Currency = Literal["GBP", "EUR"]
Surface = Literal["turf", "concrete", "grass", "astro", "other"]
PadelLevel = Literal["beginner", "intermediate", "advanced", "open"]
CourtType = Literal["indoor", "outdoor", "panoramic"]
FootballFormat = Literal["5v5", "6v6", "7v7", "8v8", "11v11"]
FootballLevel = Literal["casual", "competitive", "mixed"]

SPORTS: tuple[str, ...] = ("padel", "football")


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Request ---


class PadelFilters(_Model):
    level: PadelLevel | None = None
    court_type: CourtType | None = None


class FootballFilters(_Model):
    format: FootballFormat | None = None
    organized: bool | None = None
    level: FootballLevel | None = None


class SportSpecificFilters(_Model):
    padel: PadelFilters | None = None
    football: FootballFilters | None = None


class SearchParams(_Model):
    """Immutable request descriptor. Cache keys are derived from it (see cache.keys)."""
    sport: Sport
    location: str
    date: str  # YYYY-MM-DD
    start_time: str | None = None  # HH:MM, venue-local
    end_time: str | None = None
    max_price: int | None = None  # minor units
    indoor: bool | None = None
    filters: SportSpecificFilters | None = None


# --- Venue ---


class Coordinates(_Model):
    lat: float = 0.0
    lng: float = 0.0


class VenueLocation(_Model):
    address: str = ""
    city: str = ""
    postcode: str = ""
    coordinates: Coordinates = Field(default_factory=Coordinates)


class VenueContact(_Model):
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class Venue(_Model):
    """
    Provider-discovered venue. Provider-specific raw payloads (e.g. Playtomic tenant objects)
    live in the provider's own side table keyed by venue id, not here.
    """
    id: str
    name: str
    provider: str
    location: VenueLocation = Field(default_factory=VenueLocation)
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    rating: float | None = None
    contact: VenueContact = Field(default_factory=VenueContact)


# --- Slot ---


class SlotAvailability(_Model):
    spots_available: int = 1
    total_spots: int = 1


class SlotFeatures(_Model):
    indoor: bool = True
    lights: bool = True
    surface: Surface | None = None


class PadelMeta(_Model):
    kind: Literal["padel"] = "padel"
    court_type: CourtType = "indoor"
    level: PadelLevel = "open"
    doubles: bool = True


class FootballMeta(_Model):
    kind: Literal["football"] = "football"
    format: FootballFormat = "5v5"
    organized: bool = False
    level: FootballLevel = "casual"
    requires_team: bool = False


SportMeta = Annotated[Union[PadelMeta, FootballMeta], Field(discriminator="kind")]


class CourtSlot(_Model):
    """
    One bookable window at one venue. start_time/end_time carry venue-local wall-clock
    digits tagged UTC (no zone conversion is applied). price is in minor units.
    """
    id: str
    sport: Sport
    provider: str
    venue: Venue
    start_time: datetime
    end_time: datetime
    duration: int  # minutes
    price: int  # pence / cents
    currency: Currency = "GBP"
    booking_url: str
    availability: SlotAvailability = Field(default_factory=SlotAvailability)
    features: SlotFeatures = Field(default_factory=SlotFeatures)
    sport_meta: SportMeta
    last_updated: datetime


# --- Result ---


class SearchResult(_Model):
    results: list[CourtSlot] = Field(default_factory=list)
    total_results: int = 0
    search_time: int = 0  # milliseconds
    providers: list[str] = Field(default_factory=list)
    filters: SearchParams
    source: Literal["live", "cached"] | None = None  # cached = served from the persistent store
    cache_age: str | None = None
    # Per-provider failures swallowed during a live search ("provider: message")
    errors: list[str] | None = None


def generate_slot_id(provider: str, venue_id: str, start_time: datetime, resource_id: str | None = None) -> str:
    """
    Stable slot key: provider + venue (+ court) + start epoch ms. The same upstream slot
    collected twice gets the same id, so cache writes are idempotent.
    """
    epoch_ms = int(start_time.timestamp() * 1000)
    if resource_id:
        return f"{provider}_{venue_id}_{resource_id}_{epoch_ms}"
    return f"{provider}_{venue_id}_{epoch_ms}"


# --- Result filters (UI refinement of an existing result set) ---


class TimeRange(_Model):
    start: str | None = None  # HH:MM inclusive
    end: str | None = None


class PriceRange(_Model):
    min: int | None = None  # minor units, inclusive
    max: int | None = None


class FilterState(_Model):
    time_range: TimeRange | None = None
    price_range: PriceRange | None = None
    venues: list[str] | None = None  # venue id allow-list
