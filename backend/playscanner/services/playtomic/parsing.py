"""
Playtomic payload -> normalized types. Pure functions: no I/O, no clock except last_updated.

Malformed slots are skipped and reported as SwallowedError so one bad row never drops a venue.
"""
import json
import logging
import re
from datetime import datetime, timezone

from playscanner.core.errors import SwallowedError
from playscanner.services.playtomic.config import (
    ACTIVE_STATUS,
    HTML_MAX_VENUES,
    SCRAPED_SLOT_MINUTES,
    TEST_VENUE_PATTERNS,
    TEST_VENUE_SUBSTRINGS,
)
from playscanner.services.playtomic.types import (
    PlaytomicResourceAvailability,
    PlaytomicResourceProperties,
    PlaytomicTenant,
)
from playscanner.services.providers.transform import (
    add_minutes,
    clean_venue_name,
    detect_currency,
    parse_local_datetime,
    parse_price,
    slugify,
)
from playscanner.services.providers.types import (
    Coordinates,
    CourtSlot,
    PadelMeta,
    SlotFeatures,
    Venue,
    VenueContact,
    VenueLocation,
    generate_slot_id,
)

logger = logging.getLogger(__name__)

PROVIDER = "playtomic"
COURT_TYPES = ("indoor", "outdoor", "panoramic")

# Tried in order; the first pattern that yields any venue wins.
_HTML_VENUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'venue-card.*?data-venue-id="(\d+)".*?venue-name">([^<]+)', re.S),
    re.compile(r'data-venue="(\d+)".*?class="venue-title">([^<]+)', re.S),
    re.compile(r"venue:\s*{[^}]*id:\s*[\"'](\d+)[\"'][^}]*name:\s*[\"']([^\"']+)[\"']"),
)
# Embedded JSON array of venues in a script tag
_VENUES_JSON_RE = re.compile(r'"venues"\s*:\s*(\[[^\]]*\])')
_JSON_LD_RE = re.compile(
    r'<script[^>]*type="application/ld\+json"[^>]*>([\s\S]*?)</script>',
    re.I,
)
_SLOT_ATTR_RE = re.compile(
    r'data-time="([^"]+)".*?data-price="([^"]+)".*?data-court="([^"]+)"',
    re.S,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_real_venue(tenant: PlaytomicTenant) -> bool:
    """ACTIVE tenants whose name is not a test/placeholder club."""
    if tenant.get("playtomic_status") != ACTIVE_STATUS:
        return False
    name = (tenant.get("tenant_name") or "").strip().lower()
    if not name:
        return False
    if any(s in name for s in TEST_VENUE_SUBSTRINGS):
        return False
    return not any(p.match(name) for p in TEST_VENUE_PATTERNS)


def tenant_venue_id(tenant: PlaytomicTenant) -> str:
    return str(tenant.get("tenant_id") or tenant.get("tenant_uid") or "")


def tenant_slug(tenant: PlaytomicTenant | None, fallback: str) -> str:
    """Slug for /clubs/{slug}; tenant_uid (trimmed of trailing separators) when no slug is set."""
    if tenant:
        if tenant.get("slug"):
            return str(tenant["slug"])
        uid = str(tenant.get("tenant_uid") or "").strip().rstrip("-").strip()
        if uid:
            return uid
    return fallback


def transform_tenant(tenant: PlaytomicTenant, base_url: str) -> Venue:
    address = tenant.get("address") or {}
    coord = address.get("coordinate") or {}
    slug = tenant_slug(tenant, tenant_venue_id(tenant))
    return Venue(
        id=tenant_venue_id(tenant),
        name=clean_venue_name(tenant.get("tenant_name") or "Unknown Venue"),
        provider=PROVIDER,
        location=VenueLocation(
            address=address.get("street") or "",
            city=address.get("city") or "",
            postcode=address.get("postal_code") or "",
            coordinates=Coordinates(
                lat=float(coord.get("lat") or 0.0),
                lng=float(coord.get("lon") or 0.0),
            ),
        ),
        amenities=[],
        images=[i for i in (tenant.get("images") or []) if isinstance(i, str)],
        contact=VenueContact(website=f"{base_url}/clubs/{slug}"),
    )


def _html_venue(venue_id: str, name: str, base_url: str, city: str) -> Venue:
    return Venue(
        id=venue_id,
        name=clean_venue_name(name),
        provider=PROVIDER,
        location=VenueLocation(city=city),
        contact=VenueContact(website=f"{base_url}/venue/{venue_id}"),
    )


def _venues_from_embedded_json(html: str, base_url: str, city: str) -> list[Venue]:
    venues: list[Venue] = []
    for m in _VENUES_JSON_RE.finditer(html):
        try:
            items = json.loads(m.group(1))
        except ValueError:
            continue
        for item in items:
            if not isinstance(item, dict):
                continue
            vid, name = item.get("id"), item.get("name")
            if vid and name:
                venues.append(_html_venue(str(vid), str(name), base_url, city))
            if len(venues) >= HTML_MAX_VENUES:
                return venues
    return venues


def parse_venues_from_html(html: str, base_url: str, city: str = "") -> list[Venue]:
    """
    Best-effort venue extraction from a search page: attribute/markup patterns, then embedded
    "venues" JSON, then JSON-LD. At most HTML_MAX_VENUES. Returns [] when nothing matches.
    """
    venues: list[Venue] = []
    for pattern in _HTML_VENUE_PATTERNS:
        for m in pattern.finditer(html):
            vid, name = m.group(1), (m.group(2) or "").strip()
            if vid and name:
                venues.append(_html_venue(vid, name, base_url, city))
            if len(venues) >= HTML_MAX_VENUES:
                break
        if venues:
            return venues
    venues = _venues_from_embedded_json(html, base_url, city)
    if venues:
        return venues
    return extract_structured_data(html, base_url, city)


def extract_structured_data(html: str, base_url: str, city: str = "") -> list[Venue]:
    """Venues from JSON-LD blocks (SportsClub or anything with a name)."""
    venues: list[Venue] = []
    for m in _JSON_LD_RE.finditer(html):
        try:
            data = json.loads(m.group(1))
        except ValueError:
            continue
        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            if item.get("@type") != "SportsClub" and not item.get("name"):
                continue
            name = str(item.get("name") or "Unknown Venue")
            address = item.get("address") if isinstance(item.get("address"), dict) else {}
            image = item.get("image")
            venues.append(
                Venue(
                    id=f"structured_{slugify(name) or len(venues)}",
                    name=clean_venue_name(name),
                    provider=PROVIDER,
                    location=VenueLocation(
                        address=address.get("streetAddress") or "",
                        city=address.get("addressLocality") or city,
                        postcode=address.get("postalCode") or "",
                    ),
                    images=[image] if isinstance(image, str) else [],
                    contact=VenueContact(
                        website=item.get("url") or base_url,
                        phone=item.get("telephone"),
                    ),
                )
            )
            if len(venues) >= HTML_MAX_VENUES:
                return venues
    return venues


def _resource_properties(tenant: PlaytomicTenant | None, resource_id: str) -> PlaytomicResourceProperties:
    for r in (tenant or {}).get("resources") or []:
        if r.get("resource_id") == resource_id:
            return r.get("properties") or {}
    return {}


def _padel_slot(
    venue: Venue,
    *,
    start: datetime,
    duration: int,
    price_text: str | int | float | None,
    booking_url: str,
    resource_id: str | None,
    props: PlaytomicResourceProperties,
    now: datetime,
) -> CourtSlot:
    resource_type = props.get("resource_type")
    court_type = resource_type if resource_type in COURT_TYPES else "indoor"
    return CourtSlot(
        id=generate_slot_id(PROVIDER, venue.id, start, resource_id),
        sport="padel",
        provider=PROVIDER,
        venue=venue,
        start_time=start,
        end_time=add_minutes(start, duration),
        duration=duration,
        price=parse_price(price_text),
        currency=detect_currency(price_text if isinstance(price_text, str) else None),
        booking_url=booking_url,
        features=SlotFeatures(
            indoor=resource_type != "outdoor",
            lights=True,
            surface="turf" if props.get("resource_feature") == "wall" else "concrete",
        ),
        sport_meta=PadelMeta(
            court_type=court_type,
            level="open",
            doubles=props.get("resource_size", "double") == "double",
        ),
        last_updated=now,
    )


def parse_availability(
    entries: list[PlaytomicResourceAvailability],
    venue: Venue,
    tenant: PlaytomicTenant | None,
    date: str,
    booking_url: str,
) -> tuple[list[CourtSlot], list[SwallowedError]]:
    """
    One CourtSlot per (resource, slot). start_time is the club's wall clock taken literally.
    Slots that fail to parse are skipped and reported.
    """
    slots: list[CourtSlot] = []
    errors: list[SwallowedError] = []
    now = _now()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        resource_id = str(entry.get("resource_id") or "") or None
        props = _resource_properties(tenant, resource_id or "")
        for raw in entry.get("slots") or []:
            try:
                duration = int(raw["duration"])
                start = parse_local_datetime(date, str(raw["start_time"]))
                slots.append(
                    _padel_slot(
                        venue,
                        start=start,
                        duration=duration,
                        price_text=raw.get("price"),
                        booking_url=booking_url,
                        resource_id=resource_id,
                        props=props,
                        now=now,
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed slot at venue %s: %s", venue.id, e)
                errors.append(SwallowedError("slot", f"{venue.id}/{resource_id}", str(e)))
    return slots, errors


def parse_venue_page_slots(
    html: str,
    venue: Venue,
    date: str,
    booking_url: str,
) -> tuple[list[CourtSlot], list[SwallowedError]]:
    """Fallback for venues without tenant data: data-time/data-price/data-court attributes."""
    slots: list[CourtSlot] = []
    errors: list[SwallowedError] = []
    now = _now()
    for time_str, price_str, court_id in _SLOT_ATTR_RE.findall(html):
        try:
            start = parse_local_datetime(date, time_str)
        except ValueError as e:
            errors.append(SwallowedError("slot", f"{venue.id}/{court_id}", str(e)))
            continue
        slots.append(
            _padel_slot(
                venue,
                start=start,
                duration=SCRAPED_SLOT_MINUTES,
                price_text=price_str,
                booking_url=booking_url,
                resource_id=court_id,
                props={"resource_feature": "wall"},
                now=now,
            )
        )
    return slots, errors
