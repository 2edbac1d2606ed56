"""Playtomic endpoints, region detection tables and data-quality deny lists."""
import re

from playscanner.config import settings

DEFAULT_BASE_URL = "https://playtomic.com"
SPORT_ID = "PADEL"

# Tenant discovery: coordinate + radius query
SEARCH_RADIUS_METERS = 20000
SEARCH_PAGE_SIZE = 50
# HTML strategies stop after this many venues
HTML_MAX_VENUES = 20
# Slots scraped from venue pages carry no duration; Playtomic's default booking length
SCRAPED_SLOT_MINUTES = 90

# Every region is served from the same host today; kept per-region so a split is one edit.
REGION_BASE_URLS: dict[str, str] = {
    "uk": DEFAULT_BASE_URL,
    "es": DEFAULT_BASE_URL,
    "fr": DEFAULT_BASE_URL,
    "it": DEFAULT_BASE_URL,
}
DEFAULT_REGION = "uk"

# (region, city substrings, country word pattern). First match wins.
REGION_RULES: list[tuple[str, tuple[str, ...], re.Pattern[str]]] = [
    ("uk", ("london", "manchester", "birmingham"), re.compile(r"\b(uk|england|britain)\b")),
    ("es", ("madrid", "barcelona"), re.compile(r"\b(spain|españa)\b")),
    ("fr", ("paris", "lyon"), re.compile(r"\b(france|français)\b")),
    ("it", ("rome", "milan"), re.compile(r"\b(italy|italia)\b")),
]

CITY_COORDINATES: dict[str, tuple[float, float]] = {
    "london": (51.5074, -0.1278),
    "manchester": (53.4808, -2.2426),
    "birmingham": (52.4862, -1.8904),
    "madrid": (40.4168, -3.7038),
    "barcelona": (41.3851, 2.1734),
    "paris": (48.8566, 2.3522),
    "lyon": (45.7640, 4.8357),
    "rome": (41.9028, 12.4964),
    "milan": (45.4642, 9.19),
}
DEFAULT_CITY = "london"

# Tenants that are not real, bookable venues. Substrings match anywhere in the lower-cased name;
# patterns must match the whole name.
TEST_VENUE_SUBSTRINGS: tuple[str, ...] = (
    "test",
    "to be deleted",
    "deleted",
    "playground club",
    "golden rocket",
)
TEST_VENUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^abc\s*$"),
    re.compile(r"^club \d+$"),
    re.compile(r"^suga$"),
)
ACTIVE_STATUS = "ACTIVE"


def base_url_for_region(region: str) -> str:
    base = settings.playtomic_base_url or DEFAULT_BASE_URL
    if base != DEFAULT_BASE_URL:
        return base.rstrip("/")
    return REGION_BASE_URLS.get(region, DEFAULT_BASE_URL)


def detect_region(location: str) -> str:
    """Map free-text location to a region. Unknown locations fall back to DEFAULT_REGION."""
    loc = (location or "").lower()
    for region, cities, country in REGION_RULES:
        if any(c in loc for c in cities) or country.search(loc):
            return region
    return DEFAULT_REGION


def location_coordinates(location: str) -> tuple[float, float]:
    """Exact city lookup; anything else searches around DEFAULT_CITY."""
    key = (location or "").strip().lower()
    return CITY_COORDINATES.get(key, CITY_COORDINATES[DEFAULT_CITY])


def api_headers(referer: str) -> dict[str, str]:
    return {
        "Referer": referer,
        "Origin": DEFAULT_BASE_URL,
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Sec-Ch-Ua-Platform": '"macOS"',
    }
