"""Parsing helpers shared by providers: prices, venue-local times, slugs."""
import re
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_PRICE_RE = re.compile(r"\d[\d.,]*")


def parse_price(price_text: str | int | float | None) -> int:
    """
    Extract a decimal amount and return it in minor units (pence/cents), rounded half-up.
    Handles "48 GBP", "£25.50", "25,50 €", "1,250.00". Returns 0 when no amount is present.
    """
    if price_text is None:
        return 0
    if isinstance(price_text, (int, float)):
        raw = str(price_text)
    else:
        m = _PRICE_RE.search(price_text)
        if not m:
            return 0
        raw = m.group(0).rstrip(".,")
        if "," in raw and "." in raw:
            raw = raw.replace(",", "")  # thousands separator
        else:
            raw = raw.replace(",", ".")  # decimal comma
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def detect_currency(price_text: str | None, default: str = "GBP") -> str:
    s = (price_text or "").upper()
    if "€" in s or "EUR" in s:
        return "EUR"
    if "£" in s or "GBP" in s:
        return "GBP"
    return default


def parse_local_datetime(date_str: str, time_str: str) -> datetime:
    """
    Combine a request date and a provider wall-clock time ("14:00" or "14:00:00") literally.
    The result is tagged UTC but keeps the venue-local digits; no zone conversion happens.
    """
    t = time_str.strip()
    if len(t) == 5:
        t = f"{t}:00"
    try:
        naive = datetime.fromisoformat(f"{date_str.strip()}T{t}")
    except ValueError as e:
        raise ValueError(f"Invalid date/time: {date_str} {time_str}") from e
    return naive.replace(tzinfo=timezone.utc)


def add_minutes(start: datetime, minutes: int) -> datetime:
    return start + timedelta(minutes=minutes)


def wall_clock_hhmm(dt: datetime) -> str:
    """HH:MM of the stored wall-clock digits (what the venue shows)."""
    return dt.strftime("%H:%M")


def slugify(text: str) -> str:
    s = re.sub(r"[^\w\s-]", "", (text or "").lower())
    s = re.sub(r"[\s_-]+", "-", s)
    return s.strip("-")


def clean_venue_name(name: str) -> str:
    """Unescape the few HTML entities seen in scraped names and collapse whitespace."""
    out = (
        name.replace("&amp;", "&")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&#39;", "'")
    )
    return re.sub(r"\s+", " ", out).strip()
