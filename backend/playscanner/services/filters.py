"""
Slot filtering, sorting and merge helpers. Pure functions, no I/O.

Times compare as HH:MM of the venue-local digits stored on the slot, so "14:00" means 14:00
at the venue regardless of where the server runs.
"""
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Literal

from playscanner.services.providers.transform import parse_local_datetime, wall_clock_hhmm
from playscanner.services.providers.types import CourtSlot, FilterState, SearchParams

SortKey = Literal["time-asc", "time-desc", "price-asc", "price-desc"]
SORT_KEYS: tuple[str, ...] = ("time-asc", "time-desc", "price-asc", "price-desc")

DEFAULT_PRICE_BOUNDS = (500, 20000)
DEFAULT_TIME_BOUNDS = ("06:00", "23:30")


def filter_by_time_range(slots: Iterable[CourtSlot], start: str | None, end: str | None) -> list[CourtSlot]:
    """Keep slots whose local start HH:MM is within [start, end], both inclusive and optional."""
    out = []
    for s in slots:
        hhmm = wall_clock_hhmm(s.start_time)
        if start and hhmm < start:
            continue
        if end and hhmm > end:
            continue
        out.append(s)
    return out


def filter_by_price(slots: Iterable[CourtSlot], min_price: int | None = None, max_price: int | None = None) -> list[CourtSlot]:
    """Keep slots with min_price <= price <= max_price (minor units)."""
    lo = min_price if min_price is not None else 0
    return [s for s in slots if s.price >= lo and (max_price is None or s.price <= max_price)]


def filter_by_venues(slots: Iterable[CourtSlot], venue_ids: Iterable[str] | None) -> list[CourtSlot]:
    """Venue allow-list. Empty or None keeps everything."""
    allowed = set(venue_ids or ())
    if not allowed:
        return list(slots)
    return [s for s in slots if s.venue.id in allowed]


def filter_by_search_params(slots: Iterable[CourtSlot], params: SearchParams) -> list[CourtSlot]:
    """
    Request-level filters: the whole slot must fit the time window on params.date (start at or
    after start_time, end at or before end_time), then max price, indoor, padel court type.
    """
    items = list(slots)
    if params.start_time or params.end_time:
        lo = parse_local_datetime(params.date, params.start_time) if params.start_time else None
        hi = parse_local_datetime(params.date, params.end_time) if params.end_time else None
        items = [s for s in items if _within(s, lo, hi)]
    if params.max_price is not None:
        items = filter_by_price(items, max_price=params.max_price)
    if params.indoor is not None:
        items = [s for s in items if s.features.indoor == params.indoor]
    padel = params.filters.padel if params.filters else None
    if padel and padel.court_type:
        items = [s for s in items if getattr(s.sport_meta, "court_type", None) == padel.court_type]
    return items


def _within(slot: CourtSlot, lo: datetime | None, hi: datetime | None) -> bool:
    if lo is not None and slot.start_time < lo:
        return False
    if hi is not None and slot.end_time > hi:
        return False
    return True


def sort_slots(slots: Iterable[CourtSlot], sort_by: SortKey = "time-asc") -> list[CourtSlot]:
    """Stable sort: equal keys keep their input order (also for the -desc keys)."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}. Expected one of {SORT_KEYS}")
    field, direction = sort_by.split("-")
    key = (lambda s: s.start_time) if field == "time" else (lambda s: s.price)
    return sorted(slots, key=key, reverse=direction == "desc")


def sort_by_time_then_price(slots: Iterable[CourtSlot]) -> list[CourtSlot]:
    return sorted(slots, key=lambda s: (s.start_time, s.price))


def dedupe_slots(slots: Iterable[CourtSlot]) -> list[CourtSlot]:
    """
    Collapse slots with the same venue, start time and whole-currency-unit price, keeping the
    cheaper one. First-seen position is kept so the result stays deterministic before sorting.

    Prices are bucketed by floor to whole units, not by distance: 2999 and 3001 fall in
    different buckets (29 and 30) and both survive, while 3000 and 3099 collapse.
    """
    best: dict[tuple[str, datetime, int], CourtSlot] = {}
    for s in slots:
        key = (s.venue.id, s.start_time, s.price // 100)
        current = best.get(key)
        if current is None or s.price < current.price:
            best[key] = s
    return list(best.values())


def merge_provider_results(results: Iterable[Iterable[CourtSlot]]) -> list[CourtSlot]:
    """Concatenate, dedupe, sort by start time then price."""
    merged: list[CourtSlot] = []
    for r in results:
        merged.extend(r)
    return sort_by_time_then_price(dedupe_slots(merged))


def apply_filters(slots: Iterable[CourtSlot], filters: FilterState) -> list[CourtSlot]:
    """Apply a FilterState (time range, price range, venue allow-list) to an existing result set."""
    items = list(slots)
    if filters.time_range and (filters.time_range.start or filters.time_range.end):
        items = filter_by_time_range(items, filters.time_range.start, filters.time_range.end)
    if filters.price_range and (filters.price_range.min is not None or filters.price_range.max is not None):
        items = filter_by_price(items, filters.price_range.min, filters.price_range.max)
    if filters.venues:
        items = filter_by_venues(items, filters.venues)
    return items


def has_active_filters(filters: FilterState) -> bool:
    for value in (filters.time_range, filters.price_range, filters.venues):
        if value is None:
            continue
        if isinstance(value, list) and not value:
            continue
        return True
    return False


def filter_summary(filters: FilterState) -> list[str]:
    """Human-readable chips, e.g. ["18:00 - 21:00", "£20.00 - £45.00", "2 venues"]."""
    summary: list[str] = []
    tr = filters.time_range
    if tr and (tr.start or tr.end):
        summary.append(f"{tr.start or 'any'} - {tr.end or 'any'}")
    pr = filters.price_range
    if pr and (pr.min is not None or pr.max is not None):
        lo = f"£{pr.min / 100:.2f}" if pr.min is not None else "any"
        hi = f"£{pr.max / 100:.2f}" if pr.max is not None else "any"
        summary.append(f"{lo} - {hi}")
    if filters.venues:
        n = len(filters.venues)
        summary.append(f"{n} venue" if n == 1 else f"{n} venues")
    return summary


def analyze_search_results(slots: Iterable[CourtSlot]) -> dict[str, Any]:
    """
    Dynamic bounds for filter controls: price floored/ceiled to whole currency units, earliest
    and latest start HH:MM. Defaults when there are no slots.
    """
    items = list(slots)
    if not items:
        lo, hi = DEFAULT_PRICE_BOUNDS
        earliest, latest = DEFAULT_TIME_BOUNDS
        return {"price_range": {"min": lo, "max": hi}, "time_range": {"earliest": earliest, "latest": latest}}
    prices = [s.price for s in items]
    times = sorted(wall_clock_hhmm(s.start_time) for s in items)
    return {
        "price_range": {
            "min": (min(prices) // 100) * 100,
            "max": -(-max(prices) // 100) * 100,
        },
        "time_range": {"earliest": times[0], "latest": times[-1]},
    }
