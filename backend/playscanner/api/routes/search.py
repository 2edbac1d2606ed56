"""
Search: live provider search (memory-cached) or persistent-cache search, plus provider diagnostics.
"""
import logging
import re
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from playscanner.api.deps import get_persistent_cache, get_search_service
from playscanner.config import settings
from playscanner.core.errors import error_to_http
from playscanner.db.session import get_db
from playscanner.services.cache.persistent import PersistentCacheService, list_stored_venues
from playscanner.services.providers.types import SPORTS, SearchParams, SearchResult, SportSpecificFilters
from playscanner.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
FOOTBALL_COMING_SOON = (
    "Football booking is coming soon! We're working on integrating with PowerLeague, "
    "FC Urban, and other providers."
)


class SearchRequest(BaseModel):
    """Loose request body; validated by hand so errors carry the API's error codes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    sport: str | None = None
    location: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    max_price: int | None = None
    indoor: bool | None = None
    filters: SportSpecificFilters | None = None
    cached: bool = False


class ProviderTestRequest(SearchRequest):
    provider: str = "playtomic"


def _bad_request(message: str, code: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"error": message, "code": code})


def validate_search_request(body: SearchRequest, today: date | None = None) -> SearchParams:
    """Raise HTTPException(400) with VALIDATION_ERROR / INVALID_SPORT / INVALID_DATE / PAST_DATE."""
    if not body.sport or not body.location or not body.date:
        raise _bad_request("Missing required fields: sport, location, date", "VALIDATION_ERROR")
    if body.sport not in SPORTS:
        raise _bad_request("Invalid sport. Must be 'padel' or 'football'", "INVALID_SPORT")
    if not _DATE_RE.match(body.date):
        raise _bad_request("Invalid date format. Use YYYY-MM-DD", "INVALID_DATE")
    try:
        day = date.fromisoformat(body.date)
    except ValueError:
        raise _bad_request("Invalid date format. Use YYYY-MM-DD", "INVALID_DATE") from None
    if day < (today or date.today()):
        raise _bad_request("Date cannot be in the past", "PAST_DATE")
    try:
        return SearchParams(
            sport=body.sport,
            location=body.location.strip(),
            date=body.date,
            start_time=body.start_time,
            end_time=body.end_time,
            max_price=body.max_price,
            indoor=body.indoor,
            filters=body.filters,
        )
    except ValidationError as e:
        raise _bad_request(str(e), "VALIDATION_ERROR") from None


def _dump(result: SearchResult) -> dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/search")
async def search(
    body: SearchRequest,
    search_service: SearchService = Depends(get_search_service),
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    """Search court availability. Football returns an empty result until a provider exists."""
    params = validate_search_request(body)
    if params.sport == "football":
        out = _dump(SearchResult(filters=params))
        out["message"] = FOOTBALL_COMING_SOON
        return out
    use_cached = settings.playscanner_use_cached or body.cached
    try:
        if use_cached:
            result = await run_in_threadpool(persistent_cache.search, params)
        else:
            result = await search_service.search(params)
    except Exception as e:
        logger.exception("Search failed for %s %s", params.location, params.date)
        raise error_to_http(e)
    out = _dump(result)
    if settings.playscanner_debug:
        out["debug"] = {
            "searchMode": "cached" if use_cached else "live",
            "providers": search_service.get_available_providers(),
            "cache": search_service.get_cache_stats(),
        }
    return out


@router.get("/search")
async def search_status(search_service: SearchService = Depends(get_search_service)):
    """Provider health, memory cache stats and the provider list."""
    return {
        "status": "healthy",
        "providers": await search_service.get_provider_health(),
        "cache": search_service.get_cache_stats(),
        "available_providers": search_service.get_available_providers(),
    }


@router.get("/providers")
async def list_providers(search_service: SearchService = Depends(get_search_service)):
    return {"providers": search_service.get_available_providers()}


@router.get("/venues")
def stored_venues(
    city: str | None = None,
    provider: str | None = None,
    include_inactive: bool = False,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Venues seen by past collection runs. Reads the store only; no provider calls."""
    try:
        venues = list_stored_venues(db, city, provider, include_inactive=include_inactive, limit=limit)
    except SQLAlchemyError:
        logger.exception("Stored venue lookup failed")
        raise HTTPException(status_code=500, detail={"error": "Venue store unavailable"})
    return {"venues": venues, "count": len(venues)}


@router.get("/venues/{provider}/{venue_id}")
async def venue_details(
    provider: str,
    venue_id: str,
    search_service: SearchService = Depends(get_search_service),
):
    try:
        venue = await search_service.get_venue_details(provider, venue_id)
    except KeyError:
        raise HTTPException(status_code=404, detail={"error": f"Unknown provider: {provider}"})
    except Exception as e:
        raise error_to_http(e)
    return venue.model_dump(mode="json", by_alias=True)


@router.post("/test")
async def test_provider(
    body: ProviderTestRequest,
    search_service: SearchService = Depends(get_search_service),
):
    """Run one provider directly, bypassing the cache. For diagnostics."""
    params = validate_search_request(body)
    outcome = await search_service.test_provider(body.provider, params)
    outcome["results"] = [s.model_dump(mode="json", by_alias=True) for s in outcome["results"]]
    outcome["total_results"] = len(outcome["results"])
    return outcome
