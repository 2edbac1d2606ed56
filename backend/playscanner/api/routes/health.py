"""Component health: persistent cache, providers, collection history. 200 when healthy, else 503."""
import logging
import time
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from playscanner.api.deps import get_persistent_cache, get_search_service
from playscanner.config import settings
from playscanner.services import monitoring
from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


@router.get("/health")
async def health(
    component: Literal["cache", "providers", "collection"] | None = Query(default=None),
    detailed: bool = False,
    search_service: SearchService = Depends(get_search_service),
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    started = time.monotonic()
    data: dict = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "mode": "cached" if settings.playscanner_use_cached else "live",
    }
    try:
        if component in (None, "cache"):
            data["cache"] = await run_in_threadpool(monitoring.check_cache_health, persistent_cache, detailed)
        if component in (None, "providers"):
            data["providers"] = await monitoring.check_provider_health(search_service, detailed)
        if component in (None, "collection"):
            data["collection"] = await run_in_threadpool(
                monitoring.check_collection_health, persistent_cache, detailed
            )
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(
            {"status": "unhealthy", "timestamp": data["timestamp"], "error": str(e)},
            status_code=500,
            headers=_NO_CACHE,
        )
    for name in ("cache", "providers", "collection"):
        if name in data and data[name]["status"] != "healthy":
            data["status"] = "degraded"
    if detailed:
        data["configuration"] = {
            "cache_mode": settings.playscanner_use_cached,
            "debug_mode": settings.playscanner_debug,
            "collect_secret_set": bool(settings.playscanner_collect_secret),
            "cities": settings.city_list(),
        }
    data["response_time"] = int((time.monotonic() - started) * 1000)
    if data["status"] != "healthy":
        logger.warning(
            "PLAYScanner health degraded: cache=%s providers=%s collection=%s",
            data.get("cache", {}).get("status"),
            data.get("providers", {}).get("status"),
            data.get("collection", {}).get("status"),
        )
    return JSONResponse(data, status_code=200 if data["status"] == "healthy" else 503, headers=_NO_CACHE)
