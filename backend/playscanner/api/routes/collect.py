"""Manual collection trigger (bearer-protected) and collection status."""
import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from playscanner.api.deps import (
    get_background_collector,
    get_persistent_cache,
    get_production_collector,
    require_collect_secret,
)
from playscanner.core.errors import error_to_http
from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.collector.background import BackgroundCollector
from playscanner.services.collector.production import ProductionCollector

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/collect", dependencies=[Depends(require_collect_secret)])
async def collect(
    mode: Literal["production", "simple"] = Query(default="production"),
    production: ProductionCollector = Depends(get_production_collector),
    background: BackgroundCollector = Depends(get_background_collector),
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    """Run one collection pass now and return its summary."""
    try:
        if mode == "simple":
            collection = await background.collect_all()
            status = "success"
        else:
            result = await production.collect_with_intelligence()
            collection = result.to_dict()
            status = result.status
    except Exception as e:
        logger.exception("Manual %s collection failed", mode)
        raise error_to_http(e)
    return {
        "status": status,
        "mode": mode,
        "collection": collection,
        "cache_stats": await run_in_threadpool(persistent_cache.get_cache_stats),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/collect")
def collect_status(
    limit: int = Query(default=10, ge=1, le=100),
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    return {
        "status": "ready",
        "recent_collections": persistent_cache.get_recent_collections(limit),
        "cache_stats": persistent_cache.get_cache_stats(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
