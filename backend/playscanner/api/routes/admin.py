"""Admin dashboard and maintenance actions. Bearer-protected."""
import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from playscanner.api.deps import get_persistent_cache, require_collect_secret
from playscanner.services import monitoring
from playscanner.services.cache.persistent import PersistentCacheService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_collect_secret)])


class AdminAction(BaseModel):
    action: Literal["cleanup_cache", "health_check", "get_stats"]


@router.get("/admin")
def admin_dashboard(
    timeframe: int = Query(default=24, ge=1, le=24 * 30),
    action: Literal["cleanup"] | None = None,
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    data = monitoring.admin_dashboard(persistent_cache, timeframe)
    if action == "cleanup":
        removed = persistent_cache.cleanup()
        data["action"] = {"type": "cleanup", "result": f"Cleaned {removed} expired entries"}
    return data


@router.post("/admin")
def admin_action(
    body: AdminAction,
    persistent_cache: PersistentCacheService = Depends(get_persistent_cache),
):
    result: dict = {"action": body.action, "timestamp": datetime.now(timezone.utc).isoformat()}
    if body.action == "cleanup_cache":
        removed = persistent_cache.cleanup()
        result["message"] = f"Cleaned {removed} expired cache entries"
        result["cleaned_entries"] = removed
    elif body.action == "health_check":
        health = persistent_cache.health_check()
        result["health"] = health
        result["message"] = "System healthy" if health["healthy"] else "System issues detected"
    else:
        result["stats"] = persistent_cache.get_cache_stats()
        result["message"] = "Cache statistics retrieved"
    logger.info("Admin action %s", body.action)
    return result
