"""
Component health and admin dashboard summaries built from the search service and the
persistent cache. Each check returns a dict with status healthy | degraded | unhealthy.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any

from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.search_service import SearchService

logger = logging.getLogger(__name__)

SUCCESS_RATE_UNHEALTHY = 50.0
SUCCESS_RATE_DEGRADED = 80.0
COLLECTION_STALE_AFTER = timedelta(hours=2)


def _parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def check_cache_health(cache: PersistentCacheService, detailed: bool = False) -> dict[str, Any]:
    health_check = cache.health_check()
    stats = cache.get_cache_stats()
    health: dict[str, Any] = {
        "status": "healthy" if health_check["healthy"] else "unhealthy",
        "connection": health_check["healthy"],
        "active_entries": stats["active_entries"],
        "total_slots": stats["total_slots"],
        "cities_covered": stats["cities_covered"],
    }
    if detailed:
        health["details"] = stats
    if health["status"] == "healthy" and stats["active_entries"] == 0:
        health["status"] = "degraded"
        health["warning"] = "No active cache entries found"
    return health


async def check_provider_health(search: SearchService, detailed: bool = False) -> dict[str, Any]:
    provider_health = await search.get_provider_health()
    available = search.get_available_providers()
    health: dict[str, Any] = {
        "status": "healthy",
        "available_providers": len(available),
        "providers": available,
    }
    if detailed:
        health["details"] = provider_health
    unhealthy = [name for name, ok in provider_health.items() if not ok]
    if unhealthy:
        health["status"] = "degraded"
        health["warning"] = f"{len(unhealthy)} providers unhealthy"
    if not available:
        health["status"] = "unhealthy"
        health["error"] = "No providers available"
    return health


def check_collection_health(cache: PersistentCacheService, detailed: bool = False) -> dict[str, Any]:
    success_rate = cache.get_collection_success_rate(24)
    recent = cache.get_recent_collections(5)
    health: dict[str, Any] = {
        "status": "healthy",
        "success_rate": f"{success_rate:.1f}%",
        "recent_collections": len(recent),
    }
    if detailed:
        health["details"] = {
            "recent_collections": recent,
            "last_successful_collection": next(
                (c["created_at"] for c in recent if c["status"] == "success"), None
            ),
        }
    if success_rate < SUCCESS_RATE_UNHEALTHY:
        health["status"] = "unhealthy"
        health["error"] = f"Low success rate: {success_rate:.1f}%"
    elif success_rate < SUCCESS_RATE_DEGRADED:
        health["status"] = "degraded"
        health["warning"] = f"Moderate success rate: {success_rate:.1f}%"

    last = _parse_iso(recent[0]["created_at"]) if recent else None
    if not recent:
        if health["status"] == "healthy":
            health["status"] = "degraded"
        health["warning"] = "No collection history found"
    elif last is not None and last < datetime.now(timezone.utc) - COLLECTION_STALE_AFTER:
        if health["status"] == "healthy":
            health["status"] = "degraded"
        health["warning"] = "No recent collections (>2h)"
    return health


def data_freshness(last_collection: str | None) -> str:
    last = _parse_iso(last_collection)
    if last is None:
        return "unknown"
    minutes = int((datetime.now(timezone.utc) - last).total_seconds() // 60)
    if minutes < 30:
        return "fresh"
    if minutes < 120:
        return "recent"
    return "stale"


def collection_summary(collections: list[dict[str, Any]]) -> dict[str, Any]:
    statuses = Counter(c["status"] for c in collections)
    times = [c["execution_time_ms"] for c in collections if c["status"] == "success"]
    return {
        "total": len(collections),
        "successful": statuses.get("success", 0),
        "failed": statuses.get("error", 0),
        "partial": statuses.get("partial", 0),
        "total_slots": sum(c["slots_collected"] for c in collections),
        "average_execution_time": (sum(times) / len(times)) if times else 0.0,
    }


def collection_trends(collections: list[dict[str, Any]]) -> dict[str, Any]:
    """Per-city success counts across the given log rows."""
    by_city: dict[str, dict[str, int]] = {}
    for c in collections:
        bucket = by_city.setdefault(c["city"], {"success": 0, "error": 0})
        if c["status"] == "success":
            bucket["success"] += 1
        else:
            bucket["error"] += 1
    return {"by_city": by_city}


def admin_dashboard(cache: PersistentCacheService, timeframe_hours: int) -> dict[str, Any]:
    stats = cache.get_cache_stats()
    health = cache.health_check()
    success_rate = cache.get_collection_success_rate(timeframe_hours)
    recent = cache.get_recent_collections(20)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "timeframe": f"{timeframe_hours}h",
        "overview": {
            "cache_health": "healthy" if health["healthy"] else "unhealthy",
            "active_entries": stats["active_entries"],
            "total_slots": stats["total_slots"],
            "cities_covered": stats["cities_covered"],
            "success_rate": f"{success_rate:.1f}%",
            "last_collection": recent[0]["created_at"] if recent else None,
        },
        "cache": {
            "stats": stats,
            "data_freshness": data_freshness(stats["last_collection"]),
        },
        "collections": {
            "recent": recent[:10],
            "summary": collection_summary(recent),
            "trends": collection_trends(recent),
        },
    }
