"""Route dependencies: per-process services live on app.state (built in main.lifespan)."""
from fastapi import Header, HTTPException, Request

from playscanner.config import settings
from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.collector.background import BackgroundCollector
from playscanner.services.collector.production import ProductionCollector
from playscanner.services.search_service import SearchService


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def get_persistent_cache(request: Request) -> PersistentCacheService:
    return request.app.state.persistent_cache


def get_production_collector(request: Request) -> ProductionCollector:
    return request.app.state.production_collector


def get_background_collector(request: Request) -> BackgroundCollector:
    return request.app.state.background_collector


def require_collect_secret(authorization: str | None = Header(default=None)) -> None:
    """Bearer PLAYSCANNER_COLLECT_SECRET. Open when no secret is configured (local dev)."""
    secret = settings.playscanner_collect_secret
    if not secret:
        return
    if authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail={"error": "Unauthorized - Valid API key required"})
