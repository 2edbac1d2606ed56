"""
FastAPI app entrypoint.

PLAYScanner: padel court availability search across booking providers, with a scheduled
collector that keeps a persistent cache warm for the most requested cities.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from playscanner.api.routes import admin, collect, health, search
from playscanner.config import settings
from playscanner.core.constants import (
    CACHE_CLEANUP_INTERVAL_MINUTES,
    CACHE_CLEANUP_JOB_ID,
    COLLECTION_JOB_ID,
)
from playscanner.db.session import SessionLocal
from playscanner.scheduler.collection_job import run_cache_cleanup_job, run_collection_job
from playscanner.services.cache.memory import MemoryCache
from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.collector.background import BackgroundCollector
from playscanner.services.collector.production import ProductionCollector
from playscanner.services.providers.registry import build_default_registry
from playscanner.services.search_service import SearchService

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


def build_services(app: FastAPI) -> None:
    """Per-process services on app.state; routes read them through api.deps."""
    cache = MemoryCache()
    registry = build_default_registry()
    persistent_cache = PersistentCacheService(
        SessionLocal, default_ttl=settings.persistent_cache_ttl_minutes * 60
    )
    playtomic = registry.get_provider("playtomic")
    cities = settings.city_list()

    app.state.memory_cache = cache
    app.state.registry = registry
    app.state.search_service = SearchService(cache, registry)
    app.state.persistent_cache = persistent_cache
    app.state.production_collector = ProductionCollector(
        playtomic, persistent_cache, cities=cities, days_ahead=settings.collector_days_ahead
    )
    app.state.background_collector = BackgroundCollector(playtomic, persistent_cache, cities=cities)


@asynccontextmanager
async def lifespan(app: FastAPI):
    build_services(app)
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_collection_job,
        "interval",
        minutes=settings.collector_interval_minutes,
        id=COLLECTION_JOB_ID,
        args=[app.state.production_collector],
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_cache_cleanup_job,
        "interval",
        minutes=CACHE_CLEANUP_INTERVAL_MINUTES,
        id=CACHE_CLEANUP_JOB_ID,
        args=[app.state.persistent_cache],
    )
    scheduler.start()
    app.state.scheduler = scheduler
    logger.info(
        "PLAYScanner ready: mode=%s cities=%s collection every %sm",
        "cached" if settings.playscanner_use_cached else "live",
        ",".join(settings.city_list()),
        settings.collector_interval_minutes,
    )
    yield
    scheduler.shutdown(wait=False)
    app.state.memory_cache.destroy()


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Build the app. Without the lifespan, callers set app.state services themselves."""
    app = FastAPI(title="PLAYScanner", version="0.1.0", lifespan=lifespan if use_lifespan else None)

    # CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the production frontend
    cors_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_extra = os.getenv("CORS_ORIGINS", "")
    if cors_extra:
        cors_origins.extend(o.strip() for o in cors_extra.split(",") if o.strip())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search.router, prefix="/playscanner", tags=["search"])
    app.include_router(health.router, prefix="/playscanner", tags=["health"])
    app.include_router(collect.router, prefix="/playscanner", tags=["collect"])
    app.include_router(admin.router, prefix="/playscanner", tags=["admin"])

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "PLAYScanner API", "docs": "/docs", "health": "/health"}

    @app.get("/health")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
