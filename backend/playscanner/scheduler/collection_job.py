"""
Scheduled jobs. APScheduler runs these in its worker threads; the async collector gets its
own event loop per run via asyncio.run. A run that is still in flight is not started twice.
"""
import asyncio
import logging
import threading
from typing import Any

from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.collector.production import ProductionCollector

logger = logging.getLogger(__name__)

_run_lock = threading.Lock()


def run_collection_job(collector: ProductionCollector) -> dict[str, Any] | None:
    """One production collection pass. Returns the result dict, or None when skipped or crashed."""
    if not _run_lock.acquire(blocking=False):
        logger.info("Collection job still running; skipping this tick")
        return None
    try:
        result = asyncio.run(collector.collect_with_intelligence())
        logger.info(
            "Scheduled collection %s finished: %s in %sms",
            result.collection_id, result.status, result.total_time,
        )
        return result.to_dict()
    except Exception as e:
        logger.exception("Scheduled collection failed: %s", e)
        return None
    finally:
        _run_lock.release()


def run_cache_cleanup_job(persistent_cache: PersistentCacheService) -> int:
    removed = persistent_cache.cleanup()
    logger.info("Persistent cache cleanup removed %s expired entries", removed)
    return removed
