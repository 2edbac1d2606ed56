"""Simple sequential collector: cities x days, a polite pause between collections, no retry."""
import asyncio
import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from playscanner.core.constants import BACKGROUND_COLLECTOR_DAYS_AHEAD, BACKGROUND_COLLECTOR_DELAY_SECONDS
from playscanner.services.cache.persistent import CollectionLogEntry, PersistentCacheService
from playscanner.services.providers.base import ProviderAdapter
from playscanner.services.providers.types import CourtSlot, SearchParams

logger = logging.getLogger(__name__)


def _price_range(slots: list[CourtSlot]) -> dict[str, float] | None:
    """Min/max in whole currency units (pounds), None when there are no slots."""
    if not slots:
        return None
    prices = [s.price / 100 for s in slots]
    return {"min": min(prices), "max": max(prices)}


class BackgroundCollector:
    def __init__(
        self,
        provider: ProviderAdapter,
        persistent_cache: PersistentCacheService | None = None,
        *,
        cities: list[str] | None = None,
        days_ahead: int = BACKGROUND_COLLECTOR_DAYS_AHEAD,
        delay: float = BACKGROUND_COLLECTOR_DELAY_SECONDS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.provider = provider
        self.cache = persistent_cache
        self.cities = cities or ["London"]
        self.days_ahead = days_ahead
        self.delay = delay
        self._today = today

    async def collect_all(self) -> dict[str, Any]:
        started = time.monotonic()
        collection_id = f"simple_{int(time.time() * 1000)}"
        results: list[dict[str, Any]] = []
        venue_ids: set[str] = set()
        logger.info("Starting background collection for %s cities, %s days", len(self.cities), self.days_ahead)

        for city in self.cities:
            for offset in range(self.days_ahead):
                day = (self._today() + timedelta(days=offset)).isoformat()
                item_started = time.monotonic()
                try:
                    slots = await self.provider.fetch_availability(
                        SearchParams(sport="padel", location=city, date=day)
                    )
                    if self.cache is not None:
                        await asyncio.to_thread(self.cache.set_cached_data, city, day, slots)
                except Exception as e:
                    logger.warning("Background collection %s %s failed: %s", city, day, e)
                    results.append({
                        "city": city,
                        "date": day,
                        "status": "error",
                        "error": str(e) or type(e).__name__,
                        "collected_at": datetime.now(timezone.utc).isoformat(),
                    })
                    await self._log(collection_id, city, day, "error", item_started, error=str(e))
                    continue
                ids = {s.venue.id for s in slots}
                venue_ids |= ids
                results.append({
                    "city": city,
                    "date": day,
                    "status": "success",
                    "slots_count": len(slots),
                    "venues_count": len(ids),
                    "price_range": _price_range(slots),
                    "collected_at": datetime.now(timezone.utc).isoformat(),
                })
                logger.info("Collected %s %s: %s slots from %s venues", city, day, len(slots), len(ids))
                await self._log(collection_id, city, day, "success", item_started, slots=len(slots), venues=len(ids))
                if self.delay > 0:
                    await asyncio.sleep(self.delay)

        successful = sum(1 for r in results if r["status"] == "success")
        total_slots = sum(r.get("slots_count", 0) for r in results)
        elapsed = int((time.monotonic() - started) * 1000)
        logger.info("Background collection done: %s/%s ok, %s slots, %sms", successful, len(results), total_slots, elapsed)
        return {
            "results": results,
            "summary": {
                "total_collections": len(results),
                "successful_collections": successful,
                "total_slots": total_slots,
                "total_venues": len(venue_ids),
                "collection_time": elapsed,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }

    async def _log(
        self,
        collection_id: str,
        city: str,
        day: str,
        status: str,
        item_started: float,
        *,
        slots: int = 0,
        venues: int = 0,
        error: str | None = None,
    ) -> None:
        if self.cache is None:
            return
        await asyncio.to_thread(
            self.cache.log_collection,
            CollectionLogEntry(
                collection_id=collection_id,
                city=city,
                date=day,
                status=status,
                slots_collected=slots,
                venues_processed=venues,
                error_message=error,
                execution_time_ms=int((time.monotonic() - item_started) * 1000),
                provider=self.provider.name,
            ),
        )
