"""
Production collector: health check, prioritized work plan, bounded-concurrency execution with
retry/backoff and a shared circuit breaker, then analysis. A systemic failure (database down,
planning error) falls back to a single London/today fetch.

Persistent-cache calls are synchronous SQLAlchemy and run in worker threads via asyncio.to_thread.
"""
import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable

from playscanner.config import settings
from playscanner.core.errors import CircuitOpenError
from playscanner.services.cache.persistent import CollectionLogEntry, PersistentCacheService
from playscanner.services.collector.circuit_breaker import CircuitBreaker
from playscanner.services.collector.metrics import CollectionMetrics
from playscanner.services.collector.planning import CollectionTask, WorkPlan, create_work_plan
from playscanner.services.providers.base import ProviderAdapter
from playscanner.services.providers.types import CourtSlot, SearchParams, Venue

logger = logging.getLogger(__name__)

FALLBACK_CITY = "london"


@dataclass
class ProductionCollectionItem:
    city: str
    date: str
    status: str  # success | failed
    slots_collected: int = 0
    venues_processed: int = 0
    execution_time: int = 0  # ms
    attempts: int = 0
    error: str | None = None


@dataclass
class ProductionCollectionResult:
    status: str  # success | partial_failure
    collection_id: str
    results: list[ProductionCollectionItem]
    metrics: dict[str, Any]
    total_time: int  # ms
    timestamp: str
    analysis: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def analyze_results(results: list[ProductionCollectionItem]) -> dict[str, Any]:
    successful = [r for r in results if r.status == "success"]
    failed = [r for r in results if r.status == "failed"]
    total = len(results)
    return {
        "total_tasks": total,
        "successful": len(successful),
        "failed": len(failed),
        "success_rate": (len(successful) / total * 100) if total else 0.0,
        "total_slots": sum(r.slots_collected for r in successful),
        "total_venues": sum(r.venues_processed for r in successful),
        "average_execution_time": (
            sum(r.execution_time for r in successful) / len(successful) if successful else 0.0
        ),
    }


def _unique_venues(slots: list[CourtSlot]) -> list[Venue]:
    seen: dict[str, Venue] = {}
    for s in slots:
        seen.setdefault(s.venue.id, s.venue)
    return list(seen.values())


class ProductionCollector:
    def __init__(
        self,
        provider: ProviderAdapter,
        persistent_cache: PersistentCacheService,
        *,
        cities: list[str] | None = None,
        days_ahead: int | None = None,
        plan_options: dict[str, Any] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        metrics: CollectionMetrics | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.provider = provider
        self.cache = persistent_cache
        self.cities = cities or settings.city_list()
        self.days_ahead = days_ahead if days_ahead is not None else settings.collector_days_ahead
        self.plan_options = plan_options or {}
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.metrics = metrics or CollectionMetrics()
        self._today = today

    async def collect_with_intelligence(self) -> ProductionCollectionResult:
        started = time.monotonic()
        collection_id = f"prod_{int(time.time() * 1000)}"
        logger.info("Starting production collection %s", collection_id)
        try:
            await self.perform_health_checks()
            plan = self.create_work_plan()
            results = await self.execute_work_plan(plan, collection_id)
            analysis = analyze_results(results)
        except Exception as e:
            logger.exception("Production collection %s failed; attempting graceful degradation", collection_id)
            fallback = await self.attempt_graceful_degradation()
            return ProductionCollectionResult(
                status="partial_failure",
                collection_id=collection_id,
                results=fallback,
                metrics=self.metrics.snapshot(),
                total_time=int((time.monotonic() - started) * 1000),
                timestamp=datetime.now(timezone.utc).isoformat(),
                error=str(e),
            )
        logger.info(
            "Production collection %s: %s/%s tasks ok, %s slots",
            collection_id, analysis["successful"], analysis["total_tasks"], analysis["total_slots"],
        )
        return ProductionCollectionResult(
            status="success",
            collection_id=collection_id,
            results=results,
            analysis=analysis,
            metrics=self.metrics.snapshot(),
            total_time=int((time.monotonic() - started) * 1000),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def perform_health_checks(self) -> None:
        health = await asyncio.to_thread(self.cache.health_check)
        if not health.get("healthy"):
            raise RuntimeError(f"Database health check failed: {health.get('details')}")

    def create_work_plan(self) -> WorkPlan:
        return create_work_plan(self.cities, self.days_ahead, today=self._today(), **self.plan_options)

    async def execute_work_plan(self, plan: WorkPlan, collection_id: str) -> list[ProductionCollectionItem]:
        """Run every task under a semaphore of plan.max_concurrency. One failed task never aborts the rest."""
        semaphore = asyncio.Semaphore(max(1, plan.max_concurrency))

        async def run(task: CollectionTask) -> ProductionCollectionItem:
            async with semaphore:
                return await self.execute_task_with_retry(task, plan, collection_id)

        outcomes = await asyncio.gather(*(run(t) for t in plan.tasks), return_exceptions=True)
        results: list[ProductionCollectionItem] = []
        for task, outcome in zip(plan.tasks, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                task.status = "failed"
                results.append(
                    ProductionCollectionItem(
                        city=task.city,
                        date=task.date,
                        status="failed",
                        attempts=task.attempts,
                        error=str(outcome) or type(outcome).__name__,
                    )
                )
            else:
                results.append(outcome)
        return results

    async def _collect_city_date(self, city: str, date_str: str) -> list[CourtSlot]:
        params = SearchParams(sport="padel", location=city, date=date_str)
        return await self.provider.fetch_availability(params)

    async def execute_task_with_retry(
        self,
        task: CollectionTask,
        plan: WorkPlan,
        collection_id: str,
    ) -> ProductionCollectionItem:
        """
        Up to 1 + plan.max_retries attempts. An open breaker raises CircuitOpenError before any
        I/O. Each failed attempt (timeouts included) is logged and counted by breaker and metrics.
        """
        task.status = "running"
        last_error: Exception | None = None
        for attempt in range(1, plan.max_retries + 2):
            task.attempts = attempt
            if self.circuit_breaker.is_open():
                task.status = "failed"
                raise CircuitOpenError("Circuit breaker open - service degraded")
            attempt_started = time.monotonic()
            try:
                try:
                    slots = await asyncio.wait_for(
                        self._collect_city_date(task.city, task.date),
                        timeout=plan.timeout_per_task,
                    )
                except asyncio.TimeoutError as e:
                    raise TimeoutError(
                        f"Timeout after {plan.timeout_per_task}s for {task.city}:{task.date}"
                    ) from e
                execution_ms = int((time.monotonic() - attempt_started) * 1000)
                venues = _unique_venues(slots)
                await asyncio.to_thread(self.cache.set_cached_data, task.city, task.date, slots)
                for venue in venues:
                    await asyncio.to_thread(self.cache.store_venue, venue, task.city)
                await asyncio.to_thread(
                    self.cache.log_collection,
                    CollectionLogEntry(
                        collection_id=collection_id,
                        city=task.city,
                        date=task.date,
                        status="success",
                        slots_collected=len(slots),
                        venues_processed=len(venues),
                        execution_time_ms=execution_ms,
                        provider=self.provider.name,
                    ),
                )
            except Exception as e:
                last_error = e
                self.metrics.record_failure()
                self.circuit_breaker.record_failure()
                logger.warning(
                    "Collection %s:%s attempt %s/%s failed: %s",
                    task.city, task.date, attempt, plan.max_retries + 1, e,
                )
                await asyncio.to_thread(
                    self.cache.log_collection,
                    CollectionLogEntry(
                        collection_id=collection_id,
                        city=task.city,
                        date=task.date,
                        status="error",
                        execution_time_ms=int((time.monotonic() - attempt_started) * 1000),
                        provider=self.provider.name,
                        error_message=str(e) or type(e).__name__,
                    ),
                )
                if attempt <= plan.max_retries:
                    await asyncio.sleep(plan.backoff_delay(attempt))
                continue
            self.metrics.record_success(execution_ms)
            self.circuit_breaker.record_success()
            task.status = "completed"
            return ProductionCollectionItem(
                city=task.city,
                date=task.date,
                status="success",
                slots_collected=len(slots),
                venues_processed=len(venues),
                execution_time=execution_ms,
                attempts=attempt,
            )
        task.status = "failed"
        raise last_error or RuntimeError("Max retries exceeded")

    async def attempt_graceful_degradation(self) -> list[ProductionCollectionItem]:
        """Best effort: today's slots for the fallback city. Returns [] if even that fails."""
        today = self._today().isoformat()
        started = time.monotonic()
        try:
            slots = await asyncio.wait_for(
                self._collect_city_date(FALLBACK_CITY, today),
                timeout=self.plan_options.get("timeout_per_task", WorkPlan().timeout_per_task),
            )
        except Exception:
            logger.exception("Graceful degradation fetch failed")
            return []
        return [
            ProductionCollectionItem(
                city=FALLBACK_CITY,
                date=today,
                status="success",
                slots_collected=len(slots),
                venues_processed=len(_unique_venues(slots)),
                execution_time=int((time.monotonic() - started) * 1000),
                attempts=1,
            )
        ]
