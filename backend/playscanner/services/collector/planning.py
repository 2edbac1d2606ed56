"""Work plan for a production collection run: one task per (city, date), highest priority first."""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Literal

from playscanner.core.constants import (
    COLLECTOR_BACKOFF_BASE_SECONDS,
    COLLECTOR_BACKOFF_CAP_SECONDS,
    COLLECTOR_MAX_CONCURRENCY,
    COLLECTOR_MAX_RETRIES,
    COLLECTOR_PRIORITY_BASE,
    COLLECTOR_TASK_TIMEOUT_SECONDS,
)

TaskStatus = Literal["pending", "running", "completed", "failed"]

# date.weekday(): Monday=0 .. Sunday=6
FRIDAY, SATURDAY, SUNDAY = 4, 5, 6


@dataclass
class CollectionTask:
    city: str
    date: str
    priority: int
    attempts: int = 0
    status: TaskStatus = "pending"


@dataclass
class WorkPlan:
    tasks: list[CollectionTask] = field(default_factory=list)
    max_concurrency: int = COLLECTOR_MAX_CONCURRENCY
    timeout_per_task: float = COLLECTOR_TASK_TIMEOUT_SECONDS
    max_retries: int = COLLECTOR_MAX_RETRIES  # retries after the first attempt
    backoff_base: float = COLLECTOR_BACKOFF_BASE_SECONDS
    backoff_cap: float = COLLECTOR_BACKOFF_CAP_SECONDS

    def backoff_delay(self, attempt: int) -> float:
        """Delay after failed attempt n (1-based): min(base * 2^(n-1), cap)."""
        return min(self.backoff_base * 2 ** (attempt - 1), self.backoff_cap)


def calculate_task_priority(day: date, today: date) -> int:
    """
    Base score, plus up to 10 for near dates (2 less per day out), plus 20 for weekends,
    plus 10 for Friday/Saturday peak demand.
    """
    priority = COLLECTOR_PRIORITY_BASE
    days_from_now = (day - today).days
    priority += max(0, 10 - days_from_now * 2)
    weekday = day.weekday()
    if weekday in (SATURDAY, SUNDAY):
        priority += 20
    if weekday in (FRIDAY, SATURDAY):
        priority += 10
    return priority


def create_work_plan(
    cities: list[str],
    days_ahead: int,
    *,
    today: date | None = None,
    **plan_options,
) -> WorkPlan:
    """Tasks for cities x [today, today + days_ahead). Ties keep city/date order."""
    today = today or date.today()
    tasks: list[CollectionTask] = []
    for city in cities:
        for offset in range(days_ahead):
            day = today + timedelta(days=offset)
            tasks.append(
                CollectionTask(
                    city=city.strip().lower(),
                    date=day.isoformat(),
                    priority=calculate_task_priority(day, today),
                )
            )
    tasks.sort(key=lambda t: t.priority, reverse=True)
    return WorkPlan(tasks=tasks, **plan_options)
