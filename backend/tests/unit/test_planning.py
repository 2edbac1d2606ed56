"""
Unit tests for collection work planning.
"""
from datetime import date

from playscanner.services.collector.planning import WorkPlan, calculate_task_priority, create_work_plan

MONDAY = date(2025, 6, 2)


class TestTaskPriority:
    def test_today(self):
        assert calculate_task_priority(MONDAY, MONDAY) == 60

    def test_near_weekday(self):
        assert calculate_task_priority(date(2025, 6, 3), MONDAY) == 58

    def test_friday_peak(self):
        assert calculate_task_priority(date(2025, 6, 6), MONDAY) == 62

    def test_saturday_weekend_and_peak(self):
        assert calculate_task_priority(date(2025, 6, 7), MONDAY) == 80

    def test_sunday_weekend(self):
        assert calculate_task_priority(date(2025, 6, 8), MONDAY) == 70

    def test_far_dates_floor_at_base(self):
        assert calculate_task_priority(date(2025, 6, 18), MONDAY) == 50


class TestCreateWorkPlan:
    def test_tasks_sorted_by_priority(self):
        plan = create_work_plan(["London"], 7, today=MONDAY)
        assert [t.date for t in plan.tasks] == [
            "2025-06-07",
            "2025-06-08",
            "2025-06-06",
            "2025-06-02",
            "2025-06-03",
            "2025-06-04",
            "2025-06-05",
        ]
        assert all(t.city == "london" for t in plan.tasks)
        assert all(t.status == "pending" and t.attempts == 0 for t in plan.tasks)

    def test_cities_times_days(self):
        plan = create_work_plan(["London", "Manchester"], 3, today=MONDAY)
        assert len(plan.tasks) == 6
        assert {t.city for t in plan.tasks} == {"london", "manchester"}

    def test_plan_options(self):
        plan = create_work_plan(["London"], 1, today=MONDAY, max_concurrency=5, backoff_base=0.5)
        assert plan.max_concurrency == 5
        assert plan.backoff_base == 0.5


class TestBackoff:
    def test_exponential_with_cap(self):
        plan = WorkPlan(backoff_base=1.0, backoff_cap=5.0)
        assert plan.backoff_delay(1) == 1.0
        assert plan.backoff_delay(2) == 2.0
        assert plan.backoff_delay(3) == 4.0
        assert plan.backoff_delay(4) == 5.0
