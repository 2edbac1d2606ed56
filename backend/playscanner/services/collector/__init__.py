from playscanner.services.collector.background import BackgroundCollector
from playscanner.services.collector.circuit_breaker import CircuitBreaker
from playscanner.services.collector.metrics import CollectionMetrics
from playscanner.services.collector.planning import CollectionTask, WorkPlan, calculate_task_priority, create_work_plan
from playscanner.services.collector.production import (
    ProductionCollectionItem,
    ProductionCollectionResult,
    ProductionCollector,
    analyze_results,
)

__all__ = [
    "BackgroundCollector",
    "CircuitBreaker",
    "CollectionMetrics",
    "CollectionTask",
    "ProductionCollectionItem",
    "ProductionCollectionResult",
    "ProductionCollector",
    "WorkPlan",
    "analyze_results",
    "calculate_task_priority",
    "create_work_plan",
]
