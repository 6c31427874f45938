"""Plan persistence and JSON export/import."""

from .service import (
    InMemoryPlanRepository,
    PlanRepository,
    RedisPlanRepository,
    export_plan_json,
    import_plan_json,
)

__all__ = [
    "InMemoryPlanRepository",
    "PlanRepository",
    "RedisPlanRepository",
    "export_plan_json",
    "import_plan_json",
]
