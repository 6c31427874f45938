"""Plan store port and its in-memory implementation."""

from .service import InMemoryPlanStore, PlanStore

__all__ = [
    "InMemoryPlanStore",
    "PlanStore",
]
