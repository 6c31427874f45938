"""Day assignment and route-day reconciliation."""

from .service import DayPlanAssigner

__all__ = ["DayPlanAssigner"]
