"""Trip statistics derived from the current plan."""

from .service import all_days_stats, day_stats, route_statistics

__all__ = [
    "all_days_stats",
    "day_stats",
    "route_statistics",
]
