"""Read-only rollups over a plan's routes and locations.

Everything here is recomputed from the current collections on each call.
"""

from typing import Sequence

from planner.models import (
    DayStats,
    Location,
    ModeBreakdown,
    Route,
    RouteStatistics,
    TransportMode,
    TravelPlan,
)
from planner.services.route_calculator import evaluate_complexity
from planner.utils.rounding import round_half_up


def _breakdown(routes: Sequence[Route]) -> ModeBreakdown:
    return ModeBreakdown(
        count=len(routes),
        distance=round_half_up(sum(r.distance for r in routes), 2),
        duration=sum(r.duration for r in routes),
    )


def route_statistics(routes: Sequence[Route]) -> RouteStatistics:
    """Totals plus per-mode and per-day breakdowns.

    Every transport mode appears in ``by_transport_mode`` (zero-filled);
    ``by_day`` only has the days routes actually use, including the
    cross-day bucket ``0``.
    """
    by_day: dict[int, list[Route]] = {}
    for route in routes:
        by_day.setdefault(route.day_number, []).append(route)

    return RouteStatistics(
        total_routes=len(routes),
        total_distance=round_half_up(sum(r.distance for r in routes), 2),
        total_duration=sum(r.duration for r in routes),
        by_transport_mode={
            mode: _breakdown([r for r in routes if r.transport_mode == mode])
            for mode in TransportMode
        },
        by_day={day: _breakdown(day_routes) for day, day_routes in sorted(by_day.items())},
        complexity=evaluate_complexity(routes),
    )


def day_stats(locations: Sequence[Location], routes: Sequence[Route], day: int) -> DayStats:
    day_locations = [loc for loc in locations if loc.day_number == day]
    day_routes = [r for r in routes if r.day_number == day]
    return DayStats(
        day=day,
        total_locations=len(day_locations),
        total_visit_duration=sum(loc.visit_duration or 0 for loc in day_locations),
        total_distance=round_half_up(sum(r.distance for r in day_routes), 1),
    )


def all_days_stats(plan: TravelPlan) -> list[DayStats]:
    return [
        day_stats(plan.locations, plan.routes, day)
        for day in range(1, plan.total_days + 1)
    ]
