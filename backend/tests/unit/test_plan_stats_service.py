"""Unit tests for route and per-day statistics."""

from planner.models import (
    ComplexityLevel,
    Coordinates,
    Location,
    Route,
    TransportMode,
    TravelPlan,
)
from planner.services.plan_stats import all_days_stats, day_stats, route_statistics


def make_route(
    from_id: str,
    to_id: str,
    distance: float,
    duration: int,
    mode: TransportMode,
    day: int,
) -> Route:
    return Route(
        from_location_id=from_id,
        to_location_id=to_id,
        distance=distance,
        duration=duration,
        transport_mode=mode,
        day_number=day,
    )


def make_location(name: str, day: int | None, visit: int | None = None) -> Location:
    return Location(
        name=name,
        coordinates=Coordinates(lat=0, lng=0),
        day_number=day,
        visit_duration=visit,
    )


class TestRouteStatistics:
    """Tests for route_statistics."""

    def test_empty(self) -> None:
        stats = route_statistics([])
        assert stats.total_routes == 0
        assert stats.by_day == {}
        assert set(stats.by_transport_mode) == set(TransportMode)
        assert stats.complexity.level == ComplexityLevel.SIMPLE

    def test_breakdowns(self) -> None:
        routes = [
            make_route("a", "b", 1.25, 15, TransportMode.WALKING, 1),
            make_route("b", "c", 10.0, 20, TransportMode.DRIVING, 1),
            make_route("c", "d", 3.5, 30, TransportMode.WALKING, 0),
        ]
        stats = route_statistics(routes)

        assert stats.total_routes == 3
        assert stats.total_distance == 14.75
        assert stats.total_duration == 65

        walking = stats.by_transport_mode[TransportMode.WALKING]
        assert (walking.count, walking.distance, walking.duration) == (2, 4.75, 45)
        transit = stats.by_transport_mode[TransportMode.TRANSIT]
        assert (transit.count, transit.distance, transit.duration) == (0, 0.0, 0)

        assert list(stats.by_day) == [0, 1]
        assert stats.by_day[0].count == 1
        assert stats.by_day[1].distance == 11.25


class TestDayStats:
    """Tests for per-day rollups."""

    def test_day_stats(self) -> None:
        locations = [
            make_location("a", 1, visit=60),
            make_location("b", 1),
            make_location("c", 2, visit=30),
        ]
        routes = [
            make_route("a", "b", 1.26, 10, TransportMode.WALKING, 1),
            make_route("b", "a", 2.0, 10, TransportMode.WALKING, 1),
            make_route("b", "c", 50.0, 60, TransportMode.DRIVING, 0),
        ]
        stats = day_stats(locations, routes, 1)
        assert stats.day == 1
        assert stats.total_locations == 2
        assert stats.total_visit_duration == 60
        assert stats.total_distance == 3.3

    def test_all_days_covers_every_day(self) -> None:
        plan = TravelPlan(
            name="Trip",
            total_days=3,
            locations=[make_location("a", 2, visit=45)],
        )
        stats = all_days_stats(plan)
        assert [s.day for s in stats] == [1, 2, 3]
        assert [s.total_locations for s in stats] == [0, 1, 0]
        assert stats[1].total_visit_duration == 45
