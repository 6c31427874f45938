"""Unit tests for the route calculator.

Covers leg estimates, chains, nearest-neighbour ordering, per-day
connection, complexity classification and reachability.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from planner.models import (
    ComplexityLevel,
    Coordinates,
    InvalidCoordinateError,
    Location,
    LocationType,
    NoAnchorLocationError,
    Route,
    RouteCalculationError,
    TransportMode,
)
from planner.services.route_calculator import HeuristicRouteCalculator, evaluate_complexity

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_location(
    name: str,
    lat: float,
    lng: float,
    type: LocationType = LocationType.WAYPOINT,
    day: Optional[int] = None,
    minute: int = 0,
) -> Location:
    return Location(
        id=name,
        name=name,
        type=type,
        coordinates=Coordinates(lat=lat, lng=lng),
        day_number=day,
        created_at=BASE_TIME + timedelta(minutes=minute),
    )


def make_route(
    index: int,
    distance: float,
    duration: int = 10,
    mode: TransportMode = TransportMode.DRIVING,
    day: int = 1,
) -> Route:
    return Route(
        from_location_id=f"from-{index}",
        to_location_id=f"to-{index}",
        distance=distance,
        duration=duration,
        transport_mode=mode,
        day_number=day,
    )


def broken_location(name: str) -> Location:
    """A location whose coordinates bypassed model validation."""
    return Location.model_construct(
        id=name,
        name=name,
        type=LocationType.WAYPOINT,
        coordinates=Coordinates.model_construct(lat=float("nan"), lng=0.0),
        day_number=None,
        created_at=BASE_TIME,
    )


class TestComputeRoute:
    """Tests for single-leg estimates."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator(rng=random.Random(7))
        self.a = make_location("a", 0, 0)
        self.b = make_location("b", 0, 1)

    def test_walking_estimate(self) -> None:
        estimate = self.calculator.compute_route(self.a, self.b, TransportMode.WALKING)
        assert estimate.distance == 144.55
        assert estimate.duration == 1735
        assert estimate.transport_mode == TransportMode.WALKING

    def test_driving_estimate(self) -> None:
        estimate = self.calculator.compute_route(self.a, self.b, TransportMode.DRIVING)
        assert estimate.distance == 155.67
        assert estimate.duration == 239

    def test_placeholder_path(self) -> None:
        estimate = self.calculator.compute_route(self.a, self.b, TransportMode.DRIVING)
        assert len(estimate.path) == 3
        assert estimate.path[0] == self.a.coordinates
        assert estimate.path[-1] == self.b.coordinates
        mid = estimate.path[1]
        assert abs(mid.lat - 0.0) <= 0.0005
        assert abs(mid.lng - 0.5) <= 0.0005

    def test_distance_does_not_depend_on_jitter(self) -> None:
        other = HeuristicRouteCalculator(rng=random.Random(99))
        first = self.calculator.compute_route(self.a, self.b, TransportMode.TRANSIT)
        second = other.compute_route(self.a, self.b, TransportMode.TRANSIT)
        assert first.distance == second.distance
        assert first.duration == second.duration

    def test_seeded_paths_are_reproducible(self) -> None:
        first = HeuristicRouteCalculator(rng=random.Random(3)).compute_route(self.a, self.b)
        second = HeuristicRouteCalculator(rng=random.Random(3)).compute_route(self.a, self.b)
        assert first.path == second.path

    def test_path_midpoint_stays_in_range(self) -> None:
        north = make_location("n1", 90, 0)
        estimate = self.calculator.compute_route(north, north.model_copy(update={"id": "n2"}))
        assert all(-90 <= point.lat <= 90 for point in estimate.path)

    def test_invalid_coordinates_rejected(self) -> None:
        with pytest.raises(InvalidCoordinateError):
            self.calculator.compute_route(self.a, broken_location("x"))


class TestComputeChain:
    """Tests for chaining consecutive locations."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator()

    @pytest.mark.parametrize("count", [0, 1, 2, 5])
    def test_chain_length(self, count: int) -> None:
        locations = [make_location(f"l{i}", 0, i * 0.1) for i in range(count)]
        assert len(self.calculator.compute_chain(locations)) == max(0, count - 1)

    def test_legs_follow_input_order(self) -> None:
        locations = [make_location(f"l{i}", 0, i * 0.1) for i in range(3)]
        legs = self.calculator.compute_chain(locations)
        assert [(leg.from_location_id, leg.to_location_id) for leg in legs] == [
            ("l0", "l1"),
            ("l1", "l2"),
        ]

    def test_leg_day_follows_from_location(self) -> None:
        locations = [
            make_location("a", 0, 0, day=2),
            make_location("b", 0, 0.1, day=3),
            make_location("c", 0, 0.2),
        ]
        legs = self.calculator.compute_chain(locations)
        assert [leg.day_number for leg in legs] == [2, 3]

    def test_unassigned_from_location_defaults_to_day_one(self) -> None:
        legs = self.calculator.compute_chain([make_location("a", 0, 0), make_location("b", 0, 1)])
        assert legs[0].day_number == 1

    def test_failing_leg_aborts_chain(self) -> None:
        locations = [make_location("a", 0, 0), make_location("b", 0, 1), broken_location("c")]
        with pytest.raises(RouteCalculationError) as excinfo:
            self.calculator.compute_chain(locations)
        assert isinstance(excinfo.value.__cause__, InvalidCoordinateError)


class TestOptimizeOrder:
    """Tests for nearest-neighbour ordering."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator()
        self.start = make_location("S", 0, 0, LocationType.START)

    def test_nearest_first(self) -> None:
        w1 = make_location("w1", 10, 0)
        w2 = make_location("w2", 1, 0)
        order = self.calculator.optimize_order(self.start, [w1, w2])
        assert [loc.id for loc in order] == ["S", "w2", "w1"]

    def test_end_is_appended(self) -> None:
        end = make_location("E", 0.5, 0, LocationType.END)
        w1 = make_location("w1", 10, 0)
        w2 = make_location("w2", 1, 0)
        order = self.calculator.optimize_order(self.start, [w1, w2], end)
        assert [loc.id for loc in order] == ["S", "w2", "w1", "E"]

    def test_ties_go_to_first_waypoint(self) -> None:
        north = make_location("north", 1, 0)
        south = make_location("south", -1, 0)
        order = self.calculator.optimize_order(self.start, [north, south])
        assert [loc.id for loc in order] == ["S", "north", "south"]

    def test_no_waypoints(self) -> None:
        end = make_location("E", 1, 1, LocationType.END)
        assert self.calculator.optimize_order(self.start, []) == [self.start]
        assert self.calculator.optimize_order(self.start, [], end) == [self.start, end]

    def test_distance_matrix(self) -> None:
        matrix = self.calculator.build_distance_matrix([self.start, make_location("w", 0, 1)])
        assert matrix.distances.shape == (2, 2)
        assert matrix.distances[0, 1] == pytest.approx(111.19493, abs=1e-4)


class TestSmartConnect:
    """Tests for type-aware connection of a location set."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator()

    def test_with_start_uses_nearest_neighbour(self) -> None:
        locations = [
            make_location("E", 5, 5, LocationType.END),
            make_location("w1", 10, 0),
            make_location("S", 0, 0, LocationType.START),
            make_location("w2", 1, 0),
        ]
        result = self.calculator.smart_connect(locations)
        assert [loc.id for loc in result.order] == ["S", "w2", "w1", "E"]
        assert len(result.routes) == 3

    def test_without_start_orders_by_day_then_creation(self) -> None:
        locations = [
            make_location("late-day2", 0, 0, day=2, minute=0),
            make_location("unassigned", 0, 1, minute=5),
            make_location("day1", 0, 2, day=1, minute=10),
            make_location("E", 0, 3, LocationType.END),
        ]
        result = self.calculator.smart_connect(locations)
        assert [loc.id for loc in result.order] == ["unassigned", "day1", "late-day2", "E"]

    def test_requires_start_or_waypoint(self) -> None:
        with pytest.raises(NoAnchorLocationError):
            self.calculator.smart_connect([make_location("E", 0, 0, LocationType.END)])


class TestComputeRoutesByDay:
    """Tests for per-day connection."""

    def test_days_are_connected_separately(self) -> None:
        calculator = HeuristicRouteCalculator()
        locations = [
            make_location("d2", 0, 5, day=2),
            make_location("a", 0, 0, day=1, minute=1),
            make_location("b", 0, 1, day=1, minute=2),
            make_location("loose", 0, 2, minute=3),
        ]
        by_day = calculator.compute_routes_by_day(locations)

        assert list(by_day) == [1, 2]
        assert len(by_day[1].locations) == 3
        assert len(by_day[1].routes) == 2
        assert by_day[2].routes == []
        assert [loc.id for loc in by_day[2].locations] == ["d2"]


class TestEvaluateComplexity:
    """Tests for complexity classification and recommendations."""

    def test_empty_is_simple(self) -> None:
        result = evaluate_complexity([])
        assert result.level == ComplexityLevel.SIMPLE
        assert result.factors.route_count == 0
        assert result.recommendations == []

    def test_small_trip_is_simple(self) -> None:
        result = evaluate_complexity([make_route(0, 5.0), make_route(1, 5.0)])
        assert result.level == ComplexityLevel.SIMPLE

    def test_many_routes_is_complex(self) -> None:
        routes = [make_route(i, 50 / 12, day=1 if i < 6 else 2) for i in range(12)]
        result = evaluate_complexity(routes)
        assert result.level == ComplexityLevel.COMPLEX
        assert result.factors.route_count == 12
        assert result.factors.total_distance == pytest.approx(50.0)
        assert result.factors.day_span == 2

    def test_mid_sized_trip_is_moderate(self) -> None:
        routes = [make_route(i, 50.0) for i in range(6)]
        assert evaluate_complexity(routes).level == ComplexityLevel.MODERATE

    def test_long_distance_is_complex(self) -> None:
        assert evaluate_complexity([make_route(0, 501.0)]).level == ComplexityLevel.COMPLEX

    def test_mode_changes_counted_between_neighbours(self) -> None:
        modes = [
            TransportMode.WALKING,
            TransportMode.DRIVING,
            TransportMode.WALKING,
            TransportMode.DRIVING,
            TransportMode.WALKING,
        ]
        routes = [make_route(i, 1.0, mode=mode) for i, mode in enumerate(modes)]
        result = evaluate_complexity(routes)
        assert result.factors.transport_mode_changes == 4
        assert result.level == ComplexityLevel.MODERATE
        assert any("mode" in rec for rec in result.recommendations)

    def test_rest_recommendation_threshold(self) -> None:
        assert evaluate_complexity([make_route(0, 1.0, duration=480)]).recommendations == []
        rested = evaluate_complexity([make_route(0, 1.0, duration=481)])
        assert len(rested.recommendations) == 1
        assert "rest" in rested.recommendations[0]

    def test_simple_at_every_upper_bound(self) -> None:
        modes = [
            TransportMode.WALKING,
            TransportMode.DRIVING,
            TransportMode.WALKING,
            TransportMode.DRIVING,
            TransportMode.DRIVING,
        ]
        days = [1, 2, 3, 1, 2]
        routes = [make_route(i, 40.0, mode=modes[i], day=days[i]) for i in range(5)]
        result = evaluate_complexity(routes)
        assert result.factors.route_count == 5
        assert result.factors.total_distance == 200.0
        assert result.factors.day_span == 3
        assert result.factors.transport_mode_changes == 3
        assert result.level == ComplexityLevel.SIMPLE
        assert result.recommendations == []

    def test_moderate_at_every_complex_bound(self) -> None:
        days = [1, 2, 3, 4, 5, 6, 7, 1, 2, 3]
        routes = [make_route(i, 50.0, day=days[i]) for i in range(10)]
        result = evaluate_complexity(routes)
        assert result.factors.route_count == 10
        assert result.factors.total_distance == 500.0
        assert result.factors.day_span == 7
        assert result.level == ComplexityLevel.MODERATE

    @pytest.mark.parametrize(
        "routes",
        [
            [make_route(i, 1.0) for i in range(11)],
            [make_route(0, 500.01)],
            [make_route(i, 1.0, day=i + 1) for i in range(8)],
        ],
        ids=["routes", "distance", "day-span"],
    )
    def test_complex_just_past_bound(self, routes: list[Route]) -> None:
        assert evaluate_complexity(routes).level == ComplexityLevel.COMPLEX

    @pytest.mark.parametrize(
        "at_limit, over_limit, keyword",
        [
            ([make_route(0, 300.0)], [make_route(0, 300.01)], "splitting"),
            (
                [make_route(i, 1.0, mode=list(TransportMode)[i % 2]) for i in range(4)],
                [make_route(i, 1.0, mode=list(TransportMode)[i % 2]) for i in range(5)],
                "mode",
            ),
            (
                [make_route(i, 1.0) for i in range(10)],
                [make_route(i, 1.0) for i in range(11)],
                "stops",
            ),
            (
                [make_route(i, 1.0, day=i + 1) for i in range(7)],
                [make_route(i, 1.0, day=i + 1) for i in range(8)],
                "days",
            ),
        ],
        ids=["distance", "mode-changes", "route-count", "day-span"],
    )
    def test_recommendation_thresholds(
        self, at_limit: list[Route], over_limit: list[Route], keyword: str
    ) -> None:
        assert evaluate_complexity(at_limit).recommendations == []
        recommendations = evaluate_complexity(over_limit).recommendations
        assert len(recommendations) == 1
        assert keyword in recommendations[0]

    def test_recommendation_order(self) -> None:
        routes = [make_route(i, 40.0, duration=60, day=i + 1) for i in range(11)]
        recommendations = evaluate_complexity(routes).recommendations
        assert len(recommendations) == 4
        assert "rest" in recommendations[0]
        assert "splitting" in recommendations[1]
        assert "stops" in recommendations[2]
        assert "days" in recommendations[3]


class TestReachability:
    """Tests for reachability checks and alternatives."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator()
        self.origin = make_location("origin", 0, 0)
        self.far = make_location("far", 0, 5.4)  # ~600 km
        self.near = make_location("near", 0, 0.09)  # ~10 km

    def test_too_far_to_walk(self) -> None:
        result = self.calculator.check_reachability(self.origin, self.far, TransportMode.WALKING)
        assert result.accessible is False
        assert result.alternatives == [TransportMode.DRIVING, TransportMode.TRANSIT]
        assert "walking" in result.reason
        assert result.route is None

    def test_reachable_by_driving(self) -> None:
        result = self.calculator.check_reachability(self.origin, self.far, TransportMode.DRIVING)
        assert result.accessible is True
        assert result.route is not None
        assert result.alternatives is None

    def test_invalid_coordinates_reported(self) -> None:
        result = self.calculator.check_reachability(
            self.origin, broken_location("x"), TransportMode.DRIVING
        )
        assert result.accessible is False
        assert "Invalid coordinates" in result.reason

    def test_alternatives_sorted_by_duration(self) -> None:
        results = self.calculator.calculate_alternative_routes(self.origin, self.near)
        assert [r.transport_mode for r in results] == [
            TransportMode.DRIVING,
            TransportMode.TRANSIT,
            TransportMode.WALKING,
        ]

    def test_alternatives_skip_failures(self) -> None:
        results = self.calculator.calculate_alternative_routes(self.origin, broken_location("x"))
        assert results == []

    def test_alternatives_for_selected_modes(self) -> None:
        results = self.calculator.calculate_alternative_routes(
            self.origin, self.near, [TransportMode.WALKING]
        )
        assert len(results) == 1
        assert results[0].transport_mode == TransportMode.WALKING


class TestTripSummaryAndValidation:
    """Tests for trip summaries and structural route checks."""

    def setup_method(self) -> None:
        self.calculator = HeuristicRouteCalculator()

    def test_empty_summary(self) -> None:
        summary = self.calculator.calculate_trip_summary([])
        assert summary.route_count == 0
        assert summary.total_distance == 0.0
        assert summary.average_duration == 0

    def test_summary_averages(self) -> None:
        summary = self.calculator.calculate_trip_summary([
            make_route(0, 10.0, duration=30),
            make_route(1, 5.0, duration=45),
        ])
        assert summary.total_distance == 15.0
        assert summary.total_duration == 75
        assert summary.route_count == 2
        assert summary.average_distance == 7.5
        assert summary.average_duration == 38

    def test_valid_route(self) -> None:
        assert self.calculator.validate_route(make_route(0, 1.0)).is_valid is True

    def test_invalid_route_mapping(self) -> None:
        result = self.calculator.validate_route({
            "from_location_id": "a",
            "to_location_id": "a",
            "distance": -1,
            "duration": 5,
            "transport_mode": "flying",
        })
        assert result.is_valid is False
        assert "Start and end location must differ" in result.errors
        assert "Distance must be a non-negative number" in result.errors
        assert "Invalid transport mode: flying" in result.errors

    def test_missing_endpoints(self) -> None:
        result = self.calculator.validate_route({"distance": 1, "duration": 1})
        assert "Missing from_location_id" in result.errors
        assert "Missing to_location_id" in result.errors
