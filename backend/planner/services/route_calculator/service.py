"""Route calculation on a simplified geometric model.

Distances are great-circle distances inflated per transport mode, durations
come from average speeds plus fixed overheads, and waypoint order is chosen by
a nearest-neighbour heuristic. None of this is real road routing: the path
returned for a leg is a three-point placeholder for the map to draw.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from planner.models import (
    ChainLeg,
    ComplexityEvaluation,
    ComplexityFactors,
    ComplexityLevel,
    Coordinates,
    Location,
    LocationType,
    NoAnchorLocationError,
    PlannerError,
    ReachabilityResult,
    RouteCalculationError,
    RouteEstimate,
    TransportMode,
    TripSummary,
)
from planner.services.travel_estimator import TravelEstimator
from planner.utils.geo import coordinates_distance, haversine_matrix, validate_coordinates
from planner.utils.rounding import round_half_up, round_minutes

logger = logging.getLogger(__name__)

# Max offset (degrees) applied to the placeholder path midpoint
PATH_JITTER_DEGREES = 0.001

# evaluate_complexity thresholds
SIMPLE_MAX_ROUTES = 5
SIMPLE_MAX_DISTANCE_KM = 200
SIMPLE_MAX_DAY_SPAN = 3
SIMPLE_MAX_MODE_CHANGES = 3
COMPLEX_MIN_ROUTES = 10  # exclusive
COMPLEX_MIN_DISTANCE_KM = 500  # exclusive
COMPLEX_MIN_DAY_SPAN = 7  # exclusive

# Recommendation triggers (all exclusive lower bounds)
REST_DURATION_MINUTES = 480
SPLIT_DISTANCE_KM = 300
MODE_CHANGE_LIMIT = 3
STOP_COUNT_LIMIT = 10
DAY_SPAN_LIMIT = 7


@dataclass
class DistanceMatrix:
    """Straight-line distance matrix (km) for an ordered list of locations."""
    locations: list[Location]
    distances: NDArray[np.float64]


@dataclass
class ConnectResult:
    """Visiting order plus the legs that connect it."""
    routes: list[ChainLeg]
    order: list[Location]


@dataclass
class DayRoutes:
    routes: list[ChainLeg] = field(default_factory=list)
    locations: list[Location] = field(default_factory=list)


@dataclass
class RouteValidation:
    is_valid: bool
    errors: list[str]


def _field(route: Any, name: str) -> Any:
    if isinstance(route, Mapping):
        return route.get(name)
    return getattr(route, name, None)


def evaluate_complexity(routes: Sequence[Any]) -> ComplexityEvaluation:
    """Classify a set of routes as simple, moderate or complex.

    ``routes`` only needs ``distance``, ``duration``, ``transport_mode`` and
    ``day_number``; mode changes are counted between neighbours in input order.
    """
    route_count = len(routes)
    total_distance = sum(r.distance for r in routes)
    total_duration = sum(r.duration for r in routes)
    day_span = len({r.day_number for r in routes})
    mode_changes = sum(
        1 for prev, cur in zip(routes, routes[1:]) if prev.transport_mode != cur.transport_mode
    )

    factors = ComplexityFactors(
        route_count=route_count,
        total_distance=round_half_up(total_distance, 2),
        total_duration=total_duration,
        day_span=day_span,
        transport_mode_changes=mode_changes,
    )

    if (
        route_count <= SIMPLE_MAX_ROUTES
        and total_distance <= SIMPLE_MAX_DISTANCE_KM
        and day_span <= SIMPLE_MAX_DAY_SPAN
        and mode_changes <= SIMPLE_MAX_MODE_CHANGES
    ):
        level = ComplexityLevel.SIMPLE
    elif (
        route_count > COMPLEX_MIN_ROUTES
        or total_distance > COMPLEX_MIN_DISTANCE_KM
        or day_span > COMPLEX_MIN_DAY_SPAN
    ):
        level = ComplexityLevel.COMPLEX
    else:
        level = ComplexityLevel.MODERATE

    recommendations: list[str] = []
    if total_duration > REST_DURATION_MINUTES:
        recommendations.append(
            "Total travel time exceeds 8 hours; schedule rest breaks between legs."
        )
    if total_distance > SPLIT_DISTANCE_KM:
        recommendations.append(
            "Total distance is long; consider splitting the trip across more days."
        )
    if mode_changes > MODE_CHANGE_LIMIT:
        recommendations.append(
            "Transport mode changes often; group legs that use the same mode."
        )
    if route_count > STOP_COUNT_LIMIT:
        recommendations.append("Many stops planned; consider dropping lower-priority stops.")
    if day_span > DAY_SPAN_LIMIT:
        recommendations.append("The trip spans many days; review the pacing of each day.")

    return ComplexityEvaluation(level=level, factors=factors, recommendations=recommendations)


class RouteCalculatorService(ABC):
    """Abstract base class for route calculation."""

    @abstractmethod
    def compute_route(self, from_loc: Location, to_loc: Location, mode: TransportMode) -> RouteEstimate:
        pass

    @abstractmethod
    def compute_chain(self, locations: Sequence[Location], mode: TransportMode) -> list[ChainLeg]:
        pass

    @abstractmethod
    def optimize_order(
        self,
        start: Location,
        waypoints: Sequence[Location],
        end: Optional[Location] = None,
        mode: TransportMode = TransportMode.DRIVING,
    ) -> list[Location]:
        pass


class HeuristicRouteCalculator(RouteCalculatorService):
    """Haversine-based route calculator with nearest-neighbour ordering."""

    def __init__(
        self,
        estimator: Optional[TravelEstimator] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._estimator = estimator or TravelEstimator()
        # Only used for the placeholder path midpoint
        self._rng = rng or random.Random()

    @property
    def estimator(self) -> TravelEstimator:
        return self._estimator

    def straight_line_distance(self, from_loc: Location, to_loc: Location) -> float:
        validate_coordinates(from_loc.coordinates, from_loc.name)
        validate_coordinates(to_loc.coordinates, to_loc.name)
        return coordinates_distance(from_loc.coordinates, to_loc.coordinates)

    def compute_route(
        self,
        from_loc: Location,
        to_loc: Location,
        mode: TransportMode = TransportMode.DRIVING,
    ) -> RouteEstimate:
        """Estimate one leg.

        Raises:
            InvalidCoordinateError: If either location has unusable coordinates.
        """
        straight = self.straight_line_distance(from_loc, to_loc)
        actual = self._estimator.estimate_distance(straight, mode)
        duration = self._estimator.estimate_duration(actual, mode)

        return RouteEstimate(
            distance=round_half_up(actual, 2),
            duration=duration,
            path=self._placeholder_path(from_loc.coordinates, to_loc.coordinates),
            transport_mode=mode,
        )

    def _placeholder_path(self, a: Coordinates, b: Coordinates) -> list[Coordinates]:
        mid_lat = (a.lat + b.lat) / 2 + (self._rng.random() - 0.5) * PATH_JITTER_DEGREES
        mid_lng = (a.lng + b.lng) / 2 + (self._rng.random() - 0.5) * PATH_JITTER_DEGREES
        # Clamp so a jittered midpoint near a pole or the antimeridian stays valid
        mid = Coordinates(
            lat=min(90.0, max(-90.0, mid_lat)),
            lng=min(180.0, max(-180.0, mid_lng)),
        )
        return [Coordinates(lat=a.lat, lng=a.lng), mid, Coordinates(lat=b.lat, lng=b.lng)]

    def compute_chain(
        self,
        locations: Sequence[Location],
        mode: TransportMode = TransportMode.DRIVING,
    ) -> list[ChainLeg]:
        """Connect consecutive locations into legs.

        A leg belongs to the day of its *from* location (day 1 when unassigned).

        Raises:
            RouteCalculationError: If any leg fails; no partial chain is returned.
        """
        if len(locations) < 2:
            return []

        legs: list[ChainLeg] = []
        for from_loc, to_loc in zip(locations, locations[1:]):
            try:
                estimate = self.compute_route(from_loc, to_loc, mode)
            except PlannerError as e:
                logger.warning(f"[ROUTE] Chain aborted at {from_loc.id} -> {to_loc.id}: {e}")
                raise RouteCalculationError(f"Chain calculation failed: {e}") from e
            legs.append(ChainLeg(
                **estimate.model_dump(),
                from_location_id=from_loc.id,
                to_location_id=to_loc.id,
                day_number=from_loc.day_number or 1,
            ))
        return legs

    def build_distance_matrix(self, locations: Sequence[Location]) -> DistanceMatrix:
        """Straight-line distances between every pair of ``locations``.

        Raises:
            InvalidCoordinateError: If any location has unusable coordinates.
        """
        for loc in locations:
            validate_coordinates(loc.coordinates, loc.name)
        n = len(locations)
        if n == 0:
            return DistanceMatrix(locations=[], distances=np.zeros((0, 0), dtype=np.float64))
        lats = np.array([loc.coordinates.lat for loc in locations], dtype=np.float64)
        lngs = np.array([loc.coordinates.lng for loc in locations], dtype=np.float64)
        return DistanceMatrix(locations=list(locations), distances=haversine_matrix(lats, lngs))

    def optimize_order(
        self,
        start: Location,
        waypoints: Sequence[Location],
        end: Optional[Location] = None,
        mode: TransportMode = TransportMode.DRIVING,
    ) -> list[Location]:
        """Greedy nearest-neighbour visiting order starting at ``start``.

        Ties go to the waypoint that comes first in ``waypoints``. ``end`` is
        always appended last. This is a heuristic, not an optimal tour.
        """
        if not waypoints:
            return [start, end] if end else [start]

        matrix = self.build_distance_matrix([start, *waypoints])
        n = len(matrix.locations)
        visited = np.zeros(n, dtype=bool)
        visited[0] = True
        order = [start]
        current = 0

        while not visited.all():
            candidates = np.where(visited, np.inf, matrix.distances[current])
            # argmin returns the first minimum, i.e. the earliest waypoint on ties
            current = int(np.argmin(candidates))
            visited[current] = True
            order.append(matrix.locations[current])

        if end:
            order.append(end)

        logger.info(f"[ROUTE] Ordered {len(waypoints)} waypoints ({mode.value})")
        return order

    def smart_connect(
        self,
        locations: Sequence[Location],
        mode: TransportMode = TransportMode.DRIVING,
    ) -> ConnectResult:
        """Order ``locations`` by their type and connect them.

        With a START, waypoints are ordered by nearest neighbour. Without one,
        waypoints are ordered by day and then creation time. END goes last.

        Raises:
            NoAnchorLocationError: If there is neither a START nor a WAYPOINT.
        """
        start = next((loc for loc in locations if loc.type == LocationType.START), None)
        end = next((loc for loc in locations if loc.type == LocationType.END), None)
        waypoints = [loc for loc in locations if loc.type == LocationType.WAYPOINT]

        if start:
            order = self.optimize_order(start, waypoints, end, mode)
        elif waypoints:
            order = sorted(waypoints, key=lambda loc: (loc.day_number or 0, loc.created_at))
            if end:
                order.append(end)
        else:
            raise NoAnchorLocationError("Need a start point or at least one waypoint to connect")

        return ConnectResult(routes=self.compute_chain(order, mode), order=order)

    def compute_routes_by_day(
        self,
        locations: Sequence[Location],
        mode: TransportMode = TransportMode.DRIVING,
    ) -> dict[int, DayRoutes]:
        """Connect each day's locations separately.

        Unassigned locations are counted as day 1 here. Days with fewer than
        two locations get no routes.
        """
        by_day: dict[int, DayRoutes] = {}
        ordered = sorted(locations, key=lambda loc: loc.day_number or 1)
        for day, group in groupby(ordered, key=lambda loc: loc.day_number or 1):
            day_locations = list(group)
            routes: list[ChainLeg] = []
            if len(day_locations) >= 2:
                routes = self.smart_connect(day_locations, mode).routes
            by_day[day] = DayRoutes(routes=routes, locations=day_locations)
        logger.info(f"[ROUTE] Connected {len(by_day)} day(s)")
        return by_day

    def evaluate_complexity(self, routes: Sequence[Any]) -> ComplexityEvaluation:
        return evaluate_complexity(routes)

    def check_reachability(
        self,
        from_loc: Location,
        to_loc: Location,
        mode: TransportMode = TransportMode.DRIVING,
    ) -> ReachabilityResult:
        """Check whether ``mode`` is reasonable for this pair of locations.

        When the straight-line distance is over the mode's ceiling, the modes
        with a larger ceiling are suggested instead.
        """
        try:
            straight = self.straight_line_distance(from_loc, to_loc)
        except PlannerError as e:
            return ReachabilityResult(accessible=False, reason=str(e))

        ceiling = self._estimator.max_reasonable_distance(mode)
        if straight > ceiling:
            alternatives = [
                other for other in TransportMode
                if other != mode and self._estimator.max_reasonable_distance(other) > ceiling
            ]
            return ReachabilityResult(
                accessible=False,
                reason=(
                    f"Distance {straight:.1f} km exceeds the {ceiling:g} km limit "
                    f"for {mode.value}"
                ),
                alternatives=alternatives,
            )

        try:
            estimate = self.compute_route(from_loc, to_loc, mode)
        except PlannerError as e:
            return ReachabilityResult(accessible=False, reason=str(e))
        return ReachabilityResult(accessible=True, route=estimate)

    def calculate_alternative_routes(
        self,
        from_loc: Location,
        to_loc: Location,
        modes: Optional[Iterable[TransportMode]] = None,
    ) -> list[RouteEstimate]:
        """Estimate the leg for several modes, fastest first.

        Modes that fail are skipped rather than failing the whole call.
        """
        results: list[RouteEstimate] = []
        for mode in modes or list(TransportMode):
            try:
                results.append(self.compute_route(from_loc, to_loc, mode))
            except PlannerError as e:
                logger.warning(f"[ROUTE] Skipping {mode.value} alternative: {e}")
        return sorted(results, key=lambda r: r.duration)

    def calculate_trip_summary(self, routes: Sequence[Any]) -> TripSummary:
        if not routes:
            return TripSummary()
        total_distance = sum(r.distance for r in routes)
        total_duration = sum(r.duration for r in routes)
        return TripSummary(
            total_distance=round_half_up(total_distance, 2),
            total_duration=total_duration,
            route_count=len(routes),
            average_distance=round_half_up(total_distance / len(routes), 2),
            average_duration=round_minutes(total_duration / len(routes)),
        )

    def validate_route(self, route: Any) -> RouteValidation:
        """Check a route (model or plain mapping) for structural problems."""
        errors: list[str] = []
        from_id = _field(route, "from_location_id")
        to_id = _field(route, "to_location_id")
        distance = _field(route, "distance")
        duration = _field(route, "duration")
        mode = _field(route, "transport_mode")

        if not from_id:
            errors.append("Missing from_location_id")
        if not to_id:
            errors.append("Missing to_location_id")
        if from_id and to_id and from_id == to_id:
            errors.append("Start and end location must differ")
        if not isinstance(distance, (int, float)) or distance < 0:
            errors.append("Distance must be a non-negative number")
        if not isinstance(duration, (int, float)) or duration < 0:
            errors.append("Duration must be a non-negative number")
        mode_value = getattr(mode, "value", mode)
        if mode_value is not None and mode_value not in {m.value for m in TransportMode}:
            errors.append(f"Invalid transport mode: {mode_value}")

        return RouteValidation(is_valid=not errors, errors=errors)
