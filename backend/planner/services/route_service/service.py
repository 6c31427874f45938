"""Route management on top of the plan store.

Wraps the route calculator with the operations the UI needs: connecting all
locations, reordering, switching transport modes, and checking the plan's
route setup. Every method returns a ``ServiceResult`` instead of raising, so
a failure is always reported as ``success=False`` with a message.

Mode changes, recalculation and alternatives skip individual failures;
chain computation aborts as a whole.
"""

import logging
from datetime import timedelta
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel

from planner.models import (
    CROSS_DAY,
    ComplexityLevel,
    ErrorCode,
    Location,
    LocationType,
    PlannerError,
    Route,
    TransportMode,
    utcnow,
)
from planner.services.plan_stats import route_statistics
from planner.services.plan_store import PlanStore
from planner.services.route_calculator import ConnectResult, HeuristicRouteCalculator

logger = logging.getLogger(__name__)


class ServiceResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    warnings: Optional[list[str]] = None

    @classmethod
    def ok(cls, data: Any = None, warnings: Optional[list[str]] = None) -> "ServiceResult":
        return cls(success=True, data=data, warnings=warnings or None)

    @classmethod
    def fail(cls, error: str, warnings: Optional[list[str]] = None) -> "ServiceResult":
        return cls(success=False, error=error, warnings=warnings or None)

    @classmethod
    def from_error(cls, exc: PlannerError) -> "ServiceResult":
        return cls(success=False, error=exc.message, error_code=exc.code)


class ConfigurationReport(BaseModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]
    suggestions: list[str]


class RouteService:
    """High-level route management for the current plan."""

    def __init__(
        self,
        store: PlanStore,
        calculator: Optional[HeuristicRouteCalculator] = None,
    ) -> None:
        self._store = store
        self._calculator = calculator or HeuristicRouteCalculator()

    @property
    def calculator(self) -> HeuristicRouteCalculator:
        return self._calculator

    def connect(
        self,
        from_location_id: str,
        to_location_id: str,
        transport_mode: TransportMode = TransportMode.DRIVING,
    ) -> ServiceResult:
        """Create one route between two existing locations."""
        try:
            from_loc = self._store.get_location(from_location_id)
            to_loc = self._store.get_location(to_location_id)
            estimate = self._calculator.compute_route(from_loc, to_loc, transport_mode)
            day = (
                from_loc.day_number
                if from_loc.is_assigned and from_loc.day_number == to_loc.day_number
                else CROSS_DAY
            )
            route = self._store.add_route({
                "from_location_id": from_location_id,
                "to_location_id": to_location_id,
                **estimate.model_dump(),
                "day_number": day,
            })
            return ServiceResult.ok(route)
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def auto_connect(
        self,
        transport_mode: TransportMode = TransportMode.DRIVING,
        respect_day_numbers: bool = True,
        connect_across_days: bool = False,
    ) -> ServiceResult:
        """Replace all routes by connecting every location.

        With ``respect_day_numbers`` (and not ``connect_across_days``) each day
        is connected on its own; otherwise all locations form one chain.
        """
        try:
            locations = self._store.get_locations()
            if len(locations) < 2:
                return ServiceResult.fail("At least two locations are needed to connect routes")

            warnings: list[str] = []
            if respect_day_numbers and not connect_across_days:
                legs = []
                for day, day_routes in self._calculator.compute_routes_by_day(
                    locations, transport_mode
                ).items():
                    legs.extend(day_routes.routes)
                    if len(day_routes.locations) == 1:
                        warnings.append(f"Day {day} has only one location, no route generated")
            else:
                legs = self._calculator.smart_connect(locations, transport_mode).routes

            # Legs are computed before the old routes are cleared
            self._store.clear_routes()
            added = [self._store.add_route(leg.to_route_data()) for leg in legs]
            logger.info(f"[ROUTE] Auto-connected {len(added)} route(s)")
            return ServiceResult.ok(added, warnings)
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def optimize_route_order(
        self, transport_mode: TransportMode = TransportMode.DRIVING
    ) -> ServiceResult:
        """Reorder locations (nearest neighbour from START) and reconnect globally."""
        try:
            plan = self._store.require_plan()
            start = plan.start_location
            waypoints = plan.waypoint_locations
            if start is None and not waypoints:
                return ServiceResult.fail(
                    "A start point or at least one waypoint is needed to optimize"
                )

            if start is not None:
                order = self._calculator.optimize_order(start, waypoints, plan.end_location, transport_mode)
            else:
                order = self._calculator.smart_connect(plan.locations, transport_mode).order

            base = utcnow()
            for index, location in enumerate(order):
                self._store.update_location(
                    location.id, {"updated_at": base + timedelta(seconds=index)}
                )

            connected = self.auto_connect(transport_mode, respect_day_numbers=False)
            if not connected.success:
                return ServiceResult.fail(connected.error or "Reconnecting routes failed")
            return ServiceResult.ok([self._store.get_location(loc.id) for loc in order])
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def _recompute(
        self, routes: list[Route], mode_for: Callable[[Route], TransportMode]
    ) -> ServiceResult:
        updated: list[Route] = []
        warnings: list[str] = []
        locations = {loc.id: loc for loc in self._store.get_locations()}

        for route in routes:
            from_loc = locations.get(route.from_location_id)
            to_loc = locations.get(route.to_location_id)
            if from_loc is None or to_loc is None:
                warnings.append(f"Route {route.id} references a missing location")
                continue
            try:
                estimate = self._calculator.compute_route(from_loc, to_loc, mode_for(route))
                updated.append(self._store.update_route(route.id, {
                    "distance": estimate.distance,
                    "duration": estimate.duration,
                    "transport_mode": estimate.transport_mode,
                    "path": estimate.path,
                }))
            except PlannerError as e:
                logger.warning(f"[ROUTE] Skipping route {route.id}: {e}")
                warnings.append(f"Route {route.id} could not be updated: {e}")

        if not updated:
            return ServiceResult.fail("No route was updated", warnings)
        return ServiceResult.ok(updated, warnings)

    def change_transport_mode(
        self,
        new_mode: TransportMode,
        route_ids: Optional[Iterable[str]] = None,
    ) -> ServiceResult:
        """Recompute the selected routes (default: all) with ``new_mode``."""
        try:
            routes = self._store.get_routes()
            if route_ids is not None:
                wanted = set(route_ids)
                routes = [r for r in routes if r.id in wanted]
            if not routes:
                return ServiceResult.fail("No routes to change")
            return self._recompute(routes, lambda route: new_mode)
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def recalculate_all_routes(self, transport_mode: Optional[TransportMode] = None) -> ServiceResult:
        """Recompute every route, keeping each route's mode unless one is given."""
        try:
            routes = self._store.get_routes()
            if not routes:
                return ServiceResult.fail("No routes to recalculate")
            return self._recompute(routes, lambda route: transport_mode or route.transport_mode)
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def _pair(self, from_location_id: str, to_location_id: str) -> tuple[Location, Location]:
        return (
            self._store.get_location(from_location_id),
            self._store.get_location(to_location_id),
        )

    def check_route_accessibility(
        self,
        from_location_id: str,
        to_location_id: str,
        transport_mode: TransportMode,
    ) -> ServiceResult:
        try:
            from_loc, to_loc = self._pair(from_location_id, to_location_id)
            return ServiceResult.ok(
                self._calculator.check_reachability(from_loc, to_loc, transport_mode)
            )
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def get_alternative_routes(
        self,
        from_location_id: str,
        to_location_id: str,
        transport_modes: Optional[Iterable[TransportMode]] = None,
    ) -> ServiceResult:
        try:
            from_loc, to_loc = self._pair(from_location_id, to_location_id)
            return ServiceResult.ok(
                self._calculator.calculate_alternative_routes(from_loc, to_loc, transport_modes)
            )
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def smart_connect_preview(
        self, transport_mode: TransportMode = TransportMode.DRIVING
    ) -> ConnectResult:
        """Order and legs for all locations without touching the store."""
        return self._calculator.smart_connect(self._store.get_locations(), transport_mode)

    def get_route_statistics(self) -> ServiceResult:
        try:
            return ServiceResult.ok(route_statistics(self._store.get_routes()))
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def get_trip_summary(self) -> ServiceResult:
        try:
            return ServiceResult.ok(self._calculator.calculate_trip_summary(self._store.get_routes()))
        except PlannerError as e:
            return ServiceResult.from_error(e)

    def validate_route_configuration(self) -> ConfigurationReport:
        """Check the plan's locations and routes for problems and gaps."""
        plan = self._store.current_plan
        locations = plan.locations if plan else []
        routes = plan.routes if plan else []
        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        if not locations:
            errors.append("No locations have been added")
        elif len(locations) == 1:
            warnings.append("Only one location, no route can be generated")

        starts = [loc for loc in locations if loc.type == LocationType.START]
        ends = [loc for loc in locations if loc.type == LocationType.END]
        if len(starts) > 1:
            errors.append("Only one start point is allowed")
        if len(ends) > 1:
            errors.append("Only one end point is allowed")
        if not starts and len(locations) > 1:
            suggestions.append("Set a start point")
        if not ends and len(locations) > 2:
            suggestions.append("Set an end point")

        if len(locations) >= 2 and not routes:
            warnings.append("Locations are not connected by any route")
            suggestions.append("Use auto-connect to generate routes")

        connected = {r.from_location_id for r in routes} | {r.to_location_id for r in routes}
        isolated = [loc for loc in locations if loc.id not in connected]
        if routes and isolated:
            warnings.append(f"{len(isolated)} location(s) are not connected to any route")
            suggestions.append("Check whether these locations should be connected")

        complexity = self._calculator.evaluate_complexity(routes)
        if complexity.level == ComplexityLevel.COMPLEX:
            warnings.append("The route plan is complex")
            suggestions.extend(complexity.recommendations)

        return ConfigurationReport(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
        )
