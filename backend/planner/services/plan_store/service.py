"""Plan store: the single source of truth for the current plan.

The store owns the current ``TravelPlan`` and enforces the data-model
invariants on every mutation:

- at most one START and one END location
- location day numbers within ``1..total_days``
- routes reference existing locations, never loop, and are unique per
  ordered (from, to) pair
- removing a location removes every route that touches it
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from pydantic import ValidationError

from planner.config import settings
from planner.models import (
    DayOutOfRangeError,
    DuplicateAnchorError,
    DuplicateRouteError,
    InvalidCoordinateError,
    Location,
    LocationNotFoundError,
    LocationType,
    MissingEndpointError,
    NoCurrentPlanError,
    PlannerError,
    Route,
    RouteNotFoundError,
    SelfLoopRouteError,
    TravelPlan,
    new_id,
    utcnow,
)

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at"}


class PlanStore(ABC):
    """Abstract read/write port over the current plan.

    Core services receive a store instead of reaching for global state.
    """

    @property
    @abstractmethod
    def current_plan(self) -> Optional[TravelPlan]:
        """The loaded plan, or None when nothing is loaded."""
        pass

    @abstractmethod
    def create_plan(self, name: str, total_days: int = 1, description: str = "") -> TravelPlan:
        pass

    @abstractmethod
    def load(self, plan: TravelPlan) -> TravelPlan:
        """Make ``plan`` the current plan."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def set_total_days(self, total_days: int) -> None:
        pass

    @abstractmethod
    def add_location(self, data: Union[dict[str, Any], Location]) -> Location:
        pass

    @abstractmethod
    def update_location(self, location_id: str, updates: dict[str, Any]) -> Location:
        pass

    @abstractmethod
    def remove_location(self, location_id: str) -> None:
        pass

    @abstractmethod
    def add_route(self, data: dict[str, Any]) -> Route:
        pass

    @abstractmethod
    def update_route(self, route_id: str, updates: dict[str, Any]) -> Route:
        pass

    @abstractmethod
    def remove_route(self, route_id: str) -> None:
        pass

    def require_plan(self) -> TravelPlan:
        """Return the current plan.

        Raises:
            NoCurrentPlanError: If no plan is loaded.
        """
        plan = self.current_plan
        if plan is None:
            raise NoCurrentPlanError()
        return plan

    def get_locations(self) -> list[Location]:
        return list(self.require_plan().locations)

    def get_routes(self) -> list[Route]:
        return list(self.require_plan().routes)

    def get_total_days(self) -> int:
        return self.require_plan().total_days

    def get_location(self, location_id: str) -> Location:
        location = self.require_plan().find_location(location_id)
        if location is None:
            raise LocationNotFoundError(f"Location {location_id} does not exist")
        return location

    def get_route(self, route_id: str) -> Route:
        route = self.require_plan().find_route(route_id)
        if route is None:
            raise RouteNotFoundError(f"Route {route_id} does not exist")
        return route

    def clear_routes(self) -> int:
        """Remove every route of the current plan; returns how many were removed."""
        routes = self.get_routes()
        for route in routes:
            self.remove_route(route.id)
        return len(routes)


def _coordinate_error(exc: ValidationError) -> Optional[InvalidCoordinateError]:
    for err in exc.errors():
        if err.get("loc") and err["loc"][0] == "coordinates":
            return InvalidCoordinateError(f"Invalid coordinates: {err.get('msg')}")
    return None


class InMemoryPlanStore(PlanStore):
    """Plan store that keeps the current plan in process memory.

    Attributes:
        _plan: The loaded plan, if any.
        _max_locations: Upper bound on locations per plan.
        _max_days: Upper bound on a plan's total days.
    """

    def __init__(
        self,
        max_locations: int = settings.max_locations,
        max_days: int = settings.max_days,
    ) -> None:
        self._plan: Optional[TravelPlan] = None
        self._max_locations = max_locations
        self._max_days = max_days

    @property
    def current_plan(self) -> Optional[TravelPlan]:
        return self._plan

    @property
    def max_days(self) -> int:
        return self._max_days

    def create_plan(self, name: str, total_days: int = 1, description: str = "") -> TravelPlan:
        self._check_total_days(total_days)
        self._plan = TravelPlan(name=name, total_days=total_days, description=description)
        logger.info(f"[STORE] Created plan {self._plan.id} ({total_days} day(s))")
        return self._plan

    def load(self, plan: TravelPlan) -> TravelPlan:
        """Make a copy of ``plan`` current after checking its invariants.

        Raises:
            PlannerError: If two locations or two routes share an id.
            DayOutOfRangeError: If total days or a location's day is out of range.
            DuplicateAnchorError: If the plan has two STARTs or two ENDs.
            SelfLoopRouteError, MissingEndpointError, DuplicateRouteError:
                If a route is inconsistent with the plan's locations.
        """
        self._check_total_days(plan.total_days)
        candidate = plan.model_copy(deep=True)
        location_ids = [loc.id for loc in candidate.locations]
        if len(set(location_ids)) != len(location_ids):
            raise PlannerError("Plan has duplicate location ids")
        route_ids = [route.id for route in candidate.routes]
        if len(set(route_ids)) != len(route_ids):
            raise PlannerError("Plan has duplicate route ids")
        for location in candidate.locations:
            self._check_anchor(candidate, location)
            self._check_day(candidate, location.day_number)
        for index, route in enumerate(candidate.routes):
            others = candidate.model_copy(update={"routes": candidate.routes[:index]})
            self._check_route_endpoints(others, route.from_location_id, route.to_location_id)
        self._plan = candidate
        logger.info(f"[STORE] Loaded plan {plan.id}")
        return self._plan

    def clear(self) -> None:
        self._plan = None

    def set_total_days(self, total_days: int) -> None:
        plan = self.require_plan()
        self._check_total_days(total_days)
        beyond = [loc.id for loc in plan.locations if loc.day_number and loc.day_number > total_days]
        if beyond:
            raise DayOutOfRangeError(
                f"{len(beyond)} location(s) are assigned beyond day {total_days}"
            )
        plan.total_days = total_days
        plan.touch()

    def _check_total_days(self, total_days: int) -> None:
        if total_days < 1 or total_days > self._max_days:
            raise DayOutOfRangeError(
                f"Total days must be between 1 and {self._max_days}, got {total_days}"
            )

    def _check_day(self, plan: TravelPlan, day_number: Optional[int]) -> None:
        if day_number is not None and not 1 <= day_number <= plan.total_days:
            raise DayOutOfRangeError(
                f"Day {day_number} is outside 1..{plan.total_days}"
            )

    def _check_anchor(self, plan: TravelPlan, location: Location) -> None:
        if location.type == LocationType.WAYPOINT:
            return
        for other in plan.locations:
            if other.type == location.type and other.id != location.id:
                raise DuplicateAnchorError(
                    f"Plan already has a {location.type.value} location ({other.id})"
                )

    def add_location(self, data: Union[dict[str, Any], Location]) -> Location:
        """Add a location to the current plan.

        Args:
            data: Location fields; ``id`` and timestamps are always assigned here.

        Returns:
            The stored location.

        Raises:
            InvalidCoordinateError: If the coordinates are NaN or out of range.
            DuplicateAnchorError: If it would be a second START or END.
            DayOutOfRangeError: If its day is outside the plan.
        """
        plan = self.require_plan()
        if len(plan.locations) >= self._max_locations:
            raise PlannerError(f"A plan can hold at most {self._max_locations} locations")

        fields = data.model_dump() if isinstance(data, Location) else dict(data)
        now = utcnow()
        fields.update(id=new_id(), created_at=now, updated_at=now)
        try:
            location = Location.model_validate(fields)
        except ValidationError as e:
            coordinate_error = _coordinate_error(e)
            if coordinate_error:
                raise coordinate_error from e
            raise

        self._check_anchor(plan, location)
        self._check_day(plan, location.day_number)

        plan.locations.append(location)
        plan.touch()
        logger.info(f"[STORE] Added {location.type.value} location {location.id}")
        return location

    def update_location(self, location_id: str, updates: dict[str, Any]) -> Location:
        """Apply ``updates`` to a location; nothing changes if validation fails."""
        plan = self.require_plan()
        current = self.get_location(location_id)

        fields = current.model_dump()
        fields.update({k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS})
        if "updated_at" not in updates:
            fields["updated_at"] = utcnow()
        try:
            candidate = Location.model_validate(fields)
        except ValidationError as e:
            coordinate_error = _coordinate_error(e)
            if coordinate_error:
                raise coordinate_error from e
            raise

        self._check_anchor(plan, candidate)
        self._check_day(plan, candidate.day_number)

        index = plan.locations.index(current)
        plan.locations[index] = candidate
        plan.touch()
        return candidate

    def remove_location(self, location_id: str) -> None:
        plan = self.require_plan()
        location = self.get_location(location_id)
        before = len(plan.routes)
        plan.routes = [
            route for route in plan.routes
            if route.from_location_id != location_id and route.to_location_id != location_id
        ]
        plan.locations.remove(location)
        plan.touch()
        logger.info(
            f"[STORE] Removed location {location_id} and {before - len(plan.routes)} route(s)"
        )

    def _check_route_endpoints(
        self,
        plan: TravelPlan,
        from_id: str,
        to_id: str,
        ignore_route_id: Optional[str] = None,
    ) -> None:
        if from_id == to_id:
            raise SelfLoopRouteError(f"Route cannot start and end at location {from_id}")
        if plan.find_location(from_id) is None or plan.find_location(to_id) is None:
            raise MissingEndpointError(f"Route endpoints {from_id} -> {to_id} do not both exist")
        for route in plan.routes:
            if (
                route.id != ignore_route_id
                and route.from_location_id == from_id
                and route.to_location_id == to_id
            ):
                raise DuplicateRouteError(f"Route {from_id} -> {to_id} already exists")

    def add_route(self, data: dict[str, Any]) -> Route:
        """Add a route to the current plan.

        Raises:
            SelfLoopRouteError: If both endpoints are the same location.
            MissingEndpointError: If an endpoint is not in the plan.
            DuplicateRouteError: If the (from, to) pair already has a route.
        """
        plan = self.require_plan()
        self._check_route_endpoints(
            plan, data.get("from_location_id", ""), data.get("to_location_id", "")
        )
        route = Route.model_validate({**data, "id": new_id()})
        plan.routes.append(route)
        plan.touch()
        return route

    def update_route(self, route_id: str, updates: dict[str, Any]) -> Route:
        plan = self.require_plan()
        current = self.get_route(route_id)

        fields = current.model_dump()
        fields.update({k: v for k, v in updates.items() if k != "id"})
        if (
            fields["from_location_id"] != current.from_location_id
            or fields["to_location_id"] != current.to_location_id
        ):
            self._check_route_endpoints(
                plan, fields["from_location_id"], fields["to_location_id"], ignore_route_id=route_id
            )
        candidate = Route.model_validate(fields)

        index = plan.routes.index(current)
        plan.routes[index] = candidate
        plan.touch()
        return candidate

    def remove_route(self, route_id: str) -> None:
        plan = self.require_plan()
        route = self.get_route(route_id)
        plan.routes.remove(route)
        plan.touch()
