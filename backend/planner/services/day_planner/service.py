"""Day assignment for multi-day plans.

Keeps location day numbers and route day ownership consistent:

- a location is either unassigned (``day_number is None``) or on a day in
  ``1..total_days``
- a route belongs to a day only when both endpoints are on that day,
  otherwise it is cross-day (``day_number == 0``)

Every mutation is followed by ``reconcile_route_days``.
"""

import logging
import math
from datetime import timedelta
from typing import Sequence

from planner.config import settings
from planner.models import (
    CROSS_DAY,
    DayOutOfRangeError,
    Location,
    LocationNotFoundError,
    LocationType,
    utcnow,
)
from planner.services.plan_store import PlanStore

logger = logging.getLogger(__name__)

# Sort order used when chunking locations into days
TYPE_RANK = {
    LocationType.START: 0,
    LocationType.WAYPOINT: 1,
    LocationType.END: 2,
}


class DayPlanAssigner:
    """Assigns plan locations to days and reconciles route ownership."""

    def __init__(self, store: PlanStore, max_days: int = settings.max_days) -> None:
        self._store = store
        self._max_days = max_days
        self._selected_day = 1

    @property
    def selected_day(self) -> int:
        return self._selected_day

    def select_day(self, day: int) -> bool:
        """Select ``day`` for display; ignored when out of range."""
        plan = self._store.current_plan
        if plan is not None and 1 <= day <= plan.total_days:
            self._selected_day = day
            return True
        return False

    def _check_day(self, day: int) -> None:
        total_days = self._store.get_total_days()
        if day < 1 or day > total_days:
            raise DayOutOfRangeError(f"Day {day} is outside 1..{total_days}")

    def day_locations(self, day: int) -> list[Location]:
        return [loc for loc in self._store.get_locations() if loc.day_number == day]

    def unassigned_locations(self) -> list[Location]:
        return [loc for loc in self._store.get_locations() if not loc.is_assigned]

    def assign_to_day(self, location_id: str, day: int) -> Location:
        """Put one location on ``day``.

        Raises:
            NoCurrentPlanError: If no plan is loaded.
            DayOutOfRangeError: If ``day`` is outside ``1..total_days``.
            LocationNotFoundError: If the location does not exist.
        """
        self._check_day(day)
        location = self._store.update_location(location_id, {"day_number": day})
        self.reconcile_route_days()
        logger.info(f"[DAYS] Assigned {location_id} to day {day}")
        return location

    def assign_multiple_to_day(self, location_ids: Sequence[str], day: int) -> list[Location]:
        """Put several locations on ``day``, all or nothing.

        The day and every id are validated before any location is touched.
        """
        self._check_day(day)
        known = {loc.id for loc in self._store.get_locations()}
        for location_id in location_ids:
            if location_id not in known:
                raise LocationNotFoundError(f"Location {location_id} does not exist")

        updated = [
            self._store.update_location(location_id, {"day_number": day})
            for location_id in location_ids
        ]
        self.reconcile_route_days()
        logger.info(f"[DAYS] Assigned {len(updated)} location(s) to day {day}")
        return updated

    def remove_from_day(self, location_id: str) -> Location:
        location = self._store.update_location(location_id, {"day_number": None})
        self.reconcile_route_days()
        return location

    def reorder_locations_in_day(self, day: int, location_ids: Sequence[str]) -> list[Location]:
        """Put ``location_ids`` on ``day`` in the given order.

        Order is recorded through ``updated_at``, one second apart.
        """
        self._check_day(day)
        known = {loc.id for loc in self._store.get_locations()}
        for location_id in location_ids:
            if location_id not in known:
                raise LocationNotFoundError(f"Location {location_id} does not exist")

        base = utcnow()
        updated = [
            self._store.update_location(
                location_id,
                {"day_number": day, "updated_at": base + timedelta(seconds=index)},
            )
            for index, location_id in enumerate(location_ids)
        ]
        self.reconcile_route_days()
        return updated

    def set_total_days(self, total_days: int) -> list[Location]:
        """Change the trip length.

        Locations on days beyond the new total become unassigned, and the
        selected day falls back to 1 when it is no longer valid.

        Returns:
            The locations that were evicted.

        Raises:
            NoCurrentPlanError: If no plan is loaded.
            DayOutOfRangeError: If ``total_days`` is outside ``1..max_days``.
        """
        plan = self._store.require_plan()
        if total_days < 1 or total_days > self._max_days:
            raise DayOutOfRangeError(
                f"Total days must be between 1 and {self._max_days}, got {total_days}"
            )

        evicted: list[Location] = []
        if total_days < plan.total_days:
            for location in self._store.get_locations():
                if location.day_number is not None and location.day_number > total_days:
                    evicted.append(
                        self._store.update_location(location.id, {"day_number": None})
                    )

        self._store.set_total_days(total_days)

        if self._selected_day > total_days:
            self._selected_day = 1

        self.reconcile_route_days()
        logger.info(f"[DAYS] Total days set to {total_days}, evicted {len(evicted)} location(s)")
        return evicted

    def reconcile_route_days(self) -> int:
        """Recompute every route's owning day from its endpoints.

        Returns:
            Number of routes whose day changed.
        """
        locations = {loc.id: loc for loc in self._store.get_locations()}
        changed = 0
        for route in self._store.get_routes():
            from_loc = locations.get(route.from_location_id)
            to_loc = locations.get(route.to_location_id)
            if from_loc is None or to_loc is None:
                logger.warning(f"[DAYS] Route {route.id} references a missing location")
                day = CROSS_DAY
            elif from_loc.is_assigned and from_loc.day_number == to_loc.day_number:
                day = from_loc.day_number
            else:
                day = CROSS_DAY

            if route.day_number != day:
                self._store.update_route(route.id, {"day_number": day})
                changed += 1
        return changed

    def get_optimal_day_assignment(self) -> dict[str, int]:
        """Propose days for the unassigned locations.

        Locations are sorted by type (start, waypoint, end) then creation
        time and split into equal consecutive chunks, one per day. This
        groups by type, not by geography.
        """
        plan = self._store.current_plan
        unassigned = self.unassigned_locations() if plan else []
        if not plan or not unassigned:
            return {}

        total_days = plan.total_days
        per_day = math.ceil(len(unassigned) / total_days)
        ordered = sorted(
            unassigned,
            key=lambda loc: (TYPE_RANK[loc.type], loc.created_at),
        )
        return {
            loc.id: min(index // per_day + 1, total_days)
            for index, loc in enumerate(ordered)
        }

    def auto_assign(self) -> dict[str, int]:
        """Assign every unassigned location using ``get_optimal_day_assignment``."""
        self._store.require_plan()
        assignment = self.get_optimal_day_assignment()
        for location_id, day in assignment.items():
            self._store.update_location(location_id, {"day_number": day})
        self.reconcile_route_days()
        logger.info(f"[DAYS] Auto-assigned {len(assignment)} location(s)")
        return assignment
