"""Core data models for the travel route planner.

This module contains the Pydantic models used throughout the application for
representing coordinates, plan locations, route legs and the travel plan
aggregate that owns them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator


def new_id() -> str:
    """Generate an opaque, never-reused identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


LocationName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Tag = Annotated[str, StringConstraints(max_length=20)]


class LocationType(str, Enum):
    """Role of a location within a plan.

    START and END are anchors: a plan holds at most one of each.
    """

    START = "start"
    WAYPOINT = "waypoint"
    END = "end"


class TransportMode(str, Enum):
    """Available transport modes for route planning."""

    WALKING = "walking"
    DRIVING = "driving"
    TRANSIT = "transit"


class ComplexityLevel(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    NaN and infinities are rejected.
    """

    lat: float = Field(
        ..., ge=-90, le=90, allow_inf_nan=False, description="Latitude in degrees"
    )
    lng: float = Field(
        ..., ge=-180, le=180, allow_inf_nan=False, description="Longitude in degrees"
    )


class Location(BaseModel):
    """A place the user put on the map.

    ``day_number`` is optional: ``None`` means the location is not assigned
    to any day yet. The plan store checks it against the plan's total days.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id, min_length=1)
    name: LocationName = Field(..., description="Display name")
    type: LocationType = Field(LocationType.WAYPOINT, description="Role in the plan")
    coordinates: Coordinates
    address: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    day_number: Optional[int] = Field(None, ge=1, description="Assigned day (1-based)")
    visit_duration: Optional[int] = Field(
        None, ge=0, le=1440, description="Planned visit duration in minutes"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_assigned(self) -> bool:
        return self.day_number is not None


class RouteDayKind(str, Enum):
    DAY = "day"
    CROSS_DAY = "cross_day"


@dataclass(frozen=True)
class RouteDay:
    """Day ownership of a route.

    Routes store ``day_number == 0`` when their endpoints are not on the same
    day; this wrapper keeps that sentinel out of day arithmetic.
    """

    kind: RouteDayKind
    day: Optional[int] = None

    @classmethod
    def from_day_number(cls, day_number: int) -> "RouteDay":
        if day_number == CROSS_DAY:
            return cls(RouteDayKind.CROSS_DAY)
        return cls(RouteDayKind.DAY, day_number)

    @property
    def is_cross_day(self) -> bool:
        return self.kind is RouteDayKind.CROSS_DAY


# Route.day_number value for legs whose endpoints are on different days
# (or not assigned at all).
CROSS_DAY = 0


class Route(BaseModel):
    """A single directed leg between two locations of the same plan."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id, min_length=1)
    from_location_id: str = Field(..., min_length=1)
    to_location_id: str = Field(..., min_length=1)
    distance: float = Field(..., ge=0, description="Distance in kilometres")
    duration: int = Field(..., ge=0, description="Duration in minutes")
    transport_mode: TransportMode
    path: Optional[list[Coordinates]] = Field(
        None, description="Polyline hint for the map, not routing-authoritative"
    )
    day_number: int = Field(CROSS_DAY, ge=0, description="Owning day, 0 for cross-day")

    @model_validator(mode="after")
    def _check_endpoints(self) -> "Route":
        if self.from_location_id == self.to_location_id:
            raise ValueError("A route cannot start and end at the same location")
        return self

    @property
    def day(self) -> RouteDay:
        return RouteDay.from_day_number(self.day_number)


class TravelPlan(BaseModel):
    """The plan aggregate: total days plus the location and route collections."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    total_days: int = Field(1, ge=1)
    locations: list[Location] = Field(default_factory=list)
    routes: list[Route] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def start_location(self) -> Optional[Location]:
        return next((loc for loc in self.locations if loc.type == LocationType.START), None)

    @property
    def end_location(self) -> Optional[Location]:
        return next((loc for loc in self.locations if loc.type == LocationType.END), None)

    @property
    def waypoint_locations(self) -> list[Location]:
        return [loc for loc in self.locations if loc.type == LocationType.WAYPOINT]

    def find_location(self, location_id: str) -> Optional[Location]:
        return next((loc for loc in self.locations if loc.id == location_id), None)

    def find_route(self, route_id: str) -> Optional[Route]:
        return next((route for route in self.routes if route.id == route_id), None)

    def touch(self) -> None:
        self.updated_at = utcnow()


class RouteEstimate(BaseModel):
    """Estimated distance and duration of one leg for one transport mode."""

    distance: float = Field(..., ge=0, description="Estimated distance in kilometres")
    duration: int = Field(..., ge=0, description="Estimated duration in minutes")
    path: list[Coordinates] = Field(default_factory=list)
    transport_mode: TransportMode


class ChainLeg(RouteEstimate):
    """A route estimate tied to the two locations it connects."""

    from_location_id: str
    to_location_id: str
    day_number: int = Field(1, ge=0)

    def to_route_data(self) -> dict:
        """Fields accepted by ``PlanStore.add_route``."""
        return {
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "distance": self.distance,
            "duration": self.duration,
            "transport_mode": self.transport_mode,
            "path": self.path,
            "day_number": self.day_number,
        }


class ComplexityFactors(BaseModel):
    route_count: int = 0
    total_distance: float = 0.0
    total_duration: int = 0
    day_span: int = 0
    transport_mode_changes: int = 0


class ComplexityEvaluation(BaseModel):
    level: ComplexityLevel
    factors: ComplexityFactors
    recommendations: list[str] = Field(default_factory=list)


class ReachabilityResult(BaseModel):
    accessible: bool
    reason: Optional[str] = None
    alternatives: Optional[list[TransportMode]] = None
    route: Optional[RouteEstimate] = None


class TripSummary(BaseModel):
    total_distance: float = 0.0
    total_duration: int = 0
    route_count: int = 0
    average_distance: float = 0.0
    average_duration: int = 0


class ModeBreakdown(BaseModel):
    count: int = 0
    distance: float = 0.0
    duration: int = 0


class RouteStatistics(BaseModel):
    """Read-only rollup over the current routes of a plan."""

    total_routes: int
    total_distance: float
    total_duration: int
    by_transport_mode: dict[TransportMode, ModeBreakdown]
    by_day: dict[int, ModeBreakdown]
    complexity: ComplexityEvaluation


class DayStats(BaseModel):
    day: int = Field(..., ge=1)
    total_locations: int = 0
    total_visit_duration: int = 0
    total_distance: float = 0.0
