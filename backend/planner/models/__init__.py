"""Planner data models and error types."""

from .core import (
    CROSS_DAY,
    ChainLeg,
    ComplexityEvaluation,
    ComplexityFactors,
    ComplexityLevel,
    Coordinates,
    DayStats,
    Location,
    LocationName,
    LocationType,
    ModeBreakdown,
    ReachabilityResult,
    Route,
    RouteDay,
    RouteDayKind,
    RouteEstimate,
    RouteStatistics,
    Tag,
    TransportMode,
    TravelPlan,
    TripSummary,
    new_id,
    utcnow,
)
from .errors import (
    AppError,
    DayOutOfRangeError,
    DuplicateAnchorError,
    DuplicateRouteError,
    ErrorCode,
    InvalidCoordinateError,
    LocationNotFoundError,
    MissingEndpointError,
    NoAnchorLocationError,
    NoCurrentPlanError,
    PlanNotFoundError,
    PlannerError,
    RecoveryOption,
    RouteCalculationError,
    RouteNotFoundError,
    SelfLoopRouteError,
)

__all__ = [
    # Core models
    "CROSS_DAY",
    "ChainLeg",
    "ComplexityEvaluation",
    "ComplexityFactors",
    "ComplexityLevel",
    "Coordinates",
    "DayStats",
    "Location",
    "LocationName",
    "LocationType",
    "ModeBreakdown",
    "ReachabilityResult",
    "Route",
    "RouteDay",
    "RouteDayKind",
    "RouteEstimate",
    "RouteStatistics",
    "Tag",
    "TransportMode",
    "TravelPlan",
    "TripSummary",
    "new_id",
    "utcnow",
    # Errors
    "AppError",
    "DayOutOfRangeError",
    "DuplicateAnchorError",
    "DuplicateRouteError",
    "ErrorCode",
    "InvalidCoordinateError",
    "LocationNotFoundError",
    "MissingEndpointError",
    "NoAnchorLocationError",
    "NoCurrentPlanError",
    "PlanNotFoundError",
    "PlannerError",
    "RecoveryOption",
    "RouteCalculationError",
    "RouteNotFoundError",
    "SelfLoopRouteError",
]
