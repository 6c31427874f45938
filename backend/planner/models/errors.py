"""Error taxonomy for the planner.

Every failure the planner can report has an ``ErrorCode``. Core operations
raise ``PlannerError`` subclasses; the service and API layers turn them into
``AppError`` payloads so callers always get a structured result.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to API clients."""

    INVALID_COORDINATE = "INVALID_COORDINATE"
    DUPLICATE_ANCHOR = "DUPLICATE_ANCHOR"
    DUPLICATE_ROUTE = "DUPLICATE_ROUTE"
    SELF_LOOP_ROUTE = "SELF_LOOP_ROUTE"
    DAY_OUT_OF_RANGE = "DAY_OUT_OF_RANGE"
    NO_CURRENT_PLAN = "NO_CURRENT_PLAN"
    NO_ANCHOR_LOCATION = "NO_ANCHOR_LOCATION"
    MISSING_ENDPOINT = "MISSING_ENDPOINT"
    NOT_FOUND = "NOT_FOUND"
    ROUTE_CALCULATION_FAILED = "ROUTE_CALCULATION_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    API_ERROR = "API_ERROR"


class RecoveryOption(BaseModel):
    """An action the client can offer the user after a failure."""

    label: str
    action: str
    params: Optional[dict[str, Any]] = None


class AppError(BaseModel):
    """Structured error returned in API responses."""

    code: ErrorCode
    message: str = Field(..., description="Technical message")
    user_message: str = Field(..., description="Message safe to show to the user")
    recovery_options: Optional[list[RecoveryOption]] = None


class PlannerError(Exception):
    """Base class for all planner failures."""

    code: ErrorCode = ErrorCode.INVALID_INPUT
    user_message: str = "The request could not be completed."

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_app_error(self) -> AppError:
        return AppError(code=self.code, message=self.message, user_message=self.user_message)


class InvalidCoordinateError(PlannerError):
    code = ErrorCode.INVALID_COORDINATE
    user_message = "Invalid coordinates."


class DuplicateAnchorError(PlannerError):
    code = ErrorCode.DUPLICATE_ANCHOR
    user_message = "A plan can only have one start point and one end point."


class DuplicateRouteError(PlannerError):
    code = ErrorCode.DUPLICATE_ROUTE
    user_message = "These locations are already connected."


class SelfLoopRouteError(PlannerError):
    code = ErrorCode.SELF_LOOP_ROUTE
    user_message = "A route cannot start and end at the same location."


class DayOutOfRangeError(PlannerError):
    code = ErrorCode.DAY_OUT_OF_RANGE
    user_message = "Day number is out of range."


class NoCurrentPlanError(PlannerError):
    code = ErrorCode.NO_CURRENT_PLAN
    user_message = "Create or load a plan first."

    def __init__(self, message: str = "No plan is currently loaded") -> None:
        super().__init__(message)


class NoAnchorLocationError(PlannerError):
    code = ErrorCode.NO_ANCHOR_LOCATION
    user_message = "Add a start point or at least one waypoint first."


class MissingEndpointError(PlannerError):
    code = ErrorCode.MISSING_ENDPOINT
    user_message = "The route's start or end location no longer exists."


class LocationNotFoundError(PlannerError):
    code = ErrorCode.NOT_FOUND
    user_message = "Location not found."


class RouteNotFoundError(PlannerError):
    code = ErrorCode.NOT_FOUND
    user_message = "Route not found."


class PlanNotFoundError(PlannerError):
    code = ErrorCode.NOT_FOUND
    user_message = "Plan not found."


class RouteCalculationError(PlannerError):
    code = ErrorCode.ROUTE_CALCULATION_FAILED
    user_message = "Route calculation failed."
