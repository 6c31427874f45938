"""API routes for the travel route planner.

All endpoints answer with the same envelope:

    {"success": bool, "data": ..., "error": AppError | null, "warnings": [...] | null}

Planner failures are reported with ``success=False`` and a structured
``AppError`` rather than an HTTP error status.
"""

from typing import Any, Optional
import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field

from planner.config import settings
from planner.models import (
    AppError,
    Coordinates,
    ErrorCode,
    LocationName,
    LocationType,
    PlanNotFoundError,
    PlannerError,
    RecoveryOption,
    Tag,
    TransportMode,
    TravelPlan,
)
from planner.services import (
    DayPlanAssigner,
    InMemoryPlanRepository,
    InMemoryPlanStore,
    PlanRepository,
    RedisPlanRepository,
    RouteService,
    ServiceResult,
    all_days_stats,
    export_plan_json,
    import_plan_json,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models
class ApiResponse(BaseModel):
    """Response envelope shared by every planner endpoint."""
    success: bool
    data: Any = None
    error: Optional[AppError] = None
    warnings: Optional[list[str]] = None


class CreatePlanRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    total_days: int = Field(1, ge=1)
    description: str = ""


class AddLocationRequest(BaseModel):
    """Request model for adding a location to the current plan."""
    name: LocationName
    coordinates: Coordinates
    type: LocationType = LocationType.WAYPOINT
    address: Optional[str] = None
    description: Optional[str] = None
    tags: list[Tag] = Field(default_factory=list)
    day_number: Optional[int] = None
    visit_duration: Optional[int] = None


class UpdateLocationRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    type: Optional[LocationType] = None
    address: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    day_number: Optional[int] = None
    visit_duration: Optional[int] = None


class ConnectRequest(BaseModel):
    from_location_id: str
    to_location_id: str
    transport_mode: TransportMode = settings.default_transport_mode


class AssignDayRequest(BaseModel):
    location_ids: list[str] = Field(..., min_length=1)
    day: int


class ReorderDayRequest(BaseModel):
    location_ids: list[str]


class TotalDaysRequest(BaseModel):
    total_days: int


class AutoConnectRequest(BaseModel):
    transport_mode: TransportMode = settings.default_transport_mode
    respect_day_numbers: bool = True
    connect_across_days: bool = False


class OptimizeRequest(BaseModel):
    transport_mode: TransportMode = settings.default_transport_mode


class TransportModeRequest(BaseModel):
    transport_mode: TransportMode
    route_ids: Optional[list[str]] = None


class ImportPlanRequest(BaseModel):
    """Export document (or bare plan) as a JSON string."""
    content: str = Field(..., min_length=1)


# Service instances
_plan_store: InMemoryPlanStore | None = None
_day_planner: DayPlanAssigner | None = None
_route_service: RouteService | None = None
_plan_repository: PlanRepository | None = None


def get_plan_store() -> InMemoryPlanStore:
    global _plan_store
    if _plan_store is None:
        _plan_store = InMemoryPlanStore(
            max_locations=settings.max_locations,
            max_days=settings.max_days,
        )
    return _plan_store


def get_day_planner() -> DayPlanAssigner:
    global _day_planner
    if _day_planner is None:
        _day_planner = DayPlanAssigner(get_plan_store(), max_days=settings.max_days)
    return _day_planner


def get_route_service() -> RouteService:
    global _route_service
    if _route_service is None:
        _route_service = RouteService(get_plan_store())
    return _route_service


def get_plan_repository() -> PlanRepository:
    global _plan_repository
    if _plan_repository is None:
        if settings.storage_backend == "redis":
            _plan_repository = RedisPlanRepository(
                redis_url=settings.redis_url,
                ttl_seconds=settings.plan_ttl_seconds,
            )
        else:
            _plan_repository = InMemoryPlanRepository()
    return _plan_repository


def reset_services() -> None:
    """Drop all service instances; the next request builds fresh ones."""
    global _plan_store, _day_planner, _route_service, _plan_repository
    _plan_store = None
    _day_planner = None
    _route_service = None
    _plan_repository = None


def _error_response(exc: PlannerError) -> ApiResponse:
    error = exc.to_app_error()
    if error.code == ErrorCode.NO_CURRENT_PLAN:
        error.recovery_options = [
            RecoveryOption(label="Create a plan", action="create_plan"),
        ]
    logger.info(f"[API] {error.code.value}: {error.message}")
    return ApiResponse(success=False, error=error)


def _make_current(plan: TravelPlan) -> TravelPlan:
    """Load ``plan`` into the store and bring its route days in line with its locations."""
    get_plan_store().load(plan)
    planner = get_day_planner()
    changed = planner.reconcile_route_days()
    if changed:
        logger.info(f"[API] Reconciled {changed} route day(s) on load")
    planner.select_day(1)
    return get_plan_store().require_plan()


def _from_result(result: ServiceResult, user_message: str) -> ApiResponse:
    if result.success:
        return ApiResponse(success=True, data=result.data, warnings=result.warnings)
    return ApiResponse(
        success=False,
        error=AppError(
            code=result.error_code or ErrorCode.INVALID_INPUT,
            message=result.error or "",
            user_message=user_message,
        ),
        warnings=result.warnings,
    )


# Plans
@router.post("/plans", response_model=ApiResponse)
async def create_plan(request: CreatePlanRequest) -> ApiResponse:
    try:
        plan = get_plan_store().create_plan(
            request.name, request.total_days, request.description
        )
        get_day_planner().select_day(1)
        return ApiResponse(success=True, data=plan)
    except PlannerError as e:
        return _error_response(e)


@router.get("/plans/current", response_model=ApiResponse)
async def get_current_plan() -> ApiResponse:
    try:
        return ApiResponse(success=True, data=get_plan_store().require_plan())
    except PlannerError as e:
        return _error_response(e)


# Locations
@router.post("/plans/current/locations", response_model=ApiResponse)
async def add_location(request: AddLocationRequest) -> ApiResponse:
    try:
        location = get_plan_store().add_location(request.model_dump())
        return ApiResponse(success=True, data=location)
    except PlannerError as e:
        return _error_response(e)


@router.patch("/plans/current/locations/{location_id}", response_model=ApiResponse)
async def update_location(location_id: str, request: UpdateLocationRequest) -> ApiResponse:
    try:
        location = get_plan_store().update_location(
            location_id, request.model_dump(exclude_unset=True)
        )
        get_day_planner().reconcile_route_days()
        return ApiResponse(success=True, data=location)
    except PlannerError as e:
        return _error_response(e)


@router.delete("/plans/current/locations/{location_id}", response_model=ApiResponse)
async def remove_location(location_id: str) -> ApiResponse:
    try:
        get_plan_store().remove_location(location_id)
        return ApiResponse(success=True)
    except PlannerError as e:
        return _error_response(e)


# Routes
@router.post("/plans/current/routes", response_model=ApiResponse)
async def connect_locations(request: ConnectRequest) -> ApiResponse:
    result = get_route_service().connect(
        request.from_location_id, request.to_location_id, request.transport_mode
    )
    return _from_result(result, "These locations could not be connected.")


@router.delete("/plans/current/routes/{route_id}", response_model=ApiResponse)
async def remove_route(route_id: str) -> ApiResponse:
    try:
        get_plan_store().remove_route(route_id)
        return ApiResponse(success=True)
    except PlannerError as e:
        return _error_response(e)


@router.post("/plans/current/routes/auto-connect", response_model=ApiResponse)
async def auto_connect(request: AutoConnectRequest) -> ApiResponse:
    result = get_route_service().auto_connect(
        request.transport_mode,
        respect_day_numbers=request.respect_day_numbers,
        connect_across_days=request.connect_across_days,
    )
    return _from_result(result, "Routes could not be generated.")


@router.post("/plans/current/routes/optimize", response_model=ApiResponse)
async def optimize_routes(request: OptimizeRequest) -> ApiResponse:
    result = get_route_service().optimize_route_order(request.transport_mode)
    return _from_result(result, "Route order could not be optimized.")


@router.post("/plans/current/routes/transport-mode", response_model=ApiResponse)
async def change_transport_mode(request: TransportModeRequest) -> ApiResponse:
    result = get_route_service().change_transport_mode(
        request.transport_mode, request.route_ids
    )
    return _from_result(result, "Transport mode could not be changed.")


@router.get("/plans/current/routes/reachability", response_model=ApiResponse)
async def check_reachability(
    from_location_id: str,
    to_location_id: str,
    transport_mode: TransportMode = settings.default_transport_mode,
) -> ApiResponse:
    result = get_route_service().check_route_accessibility(
        from_location_id, to_location_id, transport_mode
    )
    return _from_result(result, "Reachability could not be checked.")


@router.get("/plans/current/routes/alternatives", response_model=ApiResponse)
async def get_alternatives(from_location_id: str, to_location_id: str) -> ApiResponse:
    result = get_route_service().get_alternative_routes(from_location_id, to_location_id)
    return _from_result(result, "Alternatives could not be calculated.")


# Days
@router.post("/plans/current/days/assign", response_model=ApiResponse)
async def assign_to_day(request: AssignDayRequest) -> ApiResponse:
    try:
        locations = get_day_planner().assign_multiple_to_day(request.location_ids, request.day)
        return ApiResponse(success=True, data=locations)
    except PlannerError as e:
        return _error_response(e)


@router.post("/plans/current/days/unassign/{location_id}", response_model=ApiResponse)
async def unassign_from_day(location_id: str) -> ApiResponse:
    try:
        return ApiResponse(success=True, data=get_day_planner().remove_from_day(location_id))
    except PlannerError as e:
        return _error_response(e)


@router.put("/plans/current/days/total", response_model=ApiResponse)
async def set_total_days(request: TotalDaysRequest) -> ApiResponse:
    try:
        evicted = get_day_planner().set_total_days(request.total_days)
        warnings = [f"{len(evicted)} location(s) were unassigned"] if evicted else None
        return ApiResponse(
            success=True,
            data={"total_days": request.total_days, "evicted": [loc.id for loc in evicted]},
            warnings=warnings,
        )
    except PlannerError as e:
        return _error_response(e)


@router.put("/plans/current/days/{day}/order", response_model=ApiResponse)
async def reorder_day(day: int, request: ReorderDayRequest) -> ApiResponse:
    try:
        locations = get_day_planner().reorder_locations_in_day(day, request.location_ids)
        return ApiResponse(success=True, data=locations)
    except PlannerError as e:
        return _error_response(e)


@router.post("/plans/current/days/auto-assign", response_model=ApiResponse)
async def auto_assign_days() -> ApiResponse:
    try:
        return ApiResponse(success=True, data=get_day_planner().auto_assign())
    except PlannerError as e:
        return _error_response(e)


# Statistics and checks
@router.get("/plans/current/stats", response_model=ApiResponse)
async def get_stats() -> ApiResponse:
    try:
        plan = get_plan_store().require_plan()
        service = get_route_service()
        return ApiResponse(
            success=True,
            data={
                "routes": service.get_route_statistics().data,
                "summary": service.get_trip_summary().data,
                "days": all_days_stats(plan),
            },
        )
    except PlannerError as e:
        return _error_response(e)


@router.get("/plans/current/validation", response_model=ApiResponse)
async def validate_plan() -> ApiResponse:
    return ApiResponse(success=True, data=get_route_service().validate_route_configuration())


# Saved plans
@router.post("/plans/current/save", response_model=ApiResponse)
async def save_plan() -> ApiResponse:
    try:
        plan = get_plan_store().require_plan()
        await get_plan_repository().save(plan)
        return ApiResponse(success=True, data={"id": plan.id})
    except PlannerError as e:
        return _error_response(e)


@router.get("/plans/saved", response_model=ApiResponse)
async def list_saved_plans() -> ApiResponse:
    plans = await get_plan_repository().list_plans()
    return ApiResponse(
        success=True,
        data=[
            {
                "id": plan.id,
                "name": plan.name,
                "total_days": plan.total_days,
                "location_count": len(plan.locations),
                "updated_at": plan.updated_at,
            }
            for plan in plans
        ],
    )


@router.post("/plans/{plan_id}/load", response_model=ApiResponse)
async def load_plan(plan_id: str) -> ApiResponse:
    try:
        plan = await get_plan_repository().load(plan_id)
        return ApiResponse(success=True, data=_make_current(plan))
    except PlannerError as e:
        return _error_response(e)


@router.delete("/plans/{plan_id}", response_model=ApiResponse)
async def delete_plan(plan_id: str) -> ApiResponse:
    try:
        if not await get_plan_repository().delete(plan_id):
            raise PlanNotFoundError(f"Plan {plan_id} does not exist")
        return ApiResponse(success=True)
    except PlannerError as e:
        return _error_response(e)


@router.get("/plans/current/export", response_model=ApiResponse)
async def export_plan() -> ApiResponse:
    try:
        return ApiResponse(
            success=True,
            data={"content": export_plan_json(get_plan_store().require_plan())},
        )
    except PlannerError as e:
        return _error_response(e)


@router.post("/plans/import", response_model=ApiResponse)
async def import_plan(request: ImportPlanRequest) -> ApiResponse:
    try:
        plan = _make_current(import_plan_json(request.content))
        return ApiResponse(success=True, data=plan)
    except PlannerError as e:
        return _error_response(e)
