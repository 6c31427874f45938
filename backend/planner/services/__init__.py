"""Route Planner Services.

Service layer components:
- Travel Estimator: per-mode distance inflation, speeds and overheads
- Route Calculator: leg estimates, chains, nearest-neighbour ordering, complexity
- Plan Store: the current plan and its invariants
- Day Planner: day assignment and route-day reconciliation
- Plan Stats: route and per-day rollups
- Plan Repository: saved plans (in-memory or Redis) and JSON export/import
- Route Service: structured-result route management for the API
"""

from .travel_estimator import MODE_PROFILES, ModeProfile, TravelEstimator
from .route_calculator import (
    ConnectResult,
    DayRoutes,
    DistanceMatrix,
    HeuristicRouteCalculator,
    RouteCalculatorService,
    RouteValidation,
    evaluate_complexity,
)
from .plan_store import InMemoryPlanStore, PlanStore
from .plan_stats import all_days_stats, day_stats, route_statistics
from .day_planner import DayPlanAssigner
from .plan_repository import (
    InMemoryPlanRepository,
    PlanRepository,
    RedisPlanRepository,
    export_plan_json,
    import_plan_json,
)
from .route_service import ConfigurationReport, RouteService, ServiceResult

__all__ = [
    # Travel estimator
    "MODE_PROFILES",
    "ModeProfile",
    "TravelEstimator",
    # Route calculator
    "ConnectResult",
    "DayRoutes",
    "DistanceMatrix",
    "HeuristicRouteCalculator",
    "RouteCalculatorService",
    "RouteValidation",
    "evaluate_complexity",
    # Plan store
    "InMemoryPlanStore",
    "PlanStore",
    # Stats
    "all_days_stats",
    "day_stats",
    "route_statistics",
    # Day planner
    "DayPlanAssigner",
    # Repository
    "InMemoryPlanRepository",
    "PlanRepository",
    "RedisPlanRepository",
    "export_plan_json",
    "import_plan_json",
    # Route service
    "ConfigurationReport",
    "RouteService",
    "ServiceResult",
]
