"""Route calculation: leg estimates, chains, ordering and complexity."""

from .service import (
    ConnectResult,
    DayRoutes,
    DistanceMatrix,
    HeuristicRouteCalculator,
    RouteCalculatorService,
    RouteValidation,
    evaluate_complexity,
)

__all__ = [
    "ConnectResult",
    "DayRoutes",
    "DistanceMatrix",
    "HeuristicRouteCalculator",
    "RouteCalculatorService",
    "RouteValidation",
    "evaluate_complexity",
]
