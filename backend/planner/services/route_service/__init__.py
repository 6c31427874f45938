"""Route management service returning structured results."""

from .service import ConfigurationReport, RouteService, ServiceResult

__all__ = [
    "ConfigurationReport",
    "RouteService",
    "ServiceResult",
]
