"""HTTP API for the route planner."""

from .routes import router

__all__ = ["router"]
