"""Mode-specific distance and duration estimates."""

from .service import MODE_PROFILES, ModeProfile, TravelEstimator

__all__ = [
    "MODE_PROFILES",
    "ModeProfile",
    "TravelEstimator",
]
