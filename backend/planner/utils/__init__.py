from .rounding import round_half_up, round_minutes
from .geo import (
    EARTH_RADIUS_KM,
    coordinates_distance,
    haversine_distance,
    haversine_matrix,
    is_valid_coordinates,
    validate_coordinates,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "coordinates_distance",
    "haversine_distance",
    "haversine_matrix",
    "is_valid_coordinates",
    "validate_coordinates",
    "round_half_up",
    "round_minutes",
]
