"""Great-circle geometry helpers."""

import math

import numpy as np
from numpy.typing import NDArray

from planner.models import Coordinates, InvalidCoordinateError

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres (haversine formula)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def coordinates_distance(a: Coordinates, b: Coordinates) -> float:
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def haversine_matrix(lats: NDArray[np.float64], lngs: NDArray[np.float64]) -> NDArray[np.float64]:
    """Pairwise great-circle distances (km) for equally sized lat/lng arrays."""
    phi = np.radians(lats)
    lam = np.radians(lngs)
    d_phi = phi[np.newaxis, :] - phi[:, np.newaxis]
    d_lam = lam[np.newaxis, :] - lam[:, np.newaxis]
    a = (
        np.sin(d_phi / 2) ** 2
        + np.cos(phi)[:, np.newaxis] * np.cos(phi)[np.newaxis, :] * np.sin(d_lam / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def is_valid_coordinates(coords: Coordinates) -> bool:
    """Check lat/lng are finite numbers inside their ranges."""
    lat, lng = coords.lat, coords.lng
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def validate_coordinates(coords: Coordinates, label: str = "location") -> None:
    """Raise InvalidCoordinateError unless ``coords`` is usable for geometry.

    Models built with ``model_construct`` skip field validation, so this
    check runs before every distance computation.
    """
    if not is_valid_coordinates(coords):
        raise InvalidCoordinateError(
            f"Invalid coordinates for {label}: lat={coords.lat}, lng={coords.lng}"
        )
