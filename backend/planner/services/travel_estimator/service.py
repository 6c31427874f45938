"""Travel estimates from straight-line distance.

Real paths are longer than the great-circle distance, so each transport mode
inflates it by a fixed factor, then converts it to minutes with an average
speed plus a fixed overhead (parking, waiting for the next vehicle).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from planner.models import TransportMode
from planner.utils.rounding import round_minutes


@dataclass(frozen=True)
class ModeProfile:
    """Constants of the estimate model for one transport mode."""

    path_factor: float  # real path length / straight-line length
    speed_kmh: float
    overhead_minutes: float
    max_distance_km: float  # beyond this the mode is considered unreasonable


def _build_profiles(profiles: dict[TransportMode, ModeProfile]) -> Mapping[TransportMode, ModeProfile]:
    missing = set(TransportMode) - set(profiles)
    if missing:
        raise KeyError(f"No travel profile for: {sorted(m.value for m in missing)}")
    return MappingProxyType(profiles)


MODE_PROFILES: Mapping[TransportMode, ModeProfile] = _build_profiles({
    TransportMode.WALKING: ModeProfile(path_factor=1.3, speed_kmh=5.0, overhead_minutes=0, max_distance_km=50),
    TransportMode.DRIVING: ModeProfile(path_factor=1.4, speed_kmh=40.0, overhead_minutes=5, max_distance_km=1000),
    TransportMode.TRANSIT: ModeProfile(path_factor=1.5, speed_kmh=25.0, overhead_minutes=10, max_distance_km=200),
})


class TravelEstimator:
    """Converts straight-line distances into distance/duration estimates."""

    def __init__(self, profiles: Mapping[TransportMode, ModeProfile] = MODE_PROFILES) -> None:
        self._profiles = profiles

    def profile(self, mode: TransportMode) -> ModeProfile:
        return self._profiles[mode]

    def estimate_distance(self, straight_line_km: float, mode: TransportMode) -> float:
        """Estimated path length in km for ``mode``."""
        return straight_line_km * self.profile(mode).path_factor

    def estimate_duration(self, adjusted_km: float, mode: TransportMode) -> int:
        """Estimated travel time in whole minutes for an already inflated distance."""
        profile = self.profile(mode)
        return round_minutes(adjusted_km / profile.speed_kmh * 60 + profile.overhead_minutes)

    def max_reasonable_distance(self, mode: TransportMode) -> float:
        return self.profile(mode).max_distance_km
