"""Half-up rounding (``round()`` rounds halves to even)."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def round_minutes(value: float) -> int:
    return int(math.floor(value + 0.5))
