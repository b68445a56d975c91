from __future__ import annotations
import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with ties going up (2.5 -> 3, -2.5 -> -2).

    Python's built-in ``round`` uses banker's rounding, which would turn a
    50.5% match into 50 instead of 51.
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def circular_separation(a: float, b: float) -> float:
    """Smallest angle between two longitudes, in [0, 180]."""
    d = abs((a - b) % 360.0)
    return 360.0 - d if d > 180.0 else d
