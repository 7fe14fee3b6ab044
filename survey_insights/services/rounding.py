from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (unlike ``round``)."""

    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def percent(part: float, whole: float) -> int:
    """Return ``part / whole`` as a rounded whole percentage, 0 when ``whole`` is 0."""

    if not whole:
        return 0
    return round_half_up(100 * part / whole)
