"""Numeric helpers shared by the allocation and exposure engines.

Percentages are 0-100, weights are fractions of NAV (25% -> 0.25) and
basis points are integer hundredths of a percent (100% -> 10000bp).
"""

import math
from typing import Any

from stackfolio.utils.logging import get_logger

logger = get_logger(__name__)

BASIS_POINTS_PER_PERCENT = 100
MAX_BASIS_POINTS = 10000
MAX_PERCENTAGE = 100.0
DISPLAY_DECIMALS = 1


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round half away from zero for non-negative values.

    Python's round() uses banker's rounding (round(0.25, 1) == 0.2); display
    rounding here always rounds .5 up.
    """
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def clamp_percentage(value: Any) -> float:
    """Coerce user input into a percentage in [0, 100].

    NaN, None and non-numeric input become 0. Nothing is rejected.

    Example:
        >>> clamp_percentage("42.5")
        42.5
        >>> clamp_percentage(150)
        100.0
        >>> clamp_percentage(float("nan"))
        0.0
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Non-numeric percentage %r clamped to 0", value)
        return 0.0

    if math.isnan(number):
        logger.debug("NaN percentage clamped to 0")
        return 0.0

    clamped = min(MAX_PERCENTAGE, max(0.0, number))
    if clamped != number:
        logger.debug("Percentage %s clamped to %s", number, clamped)
    return clamped


def percent_to_basis_points(percentage: float) -> int:
    """Convert a percentage to integer basis points (25.5 -> 2550)."""
    return int(math.floor(percentage * BASIS_POINTS_PER_PERCENT + 0.5))


def basis_points_to_percent(basis_points: int) -> float:
    """Convert basis points back to a percentage (2550 -> 25.5)."""
    return basis_points / BASIS_POINTS_PER_PERCENT


def percent_to_weight(percentage: float) -> float:
    """Convert a percentage to a decimal weight (25 -> 0.25)."""
    return percentage / 100


def weight_to_percent(weight: float) -> float:
    """Convert a decimal weight to a percentage (0.25 -> 25)."""
    return weight * 100


def round_for_display(percentage: float) -> float:
    """Round a percentage to display precision (1 decimal place)."""
    return round_half_up(percentage, DISPLAY_DECIMALS)


def relative_percent(part: float, total: float) -> float:
    """Share of ``part`` in ``total`` as a percentage, 0 when total is 0.

    Example:
        >>> relative_percent(50, 200)
        25.0
        >>> relative_percent(1.0, 0.0)
        0.0
    """
    if total <= 0:
        return 0.0
    return part / total * 100
