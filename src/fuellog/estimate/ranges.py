"""Calorie range arithmetic.

Every estimator reports a point value together with a relative uncertainty.
This module turns that pair into a bounded low/mid/high triple:

    low  = max(0, round(mid × (1 - u)))
    high = max(low, round(mid × (1 + u)))

The uncertainty is clamped to [0.05, 0.60] so that even a very unsure
estimate never produces a uselessly wide range (e.g. "50-400 kcal").
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

MIN_UNCERTAINTY = 0.05
MAX_UNCERTAINTY = 0.60


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding, which makes 102.5 -> 102.
    Calorie figures are always rounded half up here.
    """
    return int(math.floor(value + 0.5))


def safe_number(value: object, fallback: float = 0.0) -> float:
    """Convert a value to a finite float, returning fallback otherwise."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


@dataclass(frozen=True)
class CalorieRange:
    """A calorie estimate as a bounded range.

    Attributes:
        low: Lower bound (kcal)
        mid: Midpoint (kcal)
        high: Upper bound (kcal)
        uncertainty: Relative half-width around mid, in [0.05, 0.60]
    """

    low: int
    mid: int
    high: int
    uncertainty: float

    def __post_init__(self) -> None:
        if self.low < 0:
            raise ValueError(f"low must be non-negative, got {self.low}")
        if not self.low <= self.mid <= self.high:
            raise ValueError(
                f"range must satisfy low <= mid <= high, got "
                f"{self.low}/{self.mid}/{self.high}"
            )

    @property
    def width(self) -> int:
        """Return high - low."""
        return self.high - self.low

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "low": self.low,
            "mid": self.mid,
            "high": self.high,
            "uncertainty": round(self.uncertainty, 3),
        }


ZERO_RANGE = CalorieRange(low=0, mid=0, high=0, uncertainty=MIN_UNCERTAINTY)


def bounded_range(mid: float, uncertainty: float) -> CalorieRange:
    """Build a range around a point estimate.

    Args:
        mid: Point estimate in kcal. Non-finite or negative values count as 0.
        uncertainty: Relative half-width, clamped to [0.05, 0.60]

    Returns:
        CalorieRange with integer bounds

    Example:
        >>> bounded_range(195, 0.08)
        CalorieRange(low=179, mid=195, high=211, uncertainty=0.08)
    """
    mid = max(0.0, safe_number(mid))
    u = clamp(safe_number(uncertainty, MIN_UNCERTAINTY), MIN_UNCERTAINTY, MAX_UNCERTAINTY)
    low = max(0, round_half_up(mid * (1 - u)))
    high = max(low, round_half_up(mid * (1 + u)))
    return CalorieRange(low=low, mid=round_half_up(mid), high=high, uncertainty=u)


def relative_half_width(low: float, high: float) -> float:
    """Return (high - low) / 2 relative to the range centre."""
    centre = max(1.0, (low + high) / 2)
    return (high - low) / centre / 2


def range_from_bounds(
    low: float,
    high: float,
    min_uncertainty: float = MIN_UNCERTAINTY,
    max_uncertainty: float = MAX_UNCERTAINTY,
) -> CalorieRange:
    """Build a range from explicit bounds.

    The midpoint is round((low + high) / 2) and the uncertainty is the
    range's own relative half-width, clamped to the given limits. Bounds
    are kept as given (after rounding), even when the clamped uncertainty
    would describe a different width.

    Args:
        low: Lower bound (kcal)
        high: Upper bound (kcal); values below low are raised to low
        min_uncertainty: Floor for the reported uncertainty
        max_uncertainty: Cap for the reported uncertainty

    Returns:
        CalorieRange
    """
    lo = max(0, round_half_up(safe_number(low)))
    hi = max(lo, round_half_up(safe_number(high)))
    u = clamp(relative_half_width(lo, hi), min_uncertainty, max_uncertainty)
    return CalorieRange(low=lo, mid=round_half_up((lo + hi) / 2), high=hi, uncertainty=u)


def sum_ranges(
    ranges: Iterable[CalorieRange],
    min_uncertainty: float = 0.10,
    max_uncertainty: float = 0.45,
) -> CalorieRange:
    """Add ranges together (sum of lows, sum of highs).

    Additive composition models a meal as the sum of its foods. The
    aggregate uncertainty is the summed range's relative half-width,
    clamped to [min_uncertainty, max_uncertainty].
    """
    items = list(ranges)
    if not items:
        return ZERO_RANGE
    low = sum(r.low for r in items)
    high = sum(r.high for r in items)
    return range_from_bounds(low, high, min_uncertainty, max_uncertainty)


def meal_range(
    kcal: float,
    uncertainty: Optional[float] = None,
    low: Optional[float] = None,
    high: Optional[float] = None,
) -> CalorieRange:
    """Resolve the range of a logged meal.

    A stored low/high pair wins when both are positive and ordered;
    otherwise the range is rebuilt from the final kcal value and its
    uncertainty (default 0.35).
    """
    lo = safe_number(low)
    hi = safe_number(high)
    if lo > 0 and hi > 0 and hi >= lo:
        return range_from_bounds(lo, hi)
    u = clamp(safe_number(uncertainty, 0.35) if uncertainty is not None else 0.35,
              MIN_UNCERTAINTY, MAX_UNCERTAINTY)
    return bounded_range(safe_number(kcal), u)
