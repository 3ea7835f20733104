"""Merge two independent estimates of the same meal.

Rules (applied to kcal and to each macro separately):
    - one side missing or zero -> take the other
    - both present, within 15% of the larger -> average
    - both present, further apart -> keep the first (primary) estimate

Averaging two estimates that disagree a lot yields a number neither
source supports. Instead the primary value is kept and the reported
uncertainty grows with the disagreement: 0.2 + relative difference,
clamped to [0.2, 0.95].
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fuellog.estimate.ranges import clamp, round_half_up, safe_number

logger = logging.getLogger(__name__)

AGREEMENT_TOLERANCE = 0.15
NO_ESTIMATE_UNCERTAINTY = 0.35
SINGLE_ESTIMATE_UNCERTAINTY = 0.45
MIN_MERGED_UNCERTAINTY = 0.2
MAX_MERGED_UNCERTAINTY = 0.95


@dataclass(frozen=True)
class MealEstimate:
    """A calorie estimate with optional macros (grams)."""

    kcal: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0


@dataclass(frozen=True)
class MergedEstimate:
    """Reconciled estimate with the resulting uncertainty."""

    kcal: int
    protein_g: float
    carbs_g: float
    fat_g: float
    uncertainty: float
    agreed: bool

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kcal": self.kcal,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "uncertainty": round(self.uncertainty, 3),
            "agreed": self.agreed,
        }


def relative_difference(a: float, b: float) -> float:
    """|a - b| relative to the larger of the two (0 when both are 0)."""
    larger = max(a, b)
    if larger <= 0:
        return 0.0
    return abs(a - b) / larger


def pick_value(a: float, b: float, tolerance: float = AGREEMENT_TOLERANCE) -> float:
    """Merge two values of the same quantity."""
    a = max(0.0, safe_number(a))
    b = max(0.0, safe_number(b))
    if a <= 0:
        return b
    if b <= 0:
        return a
    if relative_difference(a, b) <= tolerance:
        return (a + b) / 2
    return a


def reconcile_estimates(
    a: Optional[MealEstimate],
    b: Optional[MealEstimate],
    tolerance: float = AGREEMENT_TOLERANCE,
) -> MergedEstimate:
    """Reconcile two estimates; `a` is the primary one.

    Args:
        a: Primary estimate (None if absent)
        b: Secondary estimate (None if absent)
        tolerance: Maximum relative difference still treated as agreement

    Returns:
        MergedEstimate

    Example:
        >>> reconcile_estimates(MealEstimate(100), MealEstimate(105)).kcal
        103
        >>> reconcile_estimates(MealEstimate(100), MealEstimate(400)).kcal
        100
    """
    a = a or MealEstimate()
    b = b or MealEstimate()
    kcal_a = max(0.0, safe_number(a.kcal))
    kcal_b = max(0.0, safe_number(b.kcal))

    if kcal_a <= 0 and kcal_b <= 0:
        return MergedEstimate(0, 0.0, 0.0, 0.0, NO_ESTIMATE_UNCERTAINTY, agreed=False)

    diff = relative_difference(kcal_a, kcal_b)
    both = kcal_a > 0 and kcal_b > 0
    if both:
        uncertainty = clamp(MIN_MERGED_UNCERTAINTY + diff, MIN_MERGED_UNCERTAINTY, MAX_MERGED_UNCERTAINTY)
    else:
        uncertainty = SINGLE_ESTIMATE_UNCERTAINTY
    agreed = both and diff <= tolerance
    if both and not agreed:
        logger.info(
            "Estimates disagree (%.0f vs %.0f kcal, %.0f%%); keeping primary",
            kcal_a, kcal_b, diff * 100,
        )

    return MergedEstimate(
        kcal=round_half_up(pick_value(kcal_a, kcal_b, tolerance)),
        protein_g=round(pick_value(a.protein_g, b.protein_g, tolerance), 1),
        carbs_g=round(pick_value(a.carbs_g, b.carbs_g, tolerance), 1),
        fat_g=round(pick_value(a.fat_g, b.fat_g, tolerance), 1),
        uncertainty=uncertainty,
        agreed=agreed,
    )
