"""Calorie estimation from meal descriptions.

Key components:
- Range arithmetic (bounded low/mid/high with clamped uncertainty)
- Free-text food estimator (alias matching, quantity extraction, summing)
- Reconciliation of two independent estimates of the same meal
"""

from __future__ import annotations

from fuellog.estimate.food_text import FoodMatch, FoodTextEstimate, estimate_food_text
from fuellog.estimate.ranges import (
    CalorieRange,
    bounded_range,
    meal_range,
    range_from_bounds,
    sum_ranges,
)
from fuellog.estimate.reconcile import MealEstimate, MergedEstimate, reconcile_estimates

__all__ = [
    "CalorieRange",
    "FoodMatch",
    "FoodTextEstimate",
    "MealEstimate",
    "MergedEstimate",
    "bounded_range",
    "estimate_food_text",
    "meal_range",
    "range_from_bounds",
    "reconcile_estimates",
    "sum_ranges",
]
