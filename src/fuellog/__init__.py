"""Calorie range estimation for a personal nutrition and activity log."""

from __future__ import annotations

from fuellog.estimate import (
    CalorieRange,
    FoodTextEstimate,
    MealEstimate,
    MergedEstimate,
    bounded_range,
    estimate_food_text,
    reconcile_estimates,
)
from fuellog.tracking import (
    HeartRateSample,
    Profile,
    Sex,
    estimate_workout_from_average,
    estimate_workout_from_series,
    ingest_delimited_text,
    to_heart_rate_series,
    training_load,
)

__version__ = "0.1.0"

__all__ = [
    "CalorieRange",
    "FoodTextEstimate",
    "HeartRateSample",
    "MealEstimate",
    "MergedEstimate",
    "Profile",
    "Sex",
    "bounded_range",
    "estimate_food_text",
    "estimate_workout_from_average",
    "estimate_workout_from_series",
    "ingest_delimited_text",
    "reconcile_estimates",
    "to_heart_rate_series",
    "training_load",
]
