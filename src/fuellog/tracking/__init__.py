"""Workout energy tracking.

This module estimates workout energy expenditure from heart rate (Keytel
regression), scores training load (Banister TRIMP), imports heart-rate
series from delimited text exports and sums a day's intake and output.

Key components:
- Point estimate from average heart rate
- Series integration with a 10-minute dropout threshold
- Delimiter/column auto-detection for CSV-like exports
"""

from __future__ import annotations

from fuellog.tracking.daily import DaySummary, summarize_day, summarize_days
from fuellog.tracking.heart_rate import (
    estimate_workout_from_average,
    estimate_workout_from_series,
    summarize_workout,
    training_load,
)
from fuellog.tracking.ingest import (
    DelimitedTable,
    HeartRateImport,
    import_heart_rate_csv,
    ingest_delimited_text,
    to_heart_rate_series,
)
from fuellog.tracking.models import (
    HeartRateSample,
    Profile,
    SeriesEstimate,
    Sex,
    WorkoutEstimate,
)

__all__ = [
    "DaySummary",
    "DelimitedTable",
    "HeartRateImport",
    "HeartRateSample",
    "Profile",
    "SeriesEstimate",
    "Sex",
    "WorkoutEstimate",
    "estimate_workout_from_average",
    "estimate_workout_from_series",
    "import_heart_rate_csv",
    "ingest_delimited_text",
    "summarize_day",
    "summarize_days",
    "summarize_workout",
    "to_heart_rate_series",
    "training_load",
]
