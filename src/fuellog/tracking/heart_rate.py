"""Energy expenditure and training load from heart rate.

Energy uses the Keytel et al. (2005) regression, which predicts
expenditure from heart rate, body weight and age with separate male and
female coefficients:

    male:   kJ/min = -55.0969 + 0.6309×HR + 0.1988×W + 0.2017×A
    female: kJ/min = -20.4022 + 0.4472×HR - 0.1263×W + 0.074×A

kcal/min = kJ/min / 4.184, floored at MIN_KCAL_PER_MINUTE.

Training load is Banister's TRIMP on the heart-rate reserve fraction:

    HRr   = (HRavg - HRrest) / (HRmax - HRrest), clamped to [0, 1.2]
    TRIMP = minutes × HRr × a × e^(b × HRr)

with (a, b) = (0.64, 1.92) for men and (0.86, 1.67) for women.

Reference: Keytel LR et al., J Sports Sci 2005;23(3):289-297.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import numpy as np

from fuellog.estimate.ranges import clamp, round_half_up, safe_number
from fuellog.tracking.models import (
    HeartRateSample,
    Profile,
    SeriesEstimate,
    Sex,
    WorkoutEstimate,
)

logger = logging.getLogger(__name__)

KJ_PER_KCAL = 4.184

# Roughly resting expenditure; the regression goes negative at low HR
MIN_KCAL_PER_MINUTE = 1.0

# Gaps longer than this between samples are sensor dropout, not rest
DROPOUT_MINUTES = 10.0

MAX_HR_RESERVE_FRACTION = 1.2


@dataclass(frozen=True)
class KeytelCoefficients:
    """kJ/min = intercept + hr×HR + weight×W + age×A."""

    intercept: float
    hr: float
    weight: float
    age: float


KEYTEL = {
    Sex.MALE: KeytelCoefficients(-55.0969, 0.6309, 0.1988, 0.2017),
    Sex.FEMALE: KeytelCoefficients(-20.4022, 0.4472, -0.1263, 0.074),
}

# Banister TRIMP weighting (a, b)
TRIMP_WEIGHTS = {
    Sex.MALE: (0.64, 1.92),
    Sex.FEMALE: (0.86, 1.67),
}

Number = Union[float, np.ndarray]


def kcal_per_minute(sex: Sex | str, hr: Number, weight_kg: float, age: float) -> Number:
    """Energy expenditure rate for one heart rate (or an array of them)."""
    c = KEYTEL[Sex.parse(sex)]
    kj = c.intercept + c.hr * np.asarray(hr, dtype=float) + c.weight * weight_kg + c.age * age
    rate = np.maximum(kj / KJ_PER_KCAL, MIN_KCAL_PER_MINUTE)
    return float(rate) if rate.ndim == 0 else rate


def kcal_from_average(
    sex: Sex | str,
    avg_hr: float,
    minutes: float,
    weight_kg: Optional[float],
    age: float,
    cal_factor: float = 1.0,
) -> int:
    """Point estimate of workout kcal from an average heart rate.

    Missing or zero weight, heart rate or minutes gives 0.
    """
    avg_hr = safe_number(avg_hr)
    minutes = safe_number(minutes)
    weight = safe_number(weight_kg)
    if avg_hr <= 0 or minutes <= 0 or weight <= 0:
        return 0
    rate = kcal_per_minute(sex, avg_hr, weight, safe_number(age))
    return max(0, round_half_up(rate * minutes * (cal_factor or 1.0)))


def kcal_from_series(
    sex: Sex | str,
    series: Iterable[HeartRateSample],
    weight_kg: Optional[float],
    age: float,
    cal_factor: float = 1.0,
    dropout_minutes: float = DROPOUT_MINUTES,
) -> SeriesEstimate:
    """Integrate expenditure over a heart-rate series.

    Each interval between consecutive samples (after sorting by time) is
    charged at the rate of its earlier sample. Intervals that are not
    positive or longer than dropout_minutes are skipped entirely, both for
    kcal and for minutes. avg_hr is the mean of the heart rates of the
    intervals that were kept.

    Returns:
        SeriesEstimate, all zeros when fewer than two usable samples remain
    """
    zero = SeriesEstimate(kcal=0, minutes=0, avg_hr=0)
    weight = safe_number(weight_kg)
    if weight <= 0:
        return zero

    usable = [s for s in series if math.isfinite(safe_number(s.bpm, math.nan)) and s.bpm > 0]
    ordered = sorted(usable, key=lambda s: s.timestamp)
    if len(ordered) < 2:
        return zero

    elapsed = np.array(
        [(b.timestamp - a.timestamp).total_seconds() / 60 for a, b in zip(ordered, ordered[1:])]
    )
    hr = np.array([s.bpm for s in ordered[:-1]], dtype=float)
    accepted = (elapsed > 0) & (elapsed <= dropout_minutes)

    skipped = int((~accepted).sum())
    if skipped:
        logger.debug(
            "Skipped %d of %d intervals (non-positive or > %.0f min)",
            skipped, len(elapsed), dropout_minutes,
        )
    if not accepted.any():
        return zero

    rates = kcal_per_minute(sex, hr[accepted], weight, safe_number(age))
    kcal = float(np.sum(rates * elapsed[accepted])) * (cal_factor or 1.0)
    return SeriesEstimate(
        kcal=max(0, round_half_up(kcal)),
        minutes=round_half_up(float(elapsed[accepted].sum())),
        avg_hr=round_half_up(float(hr[accepted].mean())),
    )


def trimp(
    minutes: Optional[float],
    avg_hr: Optional[float],
    hr_rest: Optional[float],
    hr_max: Optional[float],
    sex: Sex | str,
) -> int:
    """Banister training impulse.

    Returns 0 when any input is missing/zero or hr_max <= hr_rest.
    """
    minutes = safe_number(minutes)
    avg_hr = safe_number(avg_hr)
    hr_rest = safe_number(hr_rest)
    hr_max = safe_number(hr_max)
    if minutes <= 0 or avg_hr <= 0 or hr_rest <= 0 or hr_max <= 0:
        return 0
    reserve = hr_max - hr_rest
    if reserve <= 0:
        return 0
    fraction = clamp((avg_hr - hr_rest) / reserve, 0.0, MAX_HR_RESERVE_FRACTION)
    a, b = TRIMP_WEIGHTS[Sex.parse(sex)]
    return round_half_up(minutes * fraction * a * math.exp(b * fraction))


# ----------------------------------------------------------------------------
# Profile-level entry points
# ----------------------------------------------------------------------------


def estimate_workout_from_average(profile: Profile, avg_hr: float, minutes: float) -> int:
    """Workout kcal for a profile from average heart rate and duration."""
    return kcal_from_average(
        profile.sex, avg_hr, minutes, profile.weight_kg, profile.age, profile.cal_factor
    )


def estimate_workout_from_series(
    profile: Profile,
    series: Iterable[HeartRateSample],
    dropout_minutes: float = DROPOUT_MINUTES,
) -> SeriesEstimate:
    """Workout kcal, minutes and average HR for a profile from a series."""
    return kcal_from_series(
        profile.sex,
        series,
        profile.weight_kg,
        profile.age,
        profile.cal_factor,
        dropout_minutes=dropout_minutes,
    )


def training_load(
    minutes: Optional[float],
    avg_hr: Optional[float],
    hr_rest: Optional[float],
    hr_max: Optional[float],
    sex: Sex | str,
) -> int:
    """Training load score (Banister TRIMP)."""
    return trimp(minutes, avg_hr, hr_rest, hr_max, sex)


def summarize_average_workout(profile: Profile, avg_hr: float, minutes: float) -> WorkoutEstimate:
    """kcal plus training load for a workout logged by average heart rate."""
    return WorkoutEstimate(
        kcal=estimate_workout_from_average(profile, avg_hr, minutes),
        minutes=safe_number(minutes),
        avg_hr=safe_number(avg_hr),
        training_load=trimp(minutes, avg_hr, profile.hr_rest, profile.effective_hr_max, profile.sex),
    )


def summarize_workout(
    profile: Profile,
    series: Iterable[HeartRateSample],
    dropout_minutes: float = DROPOUT_MINUTES,
) -> WorkoutEstimate:
    """kcal, minutes, average HR and training load for a recorded series."""
    est = estimate_workout_from_series(profile, series, dropout_minutes)
    return WorkoutEstimate(
        kcal=est.kcal,
        minutes=est.minutes,
        avg_hr=est.avg_hr,
        training_load=trimp(
            est.minutes, est.avg_hr, profile.hr_rest, profile.effective_hr_max, profile.sex
        ),
    )
