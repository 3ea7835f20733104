"""Tests for heart-rate energy and training load."""

from __future__ import annotations

import math

import numpy as np
import pytest

from conftest import make_series
from fuellog.tracking.heart_rate import (
    MIN_KCAL_PER_MINUTE,
    estimate_workout_from_average,
    estimate_workout_from_series,
    kcal_from_average,
    kcal_from_series,
    kcal_per_minute,
    summarize_average_workout,
    summarize_workout,
    training_load,
    trimp,
)
from fuellog.tracking.models import Profile, Sex


def keytel_male(hr: float, weight: float, age: float) -> float:
    return (-55.0969 + 0.6309 * hr + 0.1988 * weight + 0.2017 * age) / 4.184


def keytel_female(hr: float, weight: float, age: float) -> float:
    return (-20.4022 + 0.4472 * hr - 0.1263 * weight + 0.074 * age) / 4.184


class TestKcalPerMinute:
    """Tests for the Keytel regression."""

    def test_male(self) -> None:
        assert kcal_per_minute("male", 150, 70, 30) == pytest.approx(keytel_male(150, 70, 30))

    def test_female(self) -> None:
        assert kcal_per_minute(Sex.FEMALE, 150, 58, 28) == pytest.approx(keytel_female(150, 58, 28))

    def test_floor_at_low_heart_rate(self) -> None:
        """The regression goes negative at low HR; the rate is floored."""
        assert keytel_male(40, 50, 20) < 0
        assert kcal_per_minute("male", 40, 50, 20) == MIN_KCAL_PER_MINUTE

    def test_vectorized(self) -> None:
        rates = kcal_per_minute("male", np.array([100.0, 150.0]), 70, 30)
        assert rates.shape == (2,)
        assert rates[1] > rates[0]

    def test_unknown_sex(self) -> None:
        with pytest.raises(ValueError, match="sex must be"):
            kcal_per_minute("other", 120, 70, 30)


class TestKcalFromAverage:
    """Tests for average-heart-rate estimates."""

    def test_thirty_minutes(self) -> None:
        expected = keytel_male(150, 70, 30) * 30
        assert kcal_from_average("male", 150, 30, 70, 30) == round(expected)

    def test_cal_factor_scales(self) -> None:
        base = kcal_from_average("male", 150, 30, 70, 30)
        scaled = kcal_from_average("male", 150, 30, 70, 30, cal_factor=1.2)
        assert scaled == pytest.approx(base * 1.2, abs=1)

    @pytest.mark.parametrize(
        "hr,minutes,weight", [(0, 30, 70), (150, 0, 70), (150, 30, None), (150, 30, 0)]
    )
    def test_missing_inputs_give_zero(self, hr, minutes, weight) -> None:
        assert kcal_from_average("male", hr, minutes, weight, 30) == 0

    def test_profile_entry_point(self, male_profile: Profile) -> None:
        assert estimate_workout_from_average(male_profile, 150, 30) == kcal_from_average(
            "male", 150, 30, 70, 30
        )


class TestKcalFromSeries:
    """Tests for series integration."""

    def test_steady_series(self, steady_series) -> None:
        est = kcal_from_series("male", steady_series, 70, 30)
        assert est.minutes == 4
        assert est.avg_hr == 120
        assert est.kcal == round(keytel_male(120, 70, 30) * 4)

    def test_dropout_gap_excluded(self) -> None:
        """A 20-minute gap counts neither kcal nor minutes."""
        series = make_series([(0, 120), (1, 120), (2, 120), (22, 120), (23, 120)])
        est = kcal_from_series("male", series, 70, 30)
        assert est.minutes == 3
        assert est.minutes < 23
        assert est.kcal == round(keytel_male(120, 70, 30) * 3)

    def test_gap_at_threshold_kept(self) -> None:
        series = make_series([(0, 120), (10, 120)])
        assert kcal_from_series("male", series, 70, 30).minutes == 10

    def test_custom_dropout(self) -> None:
        series = make_series([(0, 120), (10, 120)])
        assert kcal_from_series("male", series, 70, 30, dropout_minutes=5).minutes == 0

    def test_unsorted_input(self) -> None:
        """Samples are sorted by time before integrating."""
        ordered = make_series([(0, 100), (1, 140), (2, 120)])
        shuffled = [ordered[2], ordered[0], ordered[1]]
        assert kcal_from_series("male", shuffled, 70, 30) == kcal_from_series(
            "male", ordered, 70, 30
        )

    def test_rate_from_earlier_sample(self) -> None:
        """Each interval is charged at its first sample's heart rate."""
        series = make_series([(0, 100), (1, 160)])
        est = kcal_from_series("male", series, 70, 30)
        assert est.kcal == round(keytel_male(100, 70, 30))
        assert est.avg_hr == 100

    def test_duplicate_timestamps_skipped(self) -> None:
        series = make_series([(0, 120), (0, 130), (1, 120)])
        est = kcal_from_series("male", series, 70, 30)
        assert est.minutes == 1

    def test_too_few_samples(self) -> None:
        est = kcal_from_series("male", make_series([(0, 120)]), 70, 30)
        assert (est.kcal, est.minutes, est.avg_hr) == (0, 0, 0)

    def test_invalid_bpm_ignored(self) -> None:
        series = make_series([(0, 120), (1, math.nan), (2, 0), (3, 120)])
        est = kcal_from_series("male", series, 70, 30)
        # 0 -> 3 is a single 3-minute interval at 120 bpm
        assert est.minutes == 3

    def test_no_weight(self, steady_series) -> None:
        assert kcal_from_series("male", steady_series, None, 30).kcal == 0

    def test_profile_entry_point(self, male_profile: Profile, steady_series) -> None:
        est = estimate_workout_from_series(male_profile, steady_series)
        assert est == kcal_from_series("male", steady_series, 70, 30)


class TestTrimp:
    """Tests for Banister TRIMP."""

    def test_male(self) -> None:
        fraction = (150 - 60) / (190 - 60)
        expected = 30 * fraction * 0.64 * math.exp(1.92 * fraction)
        assert trimp(30, 150, 60, 190, "male") == round(expected)

    def test_female_weights(self) -> None:
        fraction = (150 - 60) / (190 - 60)
        expected = 30 * fraction * 0.86 * math.exp(1.67 * fraction)
        assert trimp(30, 150, 60, 190, "female") == round(expected)

    def test_reserve_fraction_capped(self) -> None:
        """HR far above max is treated as 1.2 of the reserve."""
        expected = 10 * 1.2 * 0.64 * math.exp(1.92 * 1.2)
        assert trimp(10, 400, 60, 190, "male") == round(expected)

    def test_below_rest_is_zero(self) -> None:
        assert trimp(30, 50, 60, 190, "male") == 0

    @pytest.mark.parametrize(
        "minutes,hr,rest,hr_max",
        [(0, 150, 60, 190), (30, None, 60, 190), (30, 150, None, 190), (30, 150, 60, 60)],
    )
    def test_invalid_inputs(self, minutes, hr, rest, hr_max) -> None:
        assert trimp(minutes, hr, rest, hr_max, "male") == 0

    def test_training_load_alias(self) -> None:
        assert training_load(30, 150, 60, 190, "male") == trimp(30, 150, 60, 190, "male")


class TestWorkoutSummaries:
    """Tests for the combined kcal + load summaries."""

    def test_average_workout(self, male_profile: Profile) -> None:
        est = summarize_average_workout(male_profile, 150, 30)
        assert est.kcal == estimate_workout_from_average(male_profile, 150, 30)
        assert est.training_load == trimp(30, 150, 60, 190, "male")

    def test_hr_max_defaults_from_age(self) -> None:
        """Without hr_max the load uses 220 - age."""
        profile = Profile(age=30, sex="male", weight_kg=70, hr_rest=60)
        est = summarize_average_workout(profile, 150, 30)
        assert est.training_load == trimp(30, 150, 60, 190, "male")

    def test_no_resting_hr_no_load(self) -> None:
        profile = Profile(age=30, sex="male", weight_kg=70)
        assert summarize_average_workout(profile, 150, 30).training_load == 0

    def test_series_workout(self, female_profile: Profile, steady_series) -> None:
        est = summarize_workout(female_profile, steady_series)
        assert est.minutes == 4
        assert est.avg_hr == 120
        assert est.training_load == trimp(4, 120, 62, 192, "female")
        assert est.to_dict()["kcal"] == est.kcal
