"""Daily intake vs. expenditure summary."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from fuellog.estimate.ranges import CalorieRange, round_half_up, safe_number

VALID_BUDGET_MODES = ("mid", "high")


@dataclass(frozen=True)
class DaySummary:
    """Totals for one day.

    remaining is None when no target is set. In "high" budget mode the
    upper end of the intake range is charged against the target, which
    guards against underestimated meals.
    """

    intake_low: int
    intake_mid: int
    intake_high: int
    burned: int
    net: int  # intake_mid - burned
    target: Optional[int]
    remaining: Optional[int]
    budget_mode: str
    meal_count: int
    workout_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "intake": {"low": self.intake_low, "mid": self.intake_mid, "high": self.intake_high},
            "burned": self.burned,
            "net": self.net,
            "target": self.target,
            "remaining": self.remaining,
            "budget_mode": self.budget_mode,
            "meal_count": self.meal_count,
            "workout_count": self.workout_count,
        }


def summarize_day(
    meals: Iterable[CalorieRange],
    workouts_kcal: Iterable[float],
    kcal_target: Optional[float] = None,
    budget_mode: str = "mid",
) -> DaySummary:
    """Sum a day's meal ranges and workout kcal.

    Args:
        meals: Range per logged meal (see fuellog.estimate.ranges.meal_range)
        workouts_kcal: Estimated kcal per workout
        kcal_target: Daily intake target; None or 0 means no target
        budget_mode: "mid" or "high", which intake figure counts against the target

    Raises:
        ValueError: If budget_mode is unknown
    """
    if budget_mode not in VALID_BUDGET_MODES:
        raise ValueError(f"budget_mode must be one of {VALID_BUDGET_MODES}, got '{budget_mode}'")

    meal_list = list(meals)
    burned_list = [max(0.0, safe_number(k)) for k in workouts_kcal]

    low = sum(m.low for m in meal_list)
    mid = sum(m.mid for m in meal_list)
    high = sum(m.high for m in meal_list)
    burned = round_half_up(sum(burned_list))

    target = safe_number(kcal_target)
    remaining = None
    if target > 0:
        basis = high if budget_mode == "high" else mid
        remaining = round_half_up(target - basis)

    return DaySummary(
        intake_low=low,
        intake_mid=mid,
        intake_high=high,
        burned=burned,
        net=mid - burned,
        target=round_half_up(target) if target > 0 else None,
        remaining=remaining,
        budget_mode=budget_mode,
        meal_count=len(meal_list),
        workout_count=len(burned_list),
    )


def summarize_days(
    meals: Iterable[tuple[date, CalorieRange]],
    workouts: Iterable[tuple[date, float]],
    end: date,
    days: int = 7,
) -> list[tuple[date, DaySummary]]:
    """Per-day totals for the `days` days ending on `end`, oldest first.

    Entries outside the window are ignored. Days without entries are
    still listed, with zero totals.
    """
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")

    meals_by_day: dict[date, list[CalorieRange]] = defaultdict(list)
    for day, r in meals:
        meals_by_day[day].append(r)
    workouts_by_day: dict[date, list[float]] = defaultdict(list)
    for day, kcal in workouts:
        workouts_by_day[day].append(kcal)

    window = [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [(day, summarize_day(meals_by_day[day], workouts_by_day[day])) for day in window]
