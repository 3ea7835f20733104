"""Data models for workout energy estimation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

MIN_CAL_FACTOR = 0.7
MAX_CAL_FACTOR = 1.3


class Sex(Enum):
    """Biological sex; the regression coefficients are sex-specific."""

    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: "Sex | str") -> "Sex":
        """Accept a Sex or its string value ('male' / 'female')."""
        if isinstance(value, Sex):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"sex must be 'male' or 'female', got '{value}'") from None


@dataclass(frozen=True)
class Profile:
    """Person attributes read by the energy estimators.

    weight_kg may be None while the profile is incomplete; the estimators
    then return zero. cal_factor linearly scales every kcal output.
    """

    age: float
    sex: Sex
    weight_kg: Optional[float] = None
    hr_rest: Optional[float] = None
    hr_max: Optional[float] = None
    cal_factor: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "sex", Sex.parse(self.sex))
        if self.age < 0:
            raise ValueError(f"age must be non-negative, got {self.age}")
        if self.weight_kg is not None and self.weight_kg < 0:
            raise ValueError(f"weight_kg must be non-negative, got {self.weight_kg}")
        if not MIN_CAL_FACTOR <= self.cal_factor <= MAX_CAL_FACTOR:
            raise ValueError(
                f"cal_factor must be within [{MIN_CAL_FACTOR}, {MAX_CAL_FACTOR}], "
                f"got {self.cal_factor}"
            )

    @property
    def effective_hr_max(self) -> float:
        """Configured max heart rate, or the 220 - age estimate."""
        return self.hr_max if self.hr_max else 220 - self.age


@dataclass(frozen=True)
class HeartRateSample:
    """A single heart-rate reading."""

    timestamp: datetime
    bpm: float


# A time-ordered sequence of samples; duplicates are kept.
HeartRateSeries = list[HeartRateSample]


@dataclass(frozen=True)
class SeriesEstimate:
    """Energy integrated over a heart-rate series."""

    kcal: int
    minutes: int
    avg_hr: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"kcal": self.kcal, "minutes": self.minutes, "avg_hr": self.avg_hr}


@dataclass(frozen=True)
class WorkoutEstimate:
    """Workout energy expenditure and training load."""

    kcal: int
    minutes: float
    avg_hr: float
    training_load: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kcal": self.kcal,
            "minutes": self.minutes,
            "avg_hr": self.avg_hr,
            "training_load": self.training_load,
        }
