"""Pytest fixtures for fuellog tests."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path

import pytest

import fuellog.config.settings as settings_module
from fuellog.tracking.models import HeartRateSample, Profile


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging so caplog sees package records."""
    yield
    logger = logging.getLogger("fuellog")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings between tests."""
    yield
    settings_module._settings = None


@pytest.fixture
def male_profile() -> Profile:
    """A complete 30-year-old, 70 kg male profile."""
    return Profile(age=30, sex="male", weight_kg=70, hr_rest=60, hr_max=190)


@pytest.fixture
def female_profile() -> Profile:
    """A complete 28-year-old, 58 kg female profile."""
    return Profile(age=28, sex="female", weight_kg=58, hr_rest=62, hr_max=192)


def make_series(minutes_and_bpm: list[tuple[float, float]]) -> list[HeartRateSample]:
    """Samples at the given minute offsets from a fixed start."""
    start = datetime(2024, 3, 1, 7, 0, 0)
    return [
        HeartRateSample(timestamp=start + timedelta(minutes=m), bpm=bpm)
        for m, bpm in minutes_and_bpm
    ]


@pytest.fixture
def steady_series() -> list[HeartRateSample]:
    """Five samples one minute apart at 120 bpm."""
    return make_series([(0, 120), (1, 120), (2, 120), (3, 120), (4, 120)])


@pytest.fixture
def hr_csv_text() -> str:
    """A small heart-rate export with one unusable row."""
    return (
        "时间,心率,步数\n"
        "2024-03-01 07:00:00,110,0\n"
        "2024-03-01 07:01:00,125,80\n"
        "2024-03-01 07:02:00,,95\n"
        "2024-03-01 07:03:00,140,102\n"
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config file with a complete profile."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "profile:\n"
        "  age: 30\n"
        "  sex: male\n"
        "  weight_kg: 70\n"
        "  hr_rest: 60\n"
        "  hr_max: 190\n"
        "  kcal_target: 2000\n"
        "estimation:\n"
        "  dropout_minutes: 10\n",
        encoding="utf-8",
    )
    return path
