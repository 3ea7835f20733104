"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from fuellog.tracking.models import Profile


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".fuellog"


def _default_config_path() -> Path:
    """Return the default config file path."""
    return _default_config_dir() / "config.yaml"


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class ProfileConfig:
    """Personal attributes used by the workout estimators."""

    age: float = 21
    sex: str = "male"
    weight_kg: Optional[float] = None
    hr_rest: Optional[float] = None
    hr_max: Optional[float] = None
    cal_factor: float = 1.0
    kcal_target: Optional[float] = None
    budget_mode: str = "mid"  # "mid" or "high"

    def to_profile(self) -> Profile:
        """Build a validated Profile.

        Raises:
            ValueError: If a value is out of range
        """
        return Profile(
            age=self.age,
            sex=self.sex,  # type: ignore[arg-type]
            weight_kg=self.weight_kg,
            hr_rest=self.hr_rest,
            hr_max=self.hr_max,
            cal_factor=self.cal_factor,
        )


@dataclass
class EstimationConfig:
    """Estimator tuning."""

    dropout_minutes: float = 10.0
    agreement_tolerance: float = 0.15
    food_table_path: Optional[Path] = None  # YAML with extra foods


@dataclass
class DefaultsConfig:
    """Default values for various operations."""

    output_format: str = "table"  # "table" or "json"


@dataclass
class Settings:
    """Main application settings."""

    profile: ProfileConfig = field(default_factory=ProfileConfig)
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.fuellog/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse profile
        if "profile" in data:
            p = data["profile"] or {}
            if "age" in p:
                settings.profile.age = float(p["age"])
            if "sex" in p:
                settings.profile.sex = str(p["sex"])
            for key in ("weight_kg", "hr_rest", "hr_max", "kcal_target"):
                if key in p:
                    setattr(settings.profile, key, _optional_float(p[key]))
            if "cal_factor" in p:
                settings.profile.cal_factor = float(p["cal_factor"])
            if "budget_mode" in p:
                settings.profile.budget_mode = str(p["budget_mode"])

        # Parse estimation config
        if "estimation" in data:
            est = data["estimation"] or {}
            if "dropout_minutes" in est:
                settings.estimation.dropout_minutes = float(est["dropout_minutes"])
            if "agreement_tolerance" in est:
                settings.estimation.agreement_tolerance = float(est["agreement_tolerance"])
            if est.get("food_table_path"):
                settings.estimation.food_table_path = Path(est["food_table_path"]).expanduser()

        # Parse defaults
        if "defaults" in data:
            def_data = data["defaults"] or {}
            if "output_format" in def_data:
                settings.defaults.output_format = def_data["output_format"]

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.fuellog/config.yaml
        """
        if config_path is None:
            config_path = _default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "profile": {
                "age": self.profile.age,
                "sex": self.profile.sex,
                "weight_kg": self.profile.weight_kg,
                "hr_rest": self.profile.hr_rest,
                "hr_max": self.profile.hr_max,
                "cal_factor": self.profile.cal_factor,
                "kcal_target": self.profile.kcal_target,
                "budget_mode": self.profile.budget_mode,
            },
            "estimation": {
                "dropout_minutes": self.estimation.dropout_minutes,
                "agreement_tolerance": self.estimation.agreement_tolerance,
                "food_table_path": (
                    str(self.estimation.food_table_path)
                    if self.estimation.food_table_path
                    else None
                ),
            },
            "defaults": {
                "output_format": self.defaults.output_format,
            },
        }

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
