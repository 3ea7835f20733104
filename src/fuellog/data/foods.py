"""Reference food table for free-text calorie estimation.

Each entry carries exactly one caloric-density basis (per 100 g, per
100 ml or per unit) plus a default portion. Densities are rough typical
values for the cooked food, not a verified nutrition database.

The table is built once and never mutated. Malformed entries raise
FoodTableError when the table is constructed, not when it is used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import yaml

from fuellog.data.lexicon import UNIT_AMOUNTS, UNIT_WORDS

logger = logging.getLogger(__name__)


class FoodTableError(ValueError):
    """Raised when reference food data is malformed."""


@dataclass(frozen=True)
class FoodEntry:
    """A food known to the estimator.

    Exactly one of kcal_per_100g, kcal_per_100ml or kcal_each must be set.
    """

    name: str
    aliases: tuple[str, ...]
    kcal_per_100g: Optional[float] = None
    kcal_per_100ml: Optional[float] = None
    kcal_each: Optional[float] = None
    default_grams: Optional[float] = None
    default_ml: Optional[float] = None
    default_count: float = 1
    unit: str = "份"
    grams_each: float = 50.0  # used when an each-based food is given in grams
    condiment: bool = False  # oils and sauces, most often underestimated

    def __post_init__(self) -> None:
        if not self.name:
            raise FoodTableError("food entry must have a name")
        aliases = tuple(a.strip().lower() for a in self.aliases if a and a.strip())
        if not aliases:
            raise FoodTableError(f"food '{self.name}' has no aliases")
        object.__setattr__(self, "aliases", aliases)

        bases = [
            b for b in (self.kcal_per_100g, self.kcal_per_100ml, self.kcal_each)
            if b is not None
        ]
        if len(bases) != 1:
            raise FoodTableError(
                f"food '{self.name}' must set exactly one of kcal_per_100g, "
                f"kcal_per_100ml, kcal_each (got {len(bases)})"
            )
        if bases[0] <= 0:
            raise FoodTableError(f"food '{self.name}' has non-positive density {bases[0]}")

        if self.kcal_per_100g is not None and not (self.default_grams or 0) > 0:
            raise FoodTableError(f"food '{self.name}' needs default_grams")
        if self.kcal_per_100ml is not None and not (self.default_ml or 0) > 0:
            raise FoodTableError(f"food '{self.name}' needs default_ml")
        if self.kcal_each is not None and not self.default_count > 0:
            raise FoodTableError(f"food '{self.name}' needs a positive default_count")

    @property
    def basis(self) -> str:
        """Return 'g', 'ml' or 'each'."""
        if self.kcal_per_100g is not None:
            return "g"
        if self.kcal_per_100ml is not None:
            return "ml"
        return "each"

    @property
    def default_amount(self) -> float:
        """Default portion in the entry's own basis (grams, ml or count)."""
        if self.basis == "g":
            return float(self.default_grams)  # type: ignore[arg-type]
        if self.basis == "ml":
            return float(self.default_ml)  # type: ignore[arg-type]
        return float(self.default_count)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FoodEntry":
        """Build an entry from a YAML/JSON mapping."""
        if "name" not in data:
            raise FoodTableError(f"food entry without name: {dict(data)}")
        aliases = data.get("aliases") or [data["name"]]
        if isinstance(aliases, str):
            aliases = [aliases]
        try:
            return cls(
                name=str(data["name"]),
                aliases=tuple(str(a) for a in aliases),
                kcal_per_100g=_optional_float(data.get("kcal_per_100g")),
                kcal_per_100ml=_optional_float(data.get("kcal_per_100ml")),
                kcal_each=_optional_float(data.get("kcal_each")),
                default_grams=_optional_float(data.get("default_grams")),
                default_ml=_optional_float(data.get("default_ml")),
                default_count=float(data.get("default_count", 1)),
                unit=str(data.get("unit", "份")),
                grams_each=float(data.get("grams_each", 50.0)),
                condiment=bool(data.get("condiment", False)),
            )
        except FoodTableError:
            raise
        except (TypeError, ValueError) as exc:
            raise FoodTableError(f"invalid food entry '{data['name']}': {exc}") from exc


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


DEFAULT_FOODS: tuple[FoodEntry, ...] = (
    FoodEntry("米饭", ("米饭", "白米饭", "rice", "white rice"),
              kcal_per_100g=130, default_grams=180, unit="碗"),
    FoodEntry("面条", ("面条", "面", "拉面", "乌冬", "米粉", "河粉", "noodles", "ramen", "udon"),
              kcal_per_100g=140, default_grams=260, unit="碗"),
    FoodEntry("鸡胸", ("鸡胸", "鸡胸肉", "chicken breast"),
              kcal_per_100g=165, default_grams=150, unit="份"),
    FoodEntry("鸡肉", ("鸡肉", "白斩鸡", "烤鸡", "炸鸡", "chicken", "roast chicken", "fried chicken"),
              kcal_per_100g=210, default_grams=150, unit="份"),
    FoodEntry("牛肉", ("牛肉", "beef", "steak"),
              kcal_per_100g=250, default_grams=150, unit="份"),
    FoodEntry("猪肉", ("猪肉", "五花肉", "pork", "pork belly"),
              kcal_per_100g=290, default_grams=120, unit="份"),
    FoodEntry("鱼", ("鱼", "三文鱼", "金枪鱼", "fish", "salmon", "tuna"),
              kcal_per_100g=200, default_grams=160, unit="份"),
    FoodEntry("鸡蛋", ("鸡蛋", "鸡蛋羹", "荷包蛋", "煎蛋", "水煮蛋", "egg"),
              kcal_each=70, default_count=1, unit="个"),
    FoodEntry("牛奶", ("牛奶", "纯奶", "milk"),
              kcal_per_100ml=60, default_ml=250, unit="杯"),
    FoodEntry("酸奶", ("酸奶", "优格", "yogurt", "yoghurt"),
              kcal_per_100g=90, default_grams=150, unit="杯"),
    FoodEntry("面包", ("面包", "吐司", "bread", "toast"),
              kcal_each=80, default_count=1, unit="片", grams_each=30),
    FoodEntry("香蕉", ("香蕉", "banana"),
              kcal_each=105, default_count=1, unit="根", grams_each=118),
    FoodEntry("苹果", ("苹果", "apple"),
              kcal_each=95, default_count=1, unit="个", grams_each=180),
    FoodEntry("饺子", ("饺子", "dumpling"),
              kcal_each=40, default_count=10, unit="个", grams_each=20),
    FoodEntry("方便面", ("方便面", "泡面", "instant noodles"),
              kcal_each=450, default_count=1, unit="包", grams_each=100),
    FoodEntry("薯条", ("薯条", "fries", "french fries"),
              kcal_per_100g=310, default_grams=120, unit="份"),
    FoodEntry("青菜", ("青菜", "蔬菜", "西兰花", "生菜", "白菜",
                       "vegetables", "greens", "broccoli", "lettuce", "cabbage"),
              kcal_per_100g=25, default_grams=200, unit="份"),
    FoodEntry("食用油", ("食用油", "用油", "橄榄油", "花生油", "olive oil", "cooking oil", "oil"),
              kcal_per_100g=884, default_grams=10, unit="勺", condiment=True),
    FoodEntry("酱料", ("酱料", "沙拉酱", "蘸酱", "sauce", "dressing", "mayo"),
              kcal_per_100g=250, default_grams=20, unit="勺", condiment=True),
)


@dataclass(frozen=True)
class FoodTable:
    """Immutable collection of food entries plus the unit size lookup."""

    foods: tuple[FoodEntry, ...]
    unit_amounts: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(UNIT_AMOUNTS))
    )

    def __post_init__(self) -> None:
        names = [f.name for f in self.foods]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise FoodTableError(f"duplicate food names: {duplicates}")
        for unit, amount in self.unit_amounts.items():
            if not amount > 0:
                raise FoodTableError(f"unit '{unit}' must have a positive size, got {amount}")
        object.__setattr__(self, "foods", tuple(self.foods))
        object.__setattr__(self, "unit_amounts", MappingProxyType(dict(self.unit_amounts)))

    def __iter__(self):
        return iter(self.foods)

    def __len__(self) -> int:
        return len(self.foods)

    def get(self, name: str) -> Optional[FoodEntry]:
        """Look up an entry by canonical name."""
        for food in self.foods:
            if food.name == name:
                return food
        return None

    def unit_amount(self, unit: str) -> Optional[float]:
        """Grams/ml per unit, or None when the unit has no standard size."""
        return self.unit_amounts.get(UNIT_WORDS.get(unit, unit))

    def extended(
        self,
        foods: Iterable[FoodEntry],
        unit_amounts: Optional[Mapping[str, float]] = None,
        replace: bool = False,
    ) -> "FoodTable":
        """Return a new table with extra entries.

        Entries whose name already exists replace the old entry in place.

        Args:
            foods: Entries to add
            unit_amounts: Extra or overriding unit sizes
            replace: Start from an empty table instead of this one
        """
        base = [] if replace else list(self.foods)
        index = {f.name: i for i, f in enumerate(base)}
        for food in foods:
            if food.name in index:
                base[index[food.name]] = food
            else:
                index[food.name] = len(base)
                base.append(food)
        units = dict(self.unit_amounts)
        units.update(unit_amounts or {})
        return FoodTable(foods=tuple(base), unit_amounts=units)

    @classmethod
    def from_yaml(cls, path: Path, base: Optional["FoodTable"] = None) -> "FoodTable":
        """Load foods from a YAML file on top of a base table.

        YAML format:
            replace_defaults: false
            foods:
              - name: oatmeal
                aliases: [oatmeal, 燕麦]
                kcal_per_100g: 70
                default_grams: 250
                unit: bowl
            units:
              handful: 30

        Raises:
            FoodTableError: If the file or any entry is malformed
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise FoodTableError(f"{path}: expected a mapping at top level")

        entries = data.get("foods") or []
        if not isinstance(entries, list):
            raise FoodTableError(f"{path}: 'foods' must be a list")
        units = data.get("units") or {}
        if not isinstance(units, dict):
            raise FoodTableError(f"{path}: 'units' must be a mapping")

        foods = [FoodEntry.from_dict(e) for e in entries]
        table = (base or default_food_table()).extended(
            foods,
            unit_amounts={str(k): float(v) for k, v in units.items()},
            replace=bool(data.get("replace_defaults", False)),
        )
        logger.debug("Loaded %d foods from %s (table size %d)", len(foods), path, len(table))
        return table


@lru_cache(maxsize=1)
def default_food_table() -> FoodTable:
    """Return the built-in table (constructed once per process)."""
    table = FoodTable(foods=DEFAULT_FOODS)
    logger.debug("Built default food table with %d entries", len(table))
    return table


def load_food_table(path: Optional[Path] = None) -> FoodTable:
    """Return the default table, extended from a YAML file when given."""
    if path is None:
        return default_food_table()
    return FoodTable.from_yaml(Path(path).expanduser())
