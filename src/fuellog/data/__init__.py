"""Reference food data and text lexicon."""

from fuellog.data.foods import (
    DEFAULT_FOODS,
    FoodEntry,
    FoodTable,
    FoodTableError,
    default_food_table,
    load_food_table,
)

__all__ = [
    "DEFAULT_FOODS",
    "FoodEntry",
    "FoodTable",
    "FoodTableError",
    "default_food_table",
    "load_food_table",
]
