"""Word lists used when reading free-text meal descriptions.

Chinese and English forms live side by side. All keywords are matched
against lower-cased text.
"""

from __future__ import annotations

from dataclasses import dataclass


# Number words accepted in "count + unit" phrases. "半"/"half" is 0.5.
NUMBER_WORDS: dict[str, float] = {
    "半": 0.5, "一": 1, "二": 2, "两": 2, "三": 3, "四": 4, "五": 5,
    "六": 6, "七": 7, "八": 8, "九": 9, "十": 10,
    "half": 0.5, "half a": 0.5, "half an": 0.5, "a": 1, "an": 1, "one": 1,
    "two": 2, "three": 3, "four": 4, "five": 5, "six": 6, "seven": 7,
    "eight": 8, "nine": 9, "ten": 10,
}

# Unit words mapped to a canonical unit label.
UNIT_WORDS: dict[str, str] = {
    "碗": "碗", "个": "个", "颗": "颗", "片": "片", "杯": "杯", "包": "包",
    "盒": "盒", "盘": "盘", "勺": "勺", "根": "根", "份": "份", "块": "块",
    "只": "只",
    "bowl": "bowl", "bowls": "bowl",
    "cup": "cup", "cups": "cup",
    "glass": "glass", "glasses": "glass",
    "plate": "plate", "plates": "plate",
    "piece": "piece", "pieces": "piece",
    "slice": "slice", "slices": "slice",
    "serving": "serving", "servings": "serving",
    "portion": "portion", "portions": "portion",
    "pack": "pack", "packs": "pack",
    "box": "box", "boxes": "box",
    "spoon": "spoon", "spoons": "spoon",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsp": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsp": "tsp",
}

# Units whose real volume varies a lot between households
VOLUMETRIC_UNITS = frozenset({"碗", "盘", "杯", "bowl", "plate", "cup", "glass"})

# Grams (or ml) per unit, for units with a reasonably standard size.
# Units not listed fall back to the food's own default portion.
UNIT_AMOUNTS: dict[str, float] = {
    "勺": 10, "spoon": 10, "tbsp": 10,
    "tsp": 5,
    "片": 30, "slice": 30,
}

# Tokens that mean "kilocalories" right after a number.
KCAL_TOKENS = ("kcal", "kilocalories", "kilocalorie", "calories", "calorie", "cal", "千卡", "大卡", "卡")
GRAM_TOKENS = ("grams", "gram", "g", "克")
ML_TOKENS = ("milliliters", "millilitres", "milliliter", "millilitre", "ml", "毫升")


@dataclass(frozen=True)
class TextMultiplier:
    """A keyword group that scales an estimate when present in the text."""

    name: str
    factor: float
    keywords: tuple[str, ...]


# Cooking methods scale the calorie midpoint; several compose multiplicatively.
COOKING_METHODS: tuple[TextMultiplier, ...] = (
    TextMultiplier("fried", 1.25, ("油炸", "炸", "deep-fried", "deep fried", "fried")),
    TextMultiplier("pan-fried", 1.15, ("煎", "pan-fried", "pan fried", "pan-seared")),
    TextMultiplier("stir-fried", 1.12, ("炒", "stir-fried", "stir fried", "stir-fry")),
    TextMultiplier(
        "braised",
        1.10,
        ("红烧", "酱", "糖醋", "braised", "sweet and sour", "teriyaki"),
    ),
    TextMultiplier("creamy", 1.12, ("奶油", "芝士", "起司", "cream", "cheese")),
)

# Portion qualifiers scale default portions only.
PORTION_QUALIFIERS: tuple[TextMultiplier, ...] = (
    TextMultiplier("large", 1.20, ("大", "large", "big")),
    TextMultiplier("small", 0.85, ("小", "small")),
    TextMultiplier("half", 0.60, ("半", "half")),
)
