"""Free-text meal description to calorie range.

Pipeline:
    1. A number followed by a calorie token ("200kcal", "350 卡") is taken
       as the answer with a ±5% range.
    2. Foods from the reference table are matched by alias.
    3. For each match a quantity is read from the text next to the alias
       (explicit kcal > grams > ml > count + unit) or the default portion
       is used.
    4. The quantity is converted to kcal, cooking-method multipliers are
       applied and a per-food range is built with an uncertainty that
       reflects how specific the quantity was.
    5. Per-food ranges are summed.

Without any match, a bare number in the text is used as a rough guess.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from fuellog.data.foods import FoodEntry, FoodTable, default_food_table
from fuellog.data.lexicon import (
    COOKING_METHODS,
    GRAM_TOKENS,
    KCAL_TOKENS,
    ML_TOKENS,
    NUMBER_WORDS,
    PORTION_QUALIFIERS,
    UNIT_WORDS,
    VOLUMETRIC_UNITS,
    TextMultiplier,
)
from fuellog.estimate.ranges import CalorieRange, bounded_range, sum_ranges

logger = logging.getLogger(__name__)

# Characters searched on each side of a matched alias
QUANTITY_WINDOW = 16

DIRECT_KCAL_UNCERTAINTY = 0.05
DIRECT_KCAL_SUGGESTED = 0.10
MEASURED_UNCERTAINTY = 0.08
APPROXIMATE_CONVERSION_UNCERTAINTY = 0.12
COUNT_EACH_UNCERTAINTY = 0.12
COUNT_UNIT_UNCERTAINTY = 0.18
COUNT_VOLUMETRIC_UNCERTAINTY = 0.22
GRAMS_FOR_EACH_UNCERTAINTY = 0.20
DEFAULT_EACH_UNCERTAINTY = 0.20
DEFAULT_VOLUME_UNCERTAINTY = 0.22
DEFAULT_WEIGHT_UNCERTAINTY = 0.28
NUMBER_GUESS_UNCERTAINTY = 0.35
AGGREGATE_MIN_UNCERTAINTY = 0.10
AGGREGATE_MAX_UNCERTAINTY = 0.45


# ----------------------------------------------------------------------------
# Quantity variants
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class ExplicitKcal:
    """The text states the calories for this food."""

    kcal: float


@dataclass(frozen=True)
class ExplicitGrams:
    """The text states a weight in grams."""

    grams: float


@dataclass(frozen=True)
class ExplicitVolume:
    """The text states a volume in milliliters."""

    ml: float


@dataclass(frozen=True)
class CountWithUnit:
    """A count paired with a unit word, e.g. "2碗" or "two slices"."""

    count: float
    unit: str


@dataclass(frozen=True)
class DefaultPortion:
    """Nothing usable near the alias; fall back to the food's default portion."""


Quantity = Union[ExplicitKcal, ExplicitGrams, ExplicitVolume, CountWithUnit, DefaultPortion]


@dataclass(frozen=True)
class FoodMatch:
    """One recognised food with its quantity and calorie range."""

    food: FoodEntry
    alias: str
    quantity: Quantity
    detail: str
    range: CalorieRange

    @property
    def measured(self) -> bool:
        """True when the quantity came from an explicit weight, volume or kcal."""
        return isinstance(self.quantity, (ExplicitKcal, ExplicitGrams, ExplicitVolume))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "food": self.food.name,
            "alias": self.alias,
            "quantity": type(self.quantity).__name__,
            "detail": self.detail,
            **self.range.to_dict(),
        }


@dataclass
class FoodTextEstimate:
    """Result of estimate_food_text.

    ok is False for empty text or when neither a food nor a number was
    found; that is a normal outcome, not an error.
    """

    ok: bool
    range: Optional[CalorieRange] = None
    explanation: str = ""
    followups: str = ""
    suggested_uncertainty: Optional[float] = None
    matches: list[FoodMatch] = field(default_factory=list)
    followup_foods: list[str] = field(default_factory=list)
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "ok": self.ok,
            "range": self.range.to_dict() if self.range else None,
            "suggested_uncertainty": self.suggested_uncertainty,
            "explanation": self.explanation,
            "followups": self.followups,
            "followup_foods": self.followup_foods,
            "matches": [m.to_dict() for m in self.matches],
            "reason": self.reason,
        }


# ----------------------------------------------------------------------------
# Patterns
# ----------------------------------------------------------------------------


def _alternation(words) -> str:
    """Regex alternation with longer words first."""
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


_NUMBER = r"[0-9]+(?:\.[0-9]+)?"
_NUMBER_WORD = (
    rf"(?:{_NUMBER}|(?<![a-z])(?:{_alternation(w for w in NUMBER_WORDS if w.isascii())})(?![a-z])"
    rf"|{_alternation(w for w in NUMBER_WORDS if not w.isascii())})"
)
_UNIT = rf"(?:(?<![a-z])(?:{_alternation(w for w in UNIT_WORDS if w.isascii())})(?![a-z])" \
        rf"|{_alternation(w for w in UNIT_WORDS if not w.isascii())})"
# "卡布奇诺" is a cappuccino, not a calorie count
_KCAL = rf"(?:{_alternation(KCAL_TOKENS)})(?![a-z布])"
_GRAMS = rf"(?:{_alternation(GRAM_TOKENS)})(?![a-z])"
_ML = rf"(?:{_alternation(ML_TOKENS)})(?![a-z])"

_DIRECT_KCAL_RE = re.compile(rf"(?<![0-9.])({_NUMBER})\s*{_KCAL}")
_ANY_NUMBER_RE = re.compile(_NUMBER)

# Joiners allowed between a quantity and the alias it describes
_BEFORE_GAP = r"\s*(?:of\s+|的\s*)?"
_AFTER_GAP = r"\s*[:：=]?\s*"


def _after(unit_pattern: str) -> re.Pattern:
    """Quantity immediately following an alias, e.g. "米饭150g"."""
    return re.compile(rf"^{_AFTER_GAP}({_NUMBER})\s*{unit_pattern}")


def _before(unit_pattern: str) -> re.Pattern:
    """Quantity immediately preceding an alias, e.g. "150g米饭"."""
    return re.compile(rf"(?<![0-9.])({_NUMBER})\s*{unit_pattern}{_BEFORE_GAP}$")


_MEASURE_PATTERNS: tuple[tuple[str, re.Pattern, re.Pattern], ...] = (
    ("kcal", _after(_KCAL), _before(_KCAL)),
    ("g", _after(_GRAMS), _before(_GRAMS)),
    ("ml", _after(_ML), _before(_ML)),
)
_COUNT_BEFORE_RE = re.compile(rf"({_NUMBER_WORD})\s*({_UNIT})?{_BEFORE_GAP}$")
_COUNT_AFTER_RE = re.compile(rf"^{_AFTER_GAP}({_NUMBER_WORD})\s*({_UNIT})")
_COUNT_UNIT_RE = re.compile(rf"({_NUMBER_WORD})\s*({_UNIT})")


# ----------------------------------------------------------------------------
# Text scanning
# ----------------------------------------------------------------------------


def _term_pattern(term: str) -> re.Pattern:
    """Pattern for a keyword or alias.

    ASCII words must stand alone (so "oil" does not match "boiled") and
    may carry a plural suffix. Other scripts match as plain substrings.
    """
    escaped = re.escape(term)
    if term.isascii() and term[:1].isalpha():
        return re.compile(rf"(?<![a-z]){escaped}(?:s|es)?(?![a-z])")
    return re.compile(escaped)


def find_terms(text: str, terms: dict[str, object]) -> list[tuple[int, int, str, object]]:
    """Find non-overlapping occurrences of terms, longest first.

    A shorter term inside a span already claimed by a longer term is
    ignored, so "面包" does not also count as "面" and "pan-fried" does
    not also count as "fried".

    Args:
        text: Lower-cased text
        terms: Mapping of term -> owner

    Returns:
        List of (start, end, term, owner) sorted by position
    """
    claimed: list[tuple[int, int, str, object]] = []
    for term in sorted(terms, key=len, reverse=True):
        for m in _term_pattern(term).finditer(text):
            start, end = m.span()
            if any(start < c_end and c_start < end for c_start, c_end, _, _ in claimed):
                continue
            claimed.append((start, end, term, terms[term]))
    return sorted(claimed, key=lambda c: c[0])


def _multiplier(
    text: str,
    groups: tuple[TextMultiplier, ...],
    skip: Optional[list[tuple[int, int]]] = None,
) -> tuple[float, list[str]]:
    """Compose the factors of every keyword group present in text."""
    terms: dict[str, object] = {}
    for group in groups:
        for kw in group.keywords:
            terms.setdefault(kw, group)
    found = [
        owner for start, end, _, owner in find_terms(text, terms)
        if not any(s <= start and end <= e for s, e in skip or [])
    ]
    factor = 1.0
    names: list[str] = []
    for group in groups:
        if group in found:
            factor *= group.factor
            names.append(group.name)
    return factor, names


def cooking_multiplier(text: str) -> tuple[float, list[str]]:
    """Multiplier for cooking methods mentioned in text (e.g. fried ×1.25)."""
    return _multiplier(text.lower(), COOKING_METHODS)


def portion_multiplier(text: str) -> tuple[float, list[str]]:
    """Multiplier for size qualifiers (large/small/half).

    A "half" that is part of a count expression ("半碗") is a count, not a
    qualifier, and is ignored here.
    """
    text = text.lower()
    count_spans = [m.span() for m in _COUNT_UNIT_RE.finditer(text)]
    return _multiplier(text, PORTION_QUALIFIERS, skip=count_spans)


def parse_count(token: str) -> Optional[float]:
    """Parse a count token: digits or a number word."""
    token = token.strip().lower()
    if token in NUMBER_WORDS:
        return float(NUMBER_WORDS[token])
    try:
        return float(token)
    except ValueError:
        return None


def extract_quantity(before: str, after: str, food: FoodEntry) -> Quantity:
    """Read the quantity for one alias occurrence.

    Args:
        before: Text window ending right before the alias
        after: Text window starting right after the alias
        food: The matched food

    Returns:
        The most specific quantity found, in priority order
        kcal > grams > ml > count + unit, else DefaultPortion
    """
    return _extract(before, after, food)[0]


def _extract(before: str, after: str, food: FoodEntry, next_food: bool = False) -> tuple[Quantity, int]:
    """Quantity plus the number of characters of `after` it used.

    With next_food set, `after` ends where the next food's alias starts.
    A quantity that is set apart from this alias by whitespace and runs
    right up to the next alias ("鸡胸 150g米饭") belongs to the next food.
    """

    def own(m: Optional[re.Match]) -> bool:
        if not m:
            return False
        return not (next_food and m.end() == len(after) and after[:1].isspace())

    for kind, after_re, before_re in _MEASURE_PATTERNS:
        m = after_re.search(after)
        consumed = m.end() if own(m) else 0
        if not consumed or float(m.group(1)) <= 0:  # type: ignore[union-attr]
            m, consumed = before_re.search(before), 0
        if not m or float(m.group(1)) <= 0:
            continue
        value = float(m.group(1))
        if kind == "kcal":
            return ExplicitKcal(value), consumed
        if kind == "g":
            return ExplicitGrams(value), consumed
        return ExplicitVolume(value), consumed

    # "两个鸡蛋一杯牛奶": a leading count + unit is read before a trailing one
    before_count = _COUNT_BEFORE_RE.search(before)
    if before_count and before_count.group(2):
        count = parse_count(before_count.group(1))
        if count:
            unit = before_count.group(2)
            return CountWithUnit(count, UNIT_WORDS.get(unit, unit)), 0

    m = _COUNT_AFTER_RE.search(after)
    if own(m):
        count = parse_count(m.group(1))
        if count:
            return CountWithUnit(count, UNIT_WORDS.get(m.group(2), m.group(2))), m.end()

    if before_count:
        count = parse_count(before_count.group(1))
        # "2 eggs", "3 dumplings": a bare count only applies to foods counted per piece
        if count and food.basis == "each" and not _is_bare_number_word(before_count.group(1)):
            return CountWithUnit(count, food.unit), 0
    return DefaultPortion(), 0


def _is_bare_number_word(token: str) -> bool:
    """A lone article or "half" directly before a food is not a count."""
    return token.strip().lower() in {"a", "an", "half", "半"}


# ----------------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------------


def _fmt(value: float) -> str:
    return f"{value:g}"


def quantity_to_kcal(
    food: FoodEntry,
    quantity: Quantity,
    table: FoodTable,
    portion_factor: float = 1.0,
) -> tuple[float, float, str]:
    """Convert a quantity into (kcal midpoint, uncertainty, detail).

    Portion qualifiers only scale default portions. A zero midpoint means
    the quantity could not be converted for this food.
    """
    if isinstance(quantity, ExplicitKcal):
        return quantity.kcal, DIRECT_KCAL_UNCERTAINTY, f"{_fmt(quantity.kcal)} kcal stated"

    if isinstance(quantity, ExplicitGrams):
        grams = quantity.grams
        if food.kcal_per_100g is not None:
            return grams * food.kcal_per_100g / 100, MEASURED_UNCERTAINTY, f"{_fmt(grams)} g"
        if food.kcal_per_100ml is not None:
            return (grams * food.kcal_per_100ml / 100, APPROXIMATE_CONVERSION_UNCERTAINTY,
                    f"{_fmt(grams)} g (as ml)")
        return (food.kcal_each * grams / food.grams_each,  # type: ignore[operator]
                GRAMS_FOR_EACH_UNCERTAINTY, f"{_fmt(grams)} g (rough)")

    if isinstance(quantity, ExplicitVolume):
        ml = quantity.ml
        if food.kcal_per_100ml is not None:
            return ml * food.kcal_per_100ml / 100, MEASURED_UNCERTAINTY, f"{_fmt(ml)} ml"
        if food.kcal_per_100g is not None:
            return (ml * food.kcal_per_100g / 100, APPROXIMATE_CONVERSION_UNCERTAINTY,
                    f"{_fmt(ml)} ml (as g)")
        return (food.kcal_each * ml / food.grams_each,  # type: ignore[operator]
                GRAMS_FOR_EACH_UNCERTAINTY, f"{_fmt(ml)} ml (rough)")

    if isinstance(quantity, CountWithUnit):
        count, unit = quantity.count, quantity.unit
        detail = f"{_fmt(count)} {unit}"
        if food.kcal_each is not None:
            return food.kcal_each * count, COUNT_EACH_UNCERTAINTY, detail
        per_unit = table.unit_amount(unit) or food.default_amount
        density = food.kcal_per_100g if food.kcal_per_100g is not None else food.kcal_per_100ml
        u = COUNT_VOLUMETRIC_UNCERTAINTY if unit in VOLUMETRIC_UNITS else COUNT_UNIT_UNCERTAINTY
        return count * per_unit * density / 100, u, detail  # type: ignore[operator]

    if isinstance(quantity, DefaultPortion):
        if food.basis == "each":
            detail = f"default {_fmt(food.default_amount)} {food.unit}"
        else:
            detail = f"default 1 {food.unit} ({_fmt(food.default_amount)} {food.basis})"
        if food.kcal_each is not None:
            return food.kcal_each * food.default_count, DEFAULT_EACH_UNCERTAINTY, detail
        if food.kcal_per_100ml is not None:
            ml = food.default_amount * portion_factor
            return ml * food.kcal_per_100ml / 100, DEFAULT_VOLUME_UNCERTAINTY, detail
        grams = food.default_amount * portion_factor
        return grams * food.kcal_per_100g / 100, DEFAULT_WEIGHT_UNCERTAINTY, detail  # type: ignore[operator]

    raise TypeError(f"unknown quantity type: {type(quantity).__name__}")


# ----------------------------------------------------------------------------
# Estimation
# ----------------------------------------------------------------------------


def match_foods(text: str, table: FoodTable) -> list[tuple[int, int, str, FoodEntry]]:
    """Find the first occurrence of each food's aliases in text.

    Returns:
        (start, end, alias, food) per matched food, in table order
    """
    aliases: dict[str, object] = {}
    for food in table:
        for alias in food.aliases:
            aliases.setdefault(alias, food)
    first: dict[str, tuple[int, int, str, FoodEntry]] = {}
    for start, end, alias, food in find_terms(text, aliases):
        first.setdefault(food.name, (start, end, alias, food))  # type: ignore[union-attr]
    return [first[f.name] for f in table if f.name in first]


def estimate_food_text(text: Optional[str], table: Optional[FoodTable] = None) -> FoodTextEstimate:
    """Estimate the calories of a free-text meal description.

    Args:
        text: Description, e.g. "米饭150g 鸡胸" or "2 eggs and toast"
        table: Reference food table (default: built-in table)

    Returns:
        FoodTextEstimate; ok=False with reason "empty" or "no_match"
        when the text carries no usable signal
    """
    table = table or default_food_table()
    text = (text or "").lower()
    if not text.strip():
        return FoodTextEstimate(ok=False, reason="empty")

    direct = _DIRECT_KCAL_RE.search(text)
    if direct:
        r = bounded_range(float(direct.group(1)), DIRECT_KCAL_UNCERTAINTY)
        return FoodTextEstimate(
            ok=True,
            range=r,
            suggested_uncertainty=DIRECT_KCAL_SUGGESTED,
            explanation=f"Calories given directly in the text: {r.mid} kcal (±5% range)",
        )

    found = match_foods(text, table)
    if not found:
        return _number_guess(text)

    portion_factor, qualifiers = portion_multiplier(text)
    cooking_factor, methods = cooking_multiplier(text)
    found.sort(key=lambda x: x[0])

    matches: list[FoodMatch] = []
    consumed_to = 0
    for i, (start, end, alias, food) in enumerate(found):
        # The window stops at neighbouring aliases and at text already
        # used as the previous food's quantity.
        next_start = found[i + 1][0] if i + 1 < len(found) else len(text)
        before = text[max(consumed_to, start - QUANTITY_WINDOW, 0):start]
        after = text[end:min(next_start, end + QUANTITY_WINDOW)]
        next_food = i + 1 < len(found) and next_start <= end + QUANTITY_WINDOW

        quantity, used = _extract(before, after, food, next_food)
        consumed_to = end + used
        mid, u, detail = quantity_to_kcal(food, quantity, table, portion_factor)
        if mid <= 0:
            continue
        if not isinstance(quantity, ExplicitKcal):
            mid *= cooking_factor
        matches.append(FoodMatch(food, alias, quantity, detail, bounded_range(mid, u)))

    if not matches:
        return _number_guess(text)

    if len(matches) == 1:
        total = matches[0].range
    else:
        total = sum_ranges(
            (m.range for m in matches), AGGREGATE_MIN_UNCERTAINTY, AGGREGATE_MAX_UNCERTAINTY
        )

    parts = "; ".join(
        f"{m.food.name} ({m.detail}): {m.range.low}-{m.range.high}" for m in matches
    )
    notes = []
    if methods:
        notes.append(f"cooking: {', '.join(methods)} ×{cooking_factor:.2f}")
    if qualifiers:
        notes.append(f"portion: {', '.join(qualifiers)} ×{portion_factor:.2f}")
    explanation = f"Recognized: {parts}"
    if notes:
        explanation += f" ({'; '.join(notes)})"

    followup_foods = _followup_foods(matches)
    followups = ""
    if followup_foods:
        followups = (
            "For a narrower range, add a weight or volume for: "
            + ", ".join(followup_foods)
        )
    logger.debug("Food text matched %d foods: %s", len(matches), parts)
    return FoodTextEstimate(
        ok=True,
        range=total,
        explanation=explanation,
        followups=followups,
        suggested_uncertainty=round(total.uncertainty, 2),
        matches=matches,
        followup_foods=followup_foods,
    )


def _followup_foods(matches: list[FoodMatch]) -> list[str]:
    """Unmeasured foods, condiments first, then widest range first."""
    unmeasured = [m for m in matches if not m.measured]
    unmeasured.sort(key=lambda m: (not m.food.condiment, -m.range.width))
    return [m.food.name for m in unmeasured]


def _number_guess(text: str) -> FoodTextEstimate:
    """Use the first bare number as a rough calorie guess."""
    num = _ANY_NUMBER_RE.search(text)
    if not num:
        return FoodTextEstimate(ok=False, reason="no_match")
    guess = float(num.group(0))
    r = bounded_range(guess, NUMBER_GUESS_UNCERTAINTY)
    return FoodTextEstimate(
        ok=True,
        range=r,
        suggested_uncertainty=NUMBER_GUESS_UNCERTAINTY,
        explanation=(
            f"No known food recognized; using the number {_fmt(guess)} "
            f"as a rough calorie guess"
        ),
        followups="Try 'food + weight or portion', e.g. 'rice 1 bowl (180g)', 'chicken 150g', 'oil 1 spoon'",
    )
