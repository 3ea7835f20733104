"""Tests for free-text meal estimation."""

from __future__ import annotations

import pytest

from fuellog.data.foods import FoodEntry, default_food_table
from fuellog.estimate.food_text import (
    CountWithUnit,
    DefaultPortion,
    ExplicitGrams,
    ExplicitKcal,
    ExplicitVolume,
    cooking_multiplier,
    estimate_food_text,
    extract_quantity,
    find_terms,
    parse_count,
    portion_multiplier,
)


def names(text: str) -> list[str]:
    """Canonical names of the foods recognized in text."""
    return [m.food.name for m in estimate_food_text(text).matches]


class TestDirectCalories:
    """A number with a calorie token wins over everything else."""

    @pytest.mark.parametrize("text", ["炸鸡200kcal", "chicken 200kcal", "lunch was 200 calories"])
    def test_direct_kcal(self, text: str) -> None:
        result = estimate_food_text(text)
        assert result.ok
        assert (result.range.low, result.range.mid, result.range.high) == (190, 200, 210)
        assert result.range.uncertainty == pytest.approx(0.05)
        assert result.suggested_uncertainty == pytest.approx(0.10)

    def test_chinese_token(self) -> None:
        result = estimate_food_text("奶茶 350大卡")
        assert result.range.mid == 350


class TestMeasuredQuantities:
    """Tests for explicit weights and volumes."""

    def test_rice_grams(self) -> None:
        """150 g of rice at 130 kcal/100 g, ±8%."""
        result = estimate_food_text("米饭150g")
        assert result.ok
        assert (result.range.low, result.range.mid, result.range.high) == (179, 195, 211)
        assert result.range.uncertainty == pytest.approx(0.08)
        assert result.followups == ""

    def test_english_grams(self) -> None:
        result = estimate_food_text("rice 150 grams")
        assert result.range.mid == 195

    def test_grams_before_alias(self) -> None:
        result = estimate_food_text("150克鸡胸")
        assert result.range.mid == 248
        assert result.matches[0].quantity == ExplicitGrams(150)

    def test_milk_volume(self) -> None:
        result = estimate_food_text("牛奶 300ml")
        assert result.range.mid == 180
        assert isinstance(result.matches[0].quantity, ExplicitVolume)

    def test_quantity_not_shared(self) -> None:
        """A weight after one food is not reused by the next one."""
        result = estimate_food_text("rice 150g eggs")
        by_name = {m.food.name: m for m in result.matches}
        assert isinstance(by_name["米饭"].quantity, ExplicitGrams)
        assert isinstance(by_name["鸡蛋"].quantity, DefaultPortion)


class TestCounts:
    """Tests for counts with and without unit words."""

    def test_bare_count_each_food(self) -> None:
        result = estimate_food_text("2 eggs")
        assert result.range.mid == 140
        assert result.matches[0].quantity == CountWithUnit(2, "个")

    def test_chinese_count_unit(self) -> None:
        result = estimate_food_text("两碗米饭")
        assert result.range.mid == 468
        assert result.range.uncertainty == pytest.approx(0.22)

    def test_half_bowl(self) -> None:
        result = estimate_food_text("半碗米饭")
        assert result.range.mid == 117

    def test_spoon_of_oil(self) -> None:
        result = estimate_food_text("oil 2 tbsp")
        assert result.range.mid == 177
        assert result.range.uncertainty == pytest.approx(0.18)

    def test_bare_number_ignored_for_weight_foods(self) -> None:
        """A bare number before rice is not a bowl count."""
        result = estimate_food_text("200 米饭")
        assert isinstance(result.matches[0].quantity, DefaultPortion)


class TestDefaultsAndMultipliers:
    """Tests for default portions, cooking and size words."""

    def test_default_portion(self) -> None:
        result = estimate_food_text("米饭")
        assert result.range.mid == 234
        assert result.range.uncertainty == pytest.approx(0.28)
        assert result.followup_foods == ["米饭"]

    def test_fried_raises_estimate(self) -> None:
        fried = estimate_food_text("炸鸡")
        roast = estimate_food_text("烤鸡")
        assert roast.range.mid == 315
        assert fried.range.mid == round(315 * 1.25)
        assert "fried" in fried.explanation

    def test_large_portion(self) -> None:
        assert estimate_food_text("大碗米饭").range.mid > estimate_food_text("米饭").range.mid

    def test_cooking_multiplier_longest_keyword(self) -> None:
        """'pan-fried' is not also counted as 'fried'."""
        factor, methods = cooking_multiplier("pan-fried salmon")
        assert methods == ["pan-fried"]
        assert factor == pytest.approx(1.15)

    def test_half_count_not_a_qualifier(self) -> None:
        factor, qualifiers = portion_multiplier("半碗米饭")
        assert qualifiers == []
        assert factor == pytest.approx(1.0)


class TestMultipleFoods:
    """Tests for combining several foods."""

    def test_sum_of_parts(self) -> None:
        """Bounds of a two-food meal are the sums of the per-food bounds."""
        rice = estimate_food_text("米饭").range
        chicken = estimate_food_text("鸡胸").range
        both = estimate_food_text("米饭 鸡胸")
        assert both.range.low == rice.low + chicken.low
        assert both.range.high == rice.high + chicken.high
        assert 0.10 <= both.range.uncertainty <= 0.45
        assert len(both.matches) == 2

    def test_condiments_asked_first(self) -> None:
        result = estimate_food_text("米饭 用油")
        assert result.followup_foods == ["食用油", "米饭"]
        assert result.followups.startswith("For a narrower range")

    def test_measured_foods_not_asked(self) -> None:
        result = estimate_food_text("米饭150g 用油")
        assert result.followup_foods == ["食用油"]

    def test_explanation_lists_foods(self) -> None:
        result = estimate_food_text("2 eggs and toast")
        assert result.explanation.startswith("Recognized:")
        assert "鸡蛋" in result.explanation and "面包" in result.explanation


class TestAliasMatching:
    """Tests for alias boundaries."""

    def test_bread_is_not_noodles(self) -> None:
        assert names("面包") == ["面包"]

    def test_oil_not_in_boiled(self) -> None:
        assert names("boiled egg") == ["鸡蛋"]

    def test_plural_alias(self) -> None:
        assert names("dumplings") == ["饺子"]

    def test_find_terms_longest_first(self) -> None:
        found = find_terms("fried chicken", {"chicken": 1, "fried chicken": 2})
        assert [(s, e, term) for s, e, term, _ in found] == [(0, 13, "fried chicken")]


class TestNoSignal:
    """Tests for text without a recognizable food."""

    def test_empty(self) -> None:
        result = estimate_food_text("   ")
        assert not result.ok
        assert result.reason == "empty"
        assert estimate_food_text(None).reason == "empty"

    def test_no_match(self) -> None:
        result = estimate_food_text("something tasty")
        assert not result.ok
        assert result.reason == "no_match"

    def test_number_guess(self) -> None:
        result = estimate_food_text("lunch 500")
        assert result.ok
        assert result.matches == []
        assert (result.range.low, result.range.mid, result.range.high) == (325, 500, 675)
        assert result.suggested_uncertainty == pytest.approx(0.35)


class TestExtractQuantity:
    """Tests for quantity extraction around an alias."""

    @pytest.fixture
    def egg(self) -> FoodEntry:
        return default_food_table().get("鸡蛋")

    def test_only_adjacent_quantity(self, egg: FoodEntry) -> None:
        """The quantity right next to the alias is used."""
        assert extract_quantity("", " 100g 90kcal", egg) == ExplicitGrams(100)
        assert extract_quantity("", " 90kcal", egg) == ExplicitKcal(90)

    def test_count_after(self, egg: FoodEntry) -> None:
        assert extract_quantity("", "3个", egg) == CountWithUnit(3, "个")

    def test_article_is_not_count(self, egg: FoodEntry) -> None:
        assert extract_quantity("an ", "", egg) == DefaultPortion()

    def test_parse_count(self) -> None:
        assert parse_count("两") == 2
        assert parse_count("Three") == 3
        assert parse_count("1.5") == 1.5
        assert parse_count("some") is None

    def test_half_a(self) -> None:
        assert parse_count("half a") == 0.5


class TestNeighbouringFoods:
    """Quantities written between two foods."""

    def test_leading_counts_stay_with_their_food(self) -> None:
        result = estimate_food_text("两个鸡蛋一杯牛奶")
        by_name = {m.food.name: m for m in result.matches}
        assert by_name["鸡蛋"].quantity == CountWithUnit(2, "个")
        assert by_name["鸡蛋"].range.mid == 140
        assert by_name["牛奶"].quantity == CountWithUnit(1, "杯")

    def test_weight_before_next_food(self) -> None:
        """A weight set apart from one food and touching the next is the next food's."""
        result = estimate_food_text("鸡胸 150g米饭")
        by_name = {m.food.name: m for m in result.matches}
        assert by_name["米饭"].quantity == ExplicitGrams(150)
        assert by_name["米饭"].range.mid == 195
        assert isinstance(by_name["鸡胸"].quantity, DefaultPortion)

    def test_weight_right_after_food(self) -> None:
        result = estimate_food_text("米饭150g鸡胸")
        by_name = {m.food.name: m for m in result.matches}
        assert by_name["米饭"].quantity == ExplicitGrams(150)
        assert isinstance(by_name["鸡胸"].quantity, DefaultPortion)


class TestEnglishFractions:
    """Tests for "half a" counts."""

    def test_half_a_bowl(self) -> None:
        result = estimate_food_text("half a bowl of rice")
        assert result.matches[0].quantity == CountWithUnit(0.5, "bowl")
        assert result.range.mid == 117


class TestCalorieTokenBoundaries:
    """Tests for words that start with a calorie token."""

    def test_cappuccino_is_not_kcal(self) -> None:
        result = estimate_food_text("3卡布奇诺")
        assert result.suggested_uncertainty == pytest.approx(0.35)
        assert result.range.mid == 3

    def test_plain_ka_still_kcal(self) -> None:
        result = estimate_food_text("350卡")
        assert result.range.mid == 350
        assert result.suggested_uncertainty == pytest.approx(0.10)
