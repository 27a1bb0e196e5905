"""Tests for serving unit conversion."""

import pytest

from nutrilog.domain.nutrition import (
    FoodPortion,
    FoodReferenceProfile,
    NutrientProfile,
    ReferenceBasis,
    ServingSpec,
    ServingUnit,
    round_half_up,
)
from nutrilog.services.conversion import (
    ServingSelection,
    convert,
    describe_reference,
    describe_serving,
    find_cup_grams,
    is_cup_label,
    per_cup_profile,
    resolve_reference,
    scale_factor,
)

BUTTER = FoodReferenceProfile(
    profile=NutrientProfile(calories=840, protein=12, fat=88),
    basis=ReferenceBasis.PER_CUP,
)


def test_convert_cup_reference_to_tablespoons() -> None:
    converted = convert(BUTTER, ServingSpec(quantity=2, unit=ServingUnit.TBSP))

    assert converted.profile == NutrientProfile(
        calories=105, protein=1.5, carbs=0, fat=11, fiber=0, water=0
    )
    assert converted.description == "2 tbsp"
    assert converted.reference_description == "per 1 cup"
    assert converted.degraded is False


def test_scale_factors_per_unit() -> None:
    assert scale_factor(ServingSpec(1, ServingUnit.CUP)) == 1
    assert scale_factor(ServingSpec(2, ServingUnit.TBSP)) == pytest.approx(0.125)
    assert scale_factor(ServingSpec(3, ServingUnit.TSP)) == pytest.approx(1 / 16)
    assert scale_factor(ServingSpec(3, ServingUnit.EACH)) == 3
    assert scale_factor(ServingSpec(2, ServingUnit.PACKAGE)) == 2


def test_describe_serving_for_count_units() -> None:
    assert describe_serving(ServingSpec(3, ServingUnit.EACH)) == "3"
    assert describe_serving(ServingSpec(2, ServingUnit.PACKAGE)) == "2 packages"
    assert describe_serving(ServingSpec(1, ServingUnit.PACKAGE)) == "1 package"
    assert describe_serving(ServingSpec(0.5, ServingUnit.CUP)) == "0.5 cup"


def test_cup_grams_skip_undrained_portions() -> None:
    portions = [
        FoodPortion(unit="cup, undrained", gram_weight=200, amount=1),
        FoodPortion(unit="cup, sliced", gram_weight=150, amount=1),
    ]

    assert find_cup_grams(portions) == 150


def test_cup_grams_divide_by_portion_amount() -> None:
    portions = [
        FoodPortion(unit="tbsp", gram_weight=14.2),
        FoodPortion(unit="cups", gram_weight=480, amount=2),
    ]

    assert find_cup_grams(portions) == 240


def test_cup_label_matching() -> None:
    assert is_cup_label("cup")
    assert is_cup_label("1 cup")
    assert is_cup_label("Cup, chopped")
    assert not is_cup_label("cup, undrained")
    assert not is_cup_label("teacup")
    assert not is_cup_label("tbsp")


def test_per_100g_reference_converts_through_cup_weight() -> None:
    reference = resolve_reference(
        NutrientProfile(calories=50, protein=2, carbs=10.4),
        [FoodPortion(unit="cup, sliced", gram_weight=150)],
    )

    converted = convert(reference, ServingSpec(quantity=1, unit=ServingUnit.CUP))

    assert reference.basis == ReferenceBasis.PER_100G
    assert converted.profile.calories == 75
    assert converted.profile.protein == 3
    assert converted.profile.carbs == 15.6
    assert converted.reference_description == "per 1 cup (150g)"


def test_per_100g_without_cup_weight_degrades() -> None:
    profile = NutrientProfile(calories=717, protein=0.9, fat=81.1, water=15.9)
    reference = resolve_reference(profile, [FoodPortion(unit="pat", gram_weight=5)])

    for serving in (
        ServingSpec(2, ServingUnit.TBSP),
        ServingSpec(3, ServingUnit.EACH),
        ServingSpec(1, ServingUnit.CUP),
    ):
        converted = convert(reference, serving)
        assert converted.profile == profile
        assert converted.description == "per 100g"
        assert converted.degraded is True
    assert per_cup_profile(reference) is None
    assert describe_reference(reference) == "per 100g"


def test_unit_switching_does_not_drift() -> None:
    reference = FoodReferenceProfile(
        profile=NutrientProfile(calories=333, protein=7.7, carbs=41.3, fat=13.3),
        basis=ReferenceBasis.PER_CUP,
    )
    selection = ServingSelection(reference, ServingSpec(1, ServingUnit.CUP))
    direct = selection.current

    selection.change(ServingSpec(16, ServingUnit.TBSP))
    selection.change(ServingSpec(48, ServingUnit.TSP))
    back = selection.change(ServingSpec(1, ServingUnit.CUP))

    assert back == direct


def test_change_quantity_keeps_unit() -> None:
    selection = ServingSelection(BUTTER, ServingSpec(1, ServingUnit.TBSP))

    converted = selection.change_quantity(2)

    assert converted.description == "2 tbsp"
    assert converted.profile.calories == 105


def test_round_half_up_matches_display_rounding() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(104.5) == 105
