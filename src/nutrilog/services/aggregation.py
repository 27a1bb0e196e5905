"""Nutrient aggregation across line items, meals and days."""

import math
from collections.abc import Iterable, Mapping

from nutrilog.domain.logs import AggregateTotals, LineItem, Meal
from nutrilog.domain.nutrition import NUTRIENT_FIELDS, NutrientProfile


def aggregate(
    profiles: Iterable[NutrientProfile | Mapping[str, object] | None],
) -> NutrientProfile:
    """Sum profiles field by field without rounding.

    Missing fields and missing profiles count as zero. ``math.fsum`` keeps the
    result identical for any ordering of the inputs.
    """
    columns: dict[str, list[float]] = {name: [] for name in NUTRIENT_FIELDS}
    for profile in profiles:
        if profile is None:
            continue
        if isinstance(profile, Mapping):
            profile = NutrientProfile.from_mapping(profile)
        for name in NUTRIENT_FIELDS:
            columns[name].append(getattr(profile, name) or 0.0)
    return NutrientProfile(
        **{name: math.fsum(values) for name, values in columns.items()}
    )


def aggregate_totals(
    profiles: Iterable[NutrientProfile | Mapping[str, object] | None],
    water_intake: float = 0.0,
) -> AggregateTotals:
    return AggregateTotals(nutrients=aggregate(profiles), water_intake=water_intake)


def item_profiles(items: Iterable[LineItem]) -> list[NutrientProfile]:
    return [item.nutrients for item in items]


def meal_totals(meal: Meal) -> NutrientProfile:
    return aggregate(item_profiles(meal.items))


def day_totals(meals: Iterable[Meal], water_intake: float = 0.0) -> AggregateTotals:
    """Totals over every item of every meal in a day."""
    return aggregate_totals(
        (item.nutrients for meal in meals for item in meal.items),
        water_intake=water_intake,
    )
