"""Serving unit conversion for food reference profiles.

Reference profiles are expressed either per 1 cup (library and recipe foods)
or per 100 g (foods from the FDC lookup). Per-100g foods become per-cup foods
when their portion metadata carries a cup-like measure. Every conversion
starts from the reference profile; scaled results are never fed back in.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from nutrilog.domain.nutrition import (
    ConvertedServing,
    FoodPortion,
    FoodReferenceProfile,
    NutrientProfile,
    ReferenceBasis,
    ServingSpec,
    ServingUnit,
    round_half_up,
)

VOLUME_RATIOS: dict[ServingUnit, float] = {
    ServingUnit.CUP: 1.0,
    ServingUnit.TBSP: 1 / 16,
    ServingUnit.TSP: 1 / 48,
}
COUNT_UNITS = frozenset({ServingUnit.EACH, ServingUnit.PACKAGE})

PER_100G_DESCRIPTION = "per 100g"

_CUP_LABEL = re.compile(r"(?:1\s+)?cups?(?:\s*,\s*.+)?")


def is_cup_label(label: str) -> bool:
    """Return True for "cup" or "cup, <preparation>" labels, never "undrained"."""
    cleaned = label.strip().lower()
    if "undrained" in cleaned:
        return False
    return _CUP_LABEL.fullmatch(cleaned) is not None


def find_cup_grams(portions: Iterable[FoodPortion]) -> float | None:
    """Return grams per cup from the first cup-like portion, if any."""
    for portion in portions:
        if not is_cup_label(portion.unit):
            continue
        amount = portion.amount if portion.amount > 0 else 1.0
        return portion.gram_weight / amount
    return None


def resolve_reference(
    per_100g: NutrientProfile, portions: Iterable[FoodPortion]
) -> FoodReferenceProfile:
    """Tag an FDC per-100g profile with its resolved cup gram weight."""
    return FoodReferenceProfile(
        profile=per_100g,
        basis=ReferenceBasis.PER_100G,
        cup_gram_weight=find_cup_grams(portions),
    )


def per_cup_profile(reference: FoodReferenceProfile) -> NutrientProfile | None:
    """Return the unrounded per-cup profile, or None when no cup mapping exists."""
    if reference.basis == ReferenceBasis.PER_CUP:
        return reference.profile
    if not reference.cup_gram_weight:
        return None
    return reference.profile.scaled(reference.cup_gram_weight / 100)


def describe_reference(reference: FoodReferenceProfile) -> str:
    if reference.basis == ReferenceBasis.PER_CUP:
        return "per 1 cup"
    if not reference.cup_gram_weight:
        return PER_100G_DESCRIPTION
    return f"per 1 cup ({round_half_up(reference.cup_gram_weight):.0f}g)"


def scale_factor(serving: ServingSpec) -> float:
    """Multiplier from one cup (or one whole item) to the serving."""
    if serving.unit in COUNT_UNITS:
        return serving.quantity
    return serving.quantity * VOLUME_RATIOS[serving.unit]


def describe_serving(serving: ServingSpec) -> str:
    quantity = f"{serving.quantity:g}"
    if serving.unit == ServingUnit.EACH:
        return quantity
    if serving.unit == ServingUnit.PACKAGE:
        noun = "package" if serving.quantity == 1 else "packages"
        return f"{quantity} {noun}"
    return f"{quantity} {serving.unit.value}"


def convert(reference: FoodReferenceProfile, serving: ServingSpec) -> ConvertedServing:
    """Scale a reference profile to a serving and round the result once."""
    base = per_cup_profile(reference)
    if base is None:
        return ConvertedServing(
            profile=reference.profile.rounded(),
            description=PER_100G_DESCRIPTION,
            reference_description=PER_100G_DESCRIPTION,
            degraded=True,
        )
    return ConvertedServing(
        profile=base.scaled(scale_factor(serving)).rounded(),
        description=describe_serving(serving),
        reference_description=describe_reference(reference),
    )


@dataclass
class ServingSelection:
    """Serving picker state that can switch unit or quantity without drift."""

    reference: FoodReferenceProfile
    serving: ServingSpec

    @property
    def current(self) -> ConvertedServing:
        return convert(self.reference, self.serving)

    def change_unit(self, unit: ServingUnit) -> ConvertedServing:
        self.serving = ServingSpec(quantity=self.serving.quantity, unit=unit)
        return self.current

    def change_quantity(self, quantity: float) -> ConvertedServing:
        self.serving = ServingSpec(quantity=quantity, unit=self.serving.unit)
        return self.current

    def change(self, serving: ServingSpec) -> ConvertedServing:
        self.serving = serving
        return self.current
