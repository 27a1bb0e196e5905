"""Nutrition domain models."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber", "water")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upwards: 2.5 becomes 3 and -2.5 becomes -2."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


class ServingUnit(StrEnum):
    """Units a serving can be expressed in."""

    CUP = "cup"
    TBSP = "tbsp"
    TSP = "tsp"
    EACH = "each"
    PACKAGE = "package"


class ReferenceBasis(StrEnum):
    """Serving size a reference profile is expressed per."""

    PER_CUP = "per_cup"
    PER_100G = "per_100g"


@dataclass(frozen=True)
class NutrientProfile:
    """Calories plus macro and micro nutrients for some amount of food."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    water: float = 0.0

    @classmethod
    def zero(cls) -> "NutrientProfile":
        return cls()

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "NutrientProfile":
        """Build a profile from a row or payload, missing fields count as zero."""
        return cls(**{name: _to_float(values.get(name)) for name in NUTRIENT_FIELDS})

    def scaled(self, factor: float) -> "NutrientProfile":
        """Return the profile multiplied by a factor, unrounded."""
        return NutrientProfile(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
            fiber=self.fiber * factor,
            water=self.water * factor,
        )

    def rounded(self) -> "NutrientProfile":
        """Round for display or persistence: whole calories, one decimal otherwise."""
        return NutrientProfile(
            calories=round_half_up(self.calories),
            protein=round_half_up(self.protein, 1),
            carbs=round_half_up(self.carbs, 1),
            fat=round_half_up(self.fat, 1),
            fiber=round_half_up(self.fiber, 1),
            water=round_half_up(self.water, 1),
        )

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in NUTRIENT_FIELDS}


@dataclass(frozen=True)
class ServingSpec:
    """Quantity and unit chosen by the user for a serving."""

    quantity: float
    unit: ServingUnit


@dataclass(frozen=True)
class FoodPortion:
    """Portion or measure descriptor attached to an external food."""

    unit: str
    gram_weight: float
    amount: float = 1.0


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


@dataclass(frozen=True)
class FoodReferenceProfile:
    """Nutrient profile tagged with the serving it is expressed per."""

    profile: NutrientProfile
    basis: ReferenceBasis
    cup_gram_weight: float | None = None


@dataclass(frozen=True)
class ConvertedServing:
    """Profile scaled to a serving, with display descriptions."""

    profile: NutrientProfile
    description: str
    reference_description: str
    degraded: bool = False


@dataclass(frozen=True)
class FoodCandidate:
    """Food returned by the external composition lookup, per 100 g."""

    fdc_id: int
    description: str
    per_100g: NutrientProfile
    portions: list[FoodPortion] = field(default_factory=list)
    brand_owner: str | None = None
    data_type: str | None = None
