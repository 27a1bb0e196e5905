"""Request models for the HTTP API."""

from pydantic import BaseModel, Field

from nutrilog.domain.nutrition import (
    FoodPortion,
    NutrientProfile,
    ReferenceBasis,
    ServingSpec,
    ServingUnit,
)


class NutrientPayload(BaseModel):
    calories: float = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    fiber: float = Field(default=0, ge=0)
    water: float = Field(default=0, ge=0)

    def to_profile(self) -> NutrientProfile:
        return NutrientProfile(**self.model_dump())


class PortionPayload(BaseModel):
    unit: str
    gram_weight: float = Field(gt=0)
    amount: float = 1

    def to_portion(self) -> FoodPortion:
        return FoodPortion(
            unit=self.unit, gram_weight=self.gram_weight, amount=self.amount
        )


class ConvertRequest(BaseModel):
    """Reference profile plus the serving to scale it to.

    ``per_100g`` profiles are resolved to a cup weight from ``portions``.
    """

    profile: NutrientPayload
    basis: ReferenceBasis = ReferenceBasis.PER_CUP
    portions: list[PortionPayload] = Field(default_factory=list)
    quantity: float = Field(gt=0)
    unit: ServingUnit = ServingUnit.CUP

    def to_serving(self) -> ServingSpec:
        return ServingSpec(quantity=self.quantity, unit=self.unit)


class NoteRequest(BaseModel):
    title: str
    content: str


class ReplyRequest(BaseModel):
    content: str
