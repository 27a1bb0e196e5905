"""Recipe domain models."""

from dataclasses import dataclass, field
from uuid import UUID

from nutrilog.domain.logs import LineItem
from nutrilog.domain.nutrition import NutrientProfile


@dataclass(frozen=True)
class Recipe:
    """Reusable recipe with cached totals over its ingredients."""

    id: UUID
    user_id: UUID
    name: str
    servings: int
    totals: NutrientProfile = field(default_factory=NutrientProfile)
    notes: str | None = None
    items: tuple[LineItem, ...] = ()
