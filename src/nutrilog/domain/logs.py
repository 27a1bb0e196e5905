"""Domain models for daily logs, weeks, meals and line items."""

from dataclasses import dataclass, field
from datetime import date
from typing import Generic, TypeVar
from uuid import UUID

from nutrilog.domain.nutrition import NutrientProfile

T = TypeVar("T")

MEAL_TYPES = ("breakfast", "lunch", "snack", "dinner", "bt_snack")


@dataclass(frozen=True)
class LineItem:
    """Single food, recipe or note entry within a meal or recipe."""

    id: UUID
    parent_id: UUID
    name: str
    serving_text: str
    nutrients: NutrientProfile
    order: int
    food_id: UUID | None = None
    recipe_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Meal:
    """Meal within a day, holding its line items in display order."""

    id: UUID
    daily_record_id: UUID
    meal_type: str
    meal_order: int
    items: tuple[LineItem, ...] = ()
    preparation_notes: str | None = None


@dataclass(frozen=True)
class AggregateTotals:
    """Summed nutrients of a day plus the directly entered water intake."""

    nutrients: NutrientProfile = field(default_factory=NutrientProfile)
    water_intake: float = 0.0


@dataclass(frozen=True)
class WeekRecord:
    """Seven-day bucket of daily records."""

    id: UUID
    user_id: UUID
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class DailyRecord:
    """Persisted aggregate for one user and calendar date."""

    id: UUID
    user_id: UUID
    week_id: UUID
    log_date: date
    totals: AggregateTotals = field(default_factory=AggregateTotals)
    is_locked: bool = False


@dataclass(frozen=True)
class CreateResult(Generic[T]):
    """Outcome of a race-tolerant create: the row and whether we inserted it."""

    record: T
    created: bool
