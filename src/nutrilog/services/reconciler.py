"""Optimistic editing of one user's day with background persistence.

Every mutation is applied to the in-memory meals first, totals are recomputed
from the line items, and the store write runs as a background task. When a
write fails the day is re-fetched from the store and the optimistic change is
discarded. Writes are not queued, retried or cancelled. A load that finds the
stored totals out of step with the line items rewrites them.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from enum import StrEnum
from uuid import UUID, uuid4

from nutrilog.domain.logs import (
    MEAL_TYPES,
    AggregateTotals,
    DailyRecord,
    LineItem,
    Meal,
)
from nutrilog.domain.nutrition import NutrientProfile, round_half_up
from nutrilog.errors import (
    DayLockedError,
    DayNotResolvedError,
    InvalidTransitionError,
    InvalidWaterIntakeError,
    RecordNotFoundError,
)
from nutrilog.services.aggregation import day_totals
from nutrilog.services.days import SUNDAY, DailyLogRepository, get_or_create_day

_logger = logging.getLogger(__name__)


class DayState(StrEnum):
    """Synchronisation state of a day held in memory."""

    UNINITIALIZED = "uninitialized"
    RESOLVED = "resolved"
    STALE = "stale"
    RECONCILING = "reconciling"


class DayEvent(StrEnum):
    """Events that move a day between states."""

    LOADED = "loaded"
    LOAD_FAILED = "load_failed"
    MUTATED = "mutated"
    PERSISTED = "persisted"
    PERSIST_FAILED = "persist_failed"
    SETTLED = "settled"


TRANSITIONS: dict[tuple[DayState, DayEvent], DayState] = {
    (DayState.UNINITIALIZED, DayEvent.LOADED): DayState.RESOLVED,
    (DayState.UNINITIALIZED, DayEvent.LOAD_FAILED): DayState.UNINITIALIZED,
    (DayState.RESOLVED, DayEvent.LOADED): DayState.RESOLVED,
    (DayState.RESOLVED, DayEvent.LOAD_FAILED): DayState.RESOLVED,
    (DayState.RESOLVED, DayEvent.MUTATED): DayState.STALE,
    (DayState.RESOLVED, DayEvent.SETTLED): DayState.RESOLVED,
    (DayState.STALE, DayEvent.LOADED): DayState.STALE,
    (DayState.STALE, DayEvent.LOAD_FAILED): DayState.STALE,
    (DayState.STALE, DayEvent.MUTATED): DayState.STALE,
    (DayState.STALE, DayEvent.PERSISTED): DayState.STALE,
    (DayState.STALE, DayEvent.PERSIST_FAILED): DayState.RECONCILING,
    (DayState.STALE, DayEvent.SETTLED): DayState.RESOLVED,
    (DayState.RECONCILING, DayEvent.LOADED): DayState.STALE,
    (DayState.RECONCILING, DayEvent.LOAD_FAILED): DayState.RECONCILING,
    (DayState.RECONCILING, DayEvent.MUTATED): DayState.RECONCILING,
    (DayState.RECONCILING, DayEvent.PERSISTED): DayState.RECONCILING,
    (DayState.RECONCILING, DayEvent.PERSIST_FAILED): DayState.RECONCILING,
    (DayState.RECONCILING, DayEvent.SETTLED): DayState.RECONCILING,
}


def next_item_order(items: Iterable[LineItem]) -> int:
    """Order for a new item: one past the highest existing order."""
    return max((item.order for item in items), default=0) + 1


def next_meal_order(meals: Iterable[Meal]) -> int:
    return max((meal.meal_order for meal in meals), default=0) + 1


@dataclass
class DailyLogReconciler:
    """Keeps one day's meals, totals and flags in sync with the store."""

    repository: DailyLogRepository
    user_id: UUID
    log_date: date
    first_weekday: int = SUNDAY
    record: DailyRecord | None = field(default=None, init=False)
    meals: tuple[Meal, ...] = field(default=(), init=False)
    state: DayState = field(default=DayState.UNINITIALIZED, init=False)
    _pending: int = field(default=0, init=False, repr=False)
    _tasks: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    @property
    def totals(self) -> AggregateTotals:
        return self._require_resolved().totals

    @property
    def is_locked(self) -> bool:
        return self._require_resolved().is_locked

    @property
    def pending_writes(self) -> int:
        return self._pending

    async def resolve(self) -> DailyRecord:
        """Load the day, creating its week and daily record on first access.

        Read failures propagate so the caller can show a retry affordance.
        """
        try:
            record, meals = await asyncio.to_thread(self._load)
        except Exception:
            self._transition(DayEvent.LOAD_FAILED)
            raise
        self.meals = tuple(meals)
        totals = day_totals(self.meals, record.totals.water_intake)
        self.record = replace(record, totals=totals)
        self._transition(DayEvent.LOADED)
        if totals.nutrients != record.totals.nutrients and self._pending == 0:
            self._heal_totals(record.id, totals.nutrients)
        self._settle()
        return self.record

    async def refetch(self) -> DailyRecord:
        """Replace in-memory state with what the store holds."""
        return await self.resolve()

    async def drain(self) -> None:
        """Wait for every background write issued so far, and any re-fetch."""
        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                return
            await asyncio.gather(*running)

    def meals_of_type(self, meal_type: str) -> list[Meal]:
        return [meal for meal in self.meals if meal.meal_type == meal_type]

    async def add_meal(
        self, meal_type: str, preparation_notes: str | None = None
    ) -> Meal:
        """Add an empty meal to the day."""
        record = self._require_unlocked()
        meal = self._new_meal(record, meal_type, preparation_notes)
        self._apply((*self.meals, meal))
        self._schedule(lambda: self.repository.create_meal(meal), action="add_meal")
        return meal

    async def add_item(  # noqa: PLR0913
        self,
        meal_type: str,
        name: str,
        serving_text: str,
        nutrients: NutrientProfile,
        *,
        meal_id: UUID | None = None,
        food_id: UUID | None = None,
        recipe_id: UUID | None = None,
        notes: str | None = None,
    ) -> LineItem:
        """Add a line item, creating the meal on first use of its type."""
        record = self._require_unlocked()
        if meal_id is not None:
            meal = self._get_meal(meal_id)
        else:
            existing = self.meals_of_type(meal_type)
            meal = existing[0] if existing else None
        created_meal = None
        if meal is None:
            meal = created_meal = self._new_meal(record, meal_type)
        item = LineItem(
            id=uuid4(),
            parent_id=meal.id,
            name=name,
            serving_text=serving_text,
            nutrients=nutrients,
            order=next_item_order(meal.items),
            food_id=food_id,
            recipe_id=recipe_id,
            notes=notes,
        )
        updated = replace(meal, items=(*meal.items, item))
        if created_meal is None:
            totals = self._apply(self._replace_meal(updated))
        else:
            totals = self._apply((*self.meals, updated))

        def write() -> None:
            if created_meal is not None:
                self.repository.create_meal(created_meal)
            self.repository.create_line_item(item)
            self.repository.update_totals(record.id, totals.nutrients)

        self._schedule(write, action="add_item")
        return item

    async def delete_item(self, item_id: UUID) -> None:
        """Remove a line item locally, then delete it from the store."""
        record = self._require_unlocked()
        meal = self._meal_holding(item_id)
        updated = replace(
            meal, items=tuple(item for item in meal.items if item.id != item_id)
        )
        totals = self._apply(self._replace_meal(updated))

        def write() -> None:
            self.repository.delete_line_item(item_id)
            self.repository.update_totals(record.id, totals.nutrients)

        self._schedule(write, action="delete_item")

    async def delete_meal(self, meal_id: UUID) -> None:
        """Remove a meal and its items; items are deleted before the meal row."""
        record = self._require_unlocked()
        self._get_meal(meal_id)
        totals = self._apply(tuple(meal for meal in self.meals if meal.id != meal_id))

        def write() -> None:
            self.repository.delete_line_items(meal_id)
            self.repository.delete_meal(meal_id)
            self.repository.update_totals(record.id, totals.nutrients)

        self._schedule(write, action="delete_meal")

    async def set_water_intake(self, value: float) -> float:
        """Set water intake directly. Allowed on locked days."""
        record = self._require_resolved()
        water_intake = round_half_up(value, 1)
        if water_intake < 0:
            raise InvalidWaterIntakeError(
                f"Water intake cannot be negative: {water_intake}"
            )
        self.record = replace(
            record, totals=replace(record.totals, water_intake=water_intake)
        )
        self._schedule(
            lambda: self.repository.update_water_intake(record.id, water_intake),
            action="update_water_intake",
        )
        return water_intake

    async def adjust_water_intake(self, delta: float) -> float:
        current = self._require_resolved().totals.water_intake
        return await self.set_water_intake(current + delta)

    async def set_locked(self, is_locked: bool) -> None:
        """Flip the lock flag; a failed write is logged and not rolled back."""
        record = self._require_resolved()
        self.record = replace(record, is_locked=is_locked)
        self._schedule(
            lambda: self.repository.update_locked(record.id, is_locked),
            action="update_locked",
            reconcile=False,
        )

    async def toggle_lock(self) -> bool:
        is_locked = not self.is_locked
        await self.set_locked(is_locked)
        return is_locked

    def _load(self) -> tuple[DailyRecord, list[Meal]]:
        record = get_or_create_day(
            self.repository, self.user_id, self.log_date, self.first_weekday
        ).record
        return record, self.repository.list_meals(record.id)

    def _heal_totals(self, record_id: UUID, nutrients: NutrientProfile) -> None:
        # Stored totals drifted from the line items; the items win.
        _logger.warning(
            "Stored totals for user %s on %s differ from line items, rewriting",
            self.user_id,
            self.log_date,
        )
        self._schedule(
            lambda: self.repository.update_totals(record_id, nutrients),
            action="heal_totals",
            reconcile=False,
        )

    def _apply(self, meals: Iterable[Meal]) -> AggregateTotals:
        record = self._require_resolved()
        self.meals = tuple(meals)
        totals = day_totals(self.meals, record.totals.water_intake)
        self.record = replace(record, totals=totals)
        return totals

    def _schedule(
        self,
        operation: Callable[[], None],
        *,
        action: str,
        reconcile: bool = True,
    ) -> None:
        if reconcile:
            self._pending += 1
            self._transition(DayEvent.MUTATED)
        task = asyncio.create_task(self._persist(operation, action, reconcile))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(
        self, operation: Callable[[], None], action: str, reconcile: bool
    ) -> None:
        try:
            await asyncio.to_thread(operation)
        except Exception:
            _logger.exception(
                "Background %s failed for user %s on %s",
                action,
                self.user_id,
                self.log_date,
            )
            if not reconcile:
                return
            self._pending -= 1
            self._transition(DayEvent.PERSIST_FAILED)
            await self._reconcile()
            return
        if reconcile:
            self._pending -= 1
            self._transition(DayEvent.PERSISTED)
            self._settle()

    async def _reconcile(self) -> None:
        try:
            await self.resolve()
        except Exception:
            _logger.exception(
                "Re-fetch failed for user %s on %s", self.user_id, self.log_date
            )

    def _transition(self, event: DayEvent) -> DayState:
        try:
            self.state = TRANSITIONS[(self.state, event)]
        except KeyError:
            raise InvalidTransitionError(
                f"Event {event} is not valid in state {self.state}"
            ) from None
        return self.state

    def _settle(self) -> None:
        if self._pending == 0:
            self._transition(DayEvent.SETTLED)

    def _require_resolved(self) -> DailyRecord:
        if self.record is None or self.state == DayState.UNINITIALIZED:
            raise DayNotResolvedError(f"Day {self.log_date} has not been resolved")
        return self.record

    def _require_unlocked(self) -> DailyRecord:
        record = self._require_resolved()
        if record.is_locked:
            raise DayLockedError(f"Day {self.log_date} is locked")
        return record

    def _new_meal(
        self,
        record: DailyRecord,
        meal_type: str,
        preparation_notes: str | None = None,
    ) -> Meal:
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        return Meal(
            id=uuid4(),
            daily_record_id=record.id,
            meal_type=meal_type,
            meal_order=next_meal_order(self.meals),
            preparation_notes=preparation_notes,
        )

    def _get_meal(self, meal_id: UUID) -> Meal:
        for meal in self.meals:
            if meal.id == meal_id:
                return meal
        raise RecordNotFoundError(f"Meal {meal_id} is not part of {self.log_date}")

    def _meal_holding(self, item_id: UUID) -> Meal:
        for meal in self.meals:
            if any(item.id == item_id for item in meal.items):
                return meal
        raise RecordNotFoundError(f"Item {item_id} is not part of {self.log_date}")

    def _replace_meal(self, updated: Meal) -> tuple[Meal, ...]:
        return tuple(updated if meal.id == updated.id else meal for meal in self.meals)
