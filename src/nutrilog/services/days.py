"""Resolution of weeks and daily records for a user and date."""

import logging
from collections.abc import Callable
from datetime import date, timedelta
from typing import Protocol, TypeVar
from uuid import UUID

from nutrilog.domain.logs import (
    CreateResult,
    DailyRecord,
    LineItem,
    Meal,
    WeekRecord,
)
from nutrilog.domain.nutrition import NutrientProfile
from nutrilog.errors import UniqueViolationError

SUNDAY = 6

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class DailyLogRepository(Protocol):
    """Persistence interface for weeks, daily records, meals and line items.

    Rows are assumed to be pre-filtered to the acting user by the store.
    Inserts that collide on a unique key raise ``UniqueViolationError``.
    """

    def get_daily_record(self, user_id: UUID, log_date: date) -> DailyRecord | None:
        """Return the daily record for a user and date, if present."""

    def create_daily_record(
        self, user_id: UUID, week_id: UUID, log_date: date
    ) -> DailyRecord:
        """Insert a daily record with zeroed totals."""

    def list_daily_records(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailyRecord]:
        """Return daily records between two dates inclusive, ordered by date."""

    def get_week_by_start(self, user_id: UUID, start_date: date) -> WeekRecord | None:
        """Return the week starting exactly on a date."""

    def find_week_containing(self, user_id: UUID, day: date) -> WeekRecord | None:
        """Return a week whose range contains a date."""

    def create_week(
        self, user_id: UUID, start_date: date, end_date: date
    ) -> WeekRecord:
        """Insert a week row."""

    def list_meals(self, daily_record_id: UUID) -> list[Meal]:
        """Return meals with items, ordered by meal order then item order."""

    def create_meal(self, meal: Meal) -> None:
        """Insert a meal row (items are inserted separately)."""

    def create_line_item(self, item: LineItem) -> None:
        """Insert a meal line item."""

    def delete_line_item(self, item_id: UUID) -> None:
        """Delete a single meal line item."""

    def delete_line_items(self, meal_id: UUID) -> None:
        """Delete every line item of a meal."""

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal row."""

    def update_totals(self, daily_record_id: UUID, nutrients: NutrientProfile) -> None:
        """Persist the summed nutrient totals of a day."""

    def update_water_intake(self, daily_record_id: UUID, water_intake: float) -> None:
        """Persist the water intake of a day."""

    def update_locked(self, daily_record_id: UUID, is_locked: bool) -> None:
        """Persist the lock flag of a day."""


def week_bounds(day: date, first_weekday: int = SUNDAY) -> tuple[date, date]:
    """Return the first and last date of the week containing a day."""
    offset = (day.weekday() - first_weekday) % 7
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=6)


def create_or_get(
    create: Callable[[], T], fetch: Callable[[], T | None]
) -> CreateResult[T]:
    """Insert a row, or re-read it once if a concurrent writer got there first."""
    try:
        return CreateResult(record=create(), created=True)
    except UniqueViolationError:
        existing = fetch()
        if existing is None:
            raise
        _logger.info("Create raced with another writer, using existing row")
        return CreateResult(record=existing, created=False)


def resolve_week(
    repository: DailyLogRepository,
    user_id: UUID,
    day: date,
    first_weekday: int = SUNDAY,
) -> CreateResult[WeekRecord]:
    """Find the week holding a day by exact start, then by range, else create it.

    The range lookup keeps weeks written under an older start-of-week
    convention reachable.
    """
    start, end = week_bounds(day, first_weekday)
    week = repository.get_week_by_start(user_id, start)
    if week is None:
        week = repository.find_week_containing(user_id, day)
    if week is not None:
        return CreateResult(record=week, created=False)
    return create_or_get(
        lambda: repository.create_week(user_id, start, end),
        lambda: repository.get_week_by_start(user_id, start),
    )


def get_or_create_day(
    repository: DailyLogRepository,
    user_id: UUID,
    log_date: date,
    first_weekday: int = SUNDAY,
) -> CreateResult[DailyRecord]:
    """Return the daily record for a date, creating it and its week lazily."""
    record = repository.get_daily_record(user_id, log_date)
    if record is not None:
        return CreateResult(record=record, created=False)
    week = resolve_week(repository, user_id, log_date, first_weekday).record
    return create_or_get(
        lambda: repository.create_daily_record(user_id, week.id, log_date),
        lambda: repository.get_daily_record(user_id, log_date),
    )


def week_overview(
    repository: DailyLogRepository,
    user_id: UUID,
    day: date,
    first_weekday: int = SUNDAY,
) -> list[tuple[date, DailyRecord | None]]:
    """Return every date of the week containing a day with its record, if any.

    Read only: days that were never opened have no record and are not created.
    """
    start, end = week_bounds(day, first_weekday)
    records = {
        record.log_date: record
        for record in repository.list_daily_records(user_id, start, end)
    }
    return [
        (start + timedelta(days=offset), records.get(start + timedelta(days=offset)))
        for offset in range(7)
    ]
