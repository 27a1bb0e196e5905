"""Supabase repository for weeks, daily logs, meals and meal items."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from nutrilog.adapters.supabase_errors import insert_or_raise_conflict
from nutrilog.domain.logs import (
    AggregateTotals,
    DailyRecord,
    LineItem,
    Meal,
    WeekRecord,
)
from nutrilog.domain.nutrition import NutrientProfile
from nutrilog.services.days import DailyLogRepository

_TOTAL_COLUMNS = {
    "calories": "total_calories",
    "protein": "total_protein",
    "carbs": "total_carbs",
    "fat": "total_fat",
    "fiber": "total_fiber",
    "water": "total_water",
}


@dataclass
class SupabaseDailyLogRepository(DailyLogRepository):
    """Supabase implementation for the daily log tables."""

    client: Client

    def get_daily_record(self, user_id: UUID, log_date: date) -> DailyRecord | None:
        """Return the daily log for a user and date."""
        response = (
            self.client.table("daily_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("log_date", log_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_daily_record(response.data[0])

    def create_daily_record(
        self, user_id: UUID, week_id: UUID, log_date: date
    ) -> DailyRecord:
        """Insert a daily log with zeroed totals."""
        payload = {
            "user_id": str(user_id),
            "week_id": str(week_id),
            "log_date": log_date.isoformat(),
            "water_intake": 0,
            "is_locked": False,
            **{column: 0 for column in _TOTAL_COLUMNS.values()},
        }
        response = insert_or_raise_conflict(
            lambda: self.client.table("daily_logs").insert(payload).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create daily log")
        return _parse_daily_record(response.data[0])

    def list_daily_records(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailyRecord]:
        """Return daily logs in a date range, oldest first."""
        response = (
            self.client.table("daily_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .gte("log_date", start.isoformat())
            .lte("log_date", end.isoformat())
            .order("log_date", desc=False)
            .execute()
        )
        return [_parse_daily_record(row) for row in response.data or []]

    def get_week_by_start(self, user_id: UUID, start_date: date) -> WeekRecord | None:
        """Return the week starting on a date."""
        response = (
            self.client.table("weeks")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("start_date", start_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_week(response.data[0])

    def find_week_containing(self, user_id: UUID, day: date) -> WeekRecord | None:
        """Return a week whose range contains the day."""
        response = (
            self.client.table("weeks")
            .select("*")
            .eq("user_id", str(user_id))
            .lte("start_date", day.isoformat())
            .gte("end_date", day.isoformat())
            .order("start_date", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_week(response.data[0])

    def create_week(
        self, user_id: UUID, start_date: date, end_date: date
    ) -> WeekRecord:
        """Insert a week row."""
        payload = {
            "user_id": str(user_id),
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }
        response = insert_or_raise_conflict(
            lambda: self.client.table("weeks").insert(payload).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create week")
        return _parse_week(response.data[0])

    def list_meals(self, daily_record_id: UUID) -> list[Meal]:
        """Return meals with their items."""
        response = (
            self.client.table("meals")
            .select("*, meal_items(*)")
            .eq("daily_log_id", str(daily_record_id))
            .order("meal_order", desc=False)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def create_meal(self, meal: Meal) -> None:
        """Insert a meal row."""
        self.client.table("meals").insert(
            {
                "id": str(meal.id),
                "daily_log_id": str(meal.daily_record_id),
                "meal_type": meal.meal_type,
                "meal_order": meal.meal_order,
                "preparation_notes": meal.preparation_notes,
            }
        ).execute()

    def create_line_item(self, item: LineItem) -> None:
        """Insert a meal item row."""
        self.client.table("meal_items").insert(
            {
                "id": str(item.id),
                "meal_id": str(item.parent_id),
                "food_id": str(item.food_id) if item.food_id else None,
                "recipe_id": str(item.recipe_id) if item.recipe_id else None,
                "food_name": item.name,
                "amount": item.serving_text,
                "notes": item.notes,
                "order": item.order,
                **item.nutrients.as_dict(),
            }
        ).execute()

    def delete_line_item(self, item_id: UUID) -> None:
        self.client.table("meal_items").delete().eq("id", str(item_id)).execute()

    def delete_line_items(self, meal_id: UUID) -> None:
        self.client.table("meal_items").delete().eq("meal_id", str(meal_id)).execute()

    def delete_meal(self, meal_id: UUID) -> None:
        self.client.table("meals").delete().eq("id", str(meal_id)).execute()

    def update_totals(self, daily_record_id: UUID, nutrients: NutrientProfile) -> None:
        """Write the summed totals of a day."""
        self.client.table("daily_logs").update(
            {
                column: getattr(nutrients, name)
                for name, column in _TOTAL_COLUMNS.items()
            }
        ).eq("id", str(daily_record_id)).execute()

    def update_water_intake(self, daily_record_id: UUID, water_intake: float) -> None:
        self.client.table("daily_logs").update({"water_intake": water_intake}).eq(
            "id", str(daily_record_id)
        ).execute()

    def update_locked(self, daily_record_id: UUID, is_locked: bool) -> None:
        self.client.table("daily_logs").update({"is_locked": is_locked}).eq(
            "id", str(daily_record_id)
        ).execute()


def _parse_week(row: dict[str, object]) -> WeekRecord:
    return WeekRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
    )


def _parse_daily_record(row: dict[str, object]) -> DailyRecord:
    nutrients = NutrientProfile.from_mapping(
        {name: row.get(column) for name, column in _TOTAL_COLUMNS.items()}
    )
    return DailyRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        week_id=UUID(str(row["week_id"])),
        log_date=date.fromisoformat(str(row["log_date"])),
        totals=AggregateTotals(
            nutrients=nutrients,
            water_intake=float(row.get("water_intake") or 0.0),
        ),
        is_locked=bool(row.get("is_locked", False)),
    )


def _parse_meal(row: dict[str, object]) -> Meal:
    items = sorted(
        (_parse_item(item) for item in row.get("meal_items") or []),
        key=lambda item: item.order,
    )
    return Meal(
        id=UUID(str(row["id"])),
        daily_record_id=UUID(str(row["daily_log_id"])),
        meal_type=str(row.get("meal_type", "")),
        meal_order=int(row.get("meal_order") or 0),
        items=tuple(items),
        preparation_notes=row.get("preparation_notes"),
    )


def _parse_item(row: dict[str, object]) -> LineItem:
    return LineItem(
        id=UUID(str(row["id"])),
        parent_id=UUID(str(row["meal_id"])),
        name=str(row.get("food_name", "")),
        serving_text=str(row.get("amount", "")),
        nutrients=NutrientProfile.from_mapping(row),
        order=int(row.get("order") or 0),
        food_id=UUID(str(row["food_id"])) if row.get("food_id") else None,
        recipe_id=UUID(str(row["recipe_id"])) if row.get("recipe_id") else None,
        notes=row.get("notes"),
    )
