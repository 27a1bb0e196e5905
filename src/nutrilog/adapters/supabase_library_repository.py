"""Supabase implementation for the user food library."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrilog.adapters.supabase_errors import insert_or_raise_conflict
from nutrilog.domain.library import LibraryFood
from nutrilog.domain.nutrition import NUTRIENT_FIELDS, NutrientProfile
from nutrilog.services.library import LibraryRepository


@dataclass
class SupabaseLibraryRepository(LibraryRepository):
    """Library foods stored in the `foods` table, one row per serving profile."""

    client: Client

    def create_food(
        self,
        user_id: UUID,
        name: str,
        default_amount: str,
        nutrients: NutrientProfile,
    ) -> LibraryFood:
        payload = {
            "user_id": str(user_id),
            "name": name,
            "default_amount": default_amount,
            "usage_count": 0,
        }
        for field in NUTRIENT_FIELDS:
            payload[f"{field}_per_serving"] = getattr(nutrients, field)
        response = insert_or_raise_conflict(
            lambda: self.client.table("foods").insert(payload).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create food entry")
        return _parse_food(response.data[0])

    def find_by_name(self, user_id: UUID, name: str) -> LibraryFood | None:
        # ilike without wildcards is a case-insensitive equality match.
        query = self._user_foods(user_id).ilike("name", name)
        return _first(query.limit(1).execute().data)

    def get_food(self, food_id: UUID) -> LibraryFood | None:
        query = self._foods().select("*").eq("id", str(food_id))
        return _first(query.limit(1).execute().data)

    def search_foods(self, user_id: UUID, query: str, limit: int) -> list[LibraryFood]:
        response = (
            self._user_foods(user_id)
            .ilike("name", f"%{query}%")
            .order("name")
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def list_top_foods(self, user_id: UUID, limit: int) -> list[LibraryFood]:
        response = (
            self._user_foods(user_id)
            .order("last_used_at", desc=True)
            .order("usage_count", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def increment_usage(self, food_id: UUID, used_at: datetime) -> None:
        """Read-modify-write of the counter; concurrent bumps may collapse."""
        food = self.get_food(food_id)
        if food is None:
            return
        self._foods().update(
            {"usage_count": food.usage_count + 1, "last_used_at": used_at.isoformat()}
        ).eq("id", str(food_id)).execute()

    def delete_food(self, food_id: UUID) -> None:
        self._foods().delete().eq("id", str(food_id)).execute()

    def _foods(self):
        return self.client.table("foods")

    def _user_foods(self, user_id: UUID):
        return self._foods().select("*").eq("user_id", str(user_id))


def _first(rows: list[dict[str, object]] | None) -> LibraryFood | None:
    return _parse_food(rows[0]) if rows else None


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_food(row: dict[str, object]) -> LibraryFood:
    nutrients = {field: row.get(f"{field}_per_serving") for field in NUTRIENT_FIELDS}
    return LibraryFood(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name") or ""),
        default_amount=str(row.get("default_amount") or ""),
        nutrients=NutrientProfile.from_mapping(nutrients),
        usage_count=int(row.get("usage_count") or 0),
        last_used_at=_parse_timestamp(row.get("last_used_at")),
    )
