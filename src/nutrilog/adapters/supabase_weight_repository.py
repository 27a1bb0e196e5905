"""Supabase repository for weight logs."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from nutrilog.adapters.supabase_errors import insert_or_raise_conflict
from nutrilog.domain.weight import WeightEntry
from nutrilog.services.weight import WeightRepository


@dataclass
class SupabaseWeightRepository(WeightRepository):
    """Supabase implementation for weight persistence."""

    client: Client

    def get_entry(self, user_id: UUID, log_date: date) -> WeightEntry | None:
        response = (
            self.client.table("weight_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("log_date", log_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def create_entry(
        self, user_id: UUID, log_date: date, weight: float, notes: str | None
    ) -> WeightEntry:
        payload = {
            "user_id": str(user_id),
            "log_date": log_date.isoformat(),
            "weight": weight,
            "notes": notes,
        }
        response = insert_or_raise_conflict(
            lambda: self.client.table("weight_logs").insert(payload).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create weight entry")
        return _parse_entry(response.data[0])

    def update_entry(self, entry_id: UUID, weight: float, notes: str | None) -> None:
        self.client.table("weight_logs").update(
            {"weight": weight, "notes": notes}
        ).eq("id", str(entry_id)).execute()

    def delete_entry(self, entry_id: UUID) -> None:
        self.client.table("weight_logs").delete().eq("id", str(entry_id)).execute()

    def list_entries(self, user_id: UUID) -> list[WeightEntry]:
        """Return entries newest first."""
        response = (
            self.client.table("weight_logs")
            .select("*")
            .eq("user_id", str(user_id))
            .order("log_date", desc=True)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


def _parse_entry(row: dict[str, object]) -> WeightEntry:
    return WeightEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        log_date=date.fromisoformat(str(row["log_date"])),
        weight=float(row.get("weight") or 0.0),
        notes=row.get("notes"),
    )
