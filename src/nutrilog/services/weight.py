"""Body weight logging and summaries."""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrilog.domain.nutrition import round_half_up
from nutrilog.domain.weight import WeightChange, WeightEntry, WeightStats
from nutrilog.services.days import create_or_get


class WeightRepository(Protocol):
    """Persistence interface for weight entries."""

    def get_entry(self, user_id: UUID, log_date: date) -> WeightEntry | None:
        """Return the entry for a date, if present."""

    def create_entry(
        self, user_id: UUID, log_date: date, weight: float, notes: str | None
    ) -> WeightEntry:
        """Insert an entry; unique per user and date."""

    def update_entry(
        self, entry_id: UUID, weight: float, notes: str | None
    ) -> None:
        """Update weight and notes of an entry."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry."""

    def list_entries(self, user_id: UUID) -> list[WeightEntry]:
        """Return entries newest first."""


@dataclass
class WeightService:
    """Logs one weight per day and summarises trends."""

    repository: WeightRepository

    def log(
        self, user_id: UUID, log_date: date, weight: float, notes: str | None = None
    ) -> WeightEntry:
        """Record the weight for a date, replacing any earlier value that day."""
        if weight <= 0:
            raise ValueError("Weight must be positive")
        result = create_or_get(
            lambda: self.repository.create_entry(user_id, log_date, weight, notes),
            lambda: self.repository.get_entry(user_id, log_date),
        )
        if result.created:
            return result.record
        self.repository.update_entry(result.record.id, weight, notes)
        return replace(result.record, weight=weight, notes=notes)

    def delete(self, entry_id: UUID) -> None:
        self.repository.delete_entry(entry_id)

    def history(self, user_id: UUID) -> list[WeightEntry]:
        return self.repository.list_entries(user_id)

    def latest_change(self, user_id: UUID) -> WeightChange | None:
        """Change from the previous entry to the latest one."""
        entries = self.repository.list_entries(user_id)
        if len(entries) < 2:
            return None
        change = entries[0].weight - entries[1].weight
        if change > 0:
            direction = "up"
        elif change < 0:
            direction = "down"
        else:
            direction = "same"
        return WeightChange(amount=round_half_up(abs(change), 1), direction=direction)

    def stats(
        self, user_id: UUID, time_range: str, today: date | None = None
    ) -> WeightStats | None:
        """Highest, lowest, average and net change over a range."""
        cutoff = range_start(time_range, today or date.today())
        entries = [
            entry
            for entry in self.repository.list_entries(user_id)
            if cutoff is None or entry.log_date >= cutoff
        ]
        if not entries:
            return None
        weights = [entry.weight for entry in sorted(entries, key=lambda e: e.log_date)]
        return WeightStats(
            highest=max(weights),
            lowest=min(weights),
            average=round_half_up(sum(weights) / len(weights), 1),
            change=round_half_up(weights[-1] - weights[0], 1),
        )


def range_start(time_range: str, today: date) -> date | None:
    if time_range == "week":
        return today - timedelta(days=7)
    if time_range == "month":
        return today.replace(day=1)
    if time_range == "year":
        return today.replace(month=1, day=1)
    if time_range == "all":
        return None
    raise ValueError(f"Unknown range: {time_range}")
