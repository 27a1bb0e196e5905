"""Weight tracking domain models."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID


@dataclass(frozen=True)
class WeightEntry:
    """Body weight logged for one date."""

    id: UUID
    user_id: UUID
    log_date: date
    weight: float
    notes: str | None = None


@dataclass(frozen=True)
class WeightChange:
    """Change between the two most recent entries."""

    amount: float
    direction: str


@dataclass(frozen=True)
class WeightStats:
    """Summary over a range of entries."""

    highest: float
    lowest: float
    average: float
    change: float
