"""Domain models for the user food library."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from nutrilog.domain.nutrition import NutrientProfile


@dataclass(frozen=True)
class LibraryFood:
    """Represents a food entry in a user's library."""

    id: UUID
    user_id: UUID
    name: str
    default_amount: str
    nutrients: NutrientProfile
    usage_count: int
    last_used_at: datetime | None
