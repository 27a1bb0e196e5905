"""Services for managing the user food library."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutrilog.domain.library import LibraryFood
from nutrilog.domain.nutrition import (
    FoodReferenceProfile,
    NutrientProfile,
    ReferenceBasis,
)
from nutrilog.services.days import create_or_get


class LibraryRepository(Protocol):
    """Storage for foods a user has logged before."""

    def create_food(
        self,
        user_id: UUID,
        name: str,
        default_amount: str,
        nutrients: NutrientProfile,
    ) -> LibraryFood:
        """Insert a food; a duplicate name raises UniqueViolationError."""

    def find_by_name(self, user_id: UUID, name: str) -> LibraryFood | None:
        """Return a food whose name matches case-insensitively."""

    def get_food(self, food_id: UUID) -> LibraryFood | None:
        """Return a food entry by id, if present."""

    def search_foods(self, user_id: UUID, query: str, limit: int) -> list[LibraryFood]:
        """Return foods whose name contains the query."""

    def list_top_foods(self, user_id: UUID, limit: int) -> list[LibraryFood]:
        """Return the most used foods of a user."""

    def increment_usage(self, food_id: UUID, used_at: datetime) -> None:
        """Bump usage_count and set last_used_at."""

    def delete_food(self, food_id: UUID) -> None:
        """Delete a food entry."""


@dataclass
class LibraryService:
    """Remembers foods so they can be re-logged without a lookup."""

    repository: LibraryRepository

    def remember(
        self,
        user_id: UUID,
        name: str,
        default_amount: str,
        nutrients: NutrientProfile,
    ) -> LibraryFood:
        """Return the library food with this name, adding it on first use."""
        cleaned = name.strip()
        existing = self.repository.find_by_name(user_id, cleaned)
        if existing is not None:
            return existing
        result = create_or_get(
            lambda: self.repository.create_food(
                user_id, cleaned, default_amount, nutrients
            ),
            lambda: self.repository.find_by_name(user_id, cleaned),
        )
        return result.record

    def search(
        self, user_id: UUID, query: str | None, limit: int = 10
    ) -> list[LibraryFood]:
        """Search the library, falling back to top foods when query is empty."""
        cleaned = (query or "").strip()
        if cleaned:
            foods = self.repository.search_foods(user_id, cleaned, limit)
        else:
            foods = self.repository.list_top_foods(user_id, limit)
        return _most_recent_first(foods)

    def record_use(self, food_id: UUID) -> None:
        """Stamp a food as just used."""
        self.repository.increment_usage(food_id, used_at=datetime.now(tz=UTC))

    def delete(self, food_id: UUID) -> None:
        self.repository.delete_food(food_id)

    @staticmethod
    def reference(food: LibraryFood) -> FoodReferenceProfile:
        """Library foods are entered per 1 cup."""
        return FoodReferenceProfile(
            profile=food.nutrients, basis=ReferenceBasis.PER_CUP
        )


_NEVER_USED = datetime.min.replace(tzinfo=UTC)


def _most_recent_first(foods: list[LibraryFood]) -> list[LibraryFood]:
    # Recency wins; usage count breaks ties.
    return sorted(
        foods,
        key=lambda food: (food.last_used_at or _NEVER_USED, food.usage_count),
        reverse=True,
    )
