"""Recipe building and per-serving nutrients."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from nutrilog.domain.logs import LineItem
from nutrilog.domain.nutrition import (
    FoodReferenceProfile,
    NutrientProfile,
    ReferenceBasis,
)
from nutrilog.domain.recipes import Recipe
from nutrilog.errors import RecordNotFoundError
from nutrilog.services.aggregation import aggregate, item_profiles
from nutrilog.services.reconciler import next_item_order


class RecipeRepository(Protocol):
    """Persistence interface for recipes and their ingredients."""

    def create_recipe(
        self, user_id: UUID, name: str, servings: int, notes: str | None
    ) -> Recipe:
        """Create an empty recipe."""

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        """Return a recipe with its items ordered by item order."""

    def list_recipes(self, user_id: UUID) -> list[Recipe]:
        """Return a user's recipes without items."""

    def create_recipe_item(self, item: LineItem) -> None:
        """Insert a recipe ingredient."""

    def delete_recipe_item(self, item_id: UUID) -> None:
        """Delete a recipe ingredient."""

    def list_recipe_items(self, recipe_id: UUID) -> list[LineItem]:
        """Return the ingredients of a recipe ordered by item order."""

    def update_recipe_totals(self, recipe_id: UUID, totals: NutrientProfile) -> None:
        """Persist the summed totals of a recipe."""


@dataclass
class RecipeService:
    """Maintains recipes and keeps their cached totals in line with items."""

    repository: RecipeRepository

    def create(
        self, user_id: UUID, name: str, servings: int = 1, notes: str | None = None
    ) -> Recipe:
        if servings < 1:
            raise ValueError("A recipe needs at least one serving")
        return self.repository.create_recipe(user_id, name, servings, notes)

    def get(self, recipe_id: UUID) -> Recipe:
        recipe = self.repository.get_recipe(recipe_id)
        if recipe is None:
            raise RecordNotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    def list_for_user(self, user_id: UUID) -> list[Recipe]:
        return self.repository.list_recipes(user_id)

    def add_item(
        self,
        recipe_id: UUID,
        name: str,
        serving_text: str,
        nutrients: NutrientProfile,
        food_id: UUID | None = None,
    ) -> Recipe:
        """Append an ingredient and refresh the recipe totals."""
        items = self.repository.list_recipe_items(recipe_id)
        self.repository.create_recipe_item(
            LineItem(
                id=uuid4(),
                parent_id=recipe_id,
                name=name,
                serving_text=serving_text,
                nutrients=nutrients,
                order=next_item_order(items),
                food_id=food_id,
            )
        )
        return self._refresh_totals(recipe_id)

    def delete_item(self, recipe_id: UUID, item_id: UUID) -> Recipe:
        self.repository.delete_recipe_item(item_id)
        return self._refresh_totals(recipe_id)

    @staticmethod
    def per_serving(recipe: Recipe) -> NutrientProfile:
        """Totals divided by servings, rounded for display."""
        return recipe.totals.scaled(1 / max(recipe.servings, 1)).rounded()

    @classmethod
    def reference(cls, recipe: Recipe) -> FoodReferenceProfile:
        """One serving of a recipe is logged as one cup-equivalent."""
        return FoodReferenceProfile(
            profile=cls.per_serving(recipe), basis=ReferenceBasis.PER_CUP
        )

    def _refresh_totals(self, recipe_id: UUID) -> Recipe:
        items = self.repository.list_recipe_items(recipe_id)
        totals = aggregate(item_profiles(items))
        self.repository.update_recipe_totals(recipe_id, totals)
        return self.get(recipe_id)
