"""Supabase repository for recipes and recipe items."""

from dataclasses import dataclass, replace
from uuid import UUID

from supabase import Client

from nutrilog.domain.logs import LineItem
from nutrilog.domain.nutrition import NUTRIENT_FIELDS, NutrientProfile
from nutrilog.domain.recipes import Recipe
from nutrilog.services.recipes import RecipeRepository


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase implementation for recipe persistence."""

    client: Client

    def create_recipe(
        self, user_id: UUID, name: str, servings: int, notes: str | None
    ) -> Recipe:
        response = (
            self.client.table("recipes")
            .insert(
                {
                    "user_id": str(user_id),
                    "name": name,
                    "servings": servings,
                    "notes": notes,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create recipe")
        return _parse_recipe(response.data[0])

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        """Return a recipe with its items ordered by item order."""
        response = (
            self.client.table("recipes")
            .select("*")
            .eq("id", str(recipe_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        recipe = _parse_recipe(response.data[0])
        return replace(recipe, items=tuple(self.list_recipe_items(recipe_id)))

    def list_recipes(self, user_id: UUID) -> list[Recipe]:
        response = (
            self.client.table("recipes")
            .select("*")
            .eq("user_id", str(user_id))
            .order("name", desc=False)
            .execute()
        )
        return [_parse_recipe(row) for row in response.data or []]

    def create_recipe_item(self, item: LineItem) -> None:
        self.client.table("recipe_items").insert(
            {
                "id": str(item.id),
                "recipe_id": str(item.parent_id),
                "food_id": str(item.food_id) if item.food_id else None,
                "food_name": item.name,
                "amount": item.serving_text,
                "order": item.order,
                **item.nutrients.as_dict(),
            }
        ).execute()

    def delete_recipe_item(self, item_id: UUID) -> None:
        self.client.table("recipe_items").delete().eq("id", str(item_id)).execute()

    def list_recipe_items(self, recipe_id: UUID) -> list[LineItem]:
        response = (
            self.client.table("recipe_items")
            .select("*")
            .eq("recipe_id", str(recipe_id))
            .order("order", desc=False)
            .execute()
        )
        return [_parse_item(row) for row in response.data or []]

    def update_recipe_totals(self, recipe_id: UUID, totals: NutrientProfile) -> None:
        self.client.table("recipes").update(
            {f"total_{field}": getattr(totals, field) for field in NUTRIENT_FIELDS}
        ).eq("id", str(recipe_id)).execute()


def _parse_recipe(row: dict[str, object]) -> Recipe:
    return Recipe(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
        servings=int(row.get("servings") or 1),
        totals=NutrientProfile.from_mapping(
            {field: row.get(f"total_{field}") for field in NUTRIENT_FIELDS}
        ),
        notes=row.get("notes"),
    )


def _parse_item(row: dict[str, object]) -> LineItem:
    return LineItem(
        id=UUID(str(row["id"])),
        parent_id=UUID(str(row["recipe_id"])),
        name=str(row.get("food_name", "")),
        serving_text=str(row.get("amount", "")),
        nutrients=NutrientProfile.from_mapping(row),
        order=int(row.get("order") or 0),
        food_id=UUID(str(row["food_id"])) if row.get("food_id") else None,
    )
