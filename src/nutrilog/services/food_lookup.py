"""Food composition lookup backed by USDA FDC."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nutrilog.adapters.fdc_client import FdcClient
from nutrilog.domain.nutrition import (
    FoodCandidate,
    FoodPortion,
    FoodReferenceProfile,
    NutrientProfile,
)
from nutrilog.errors import LookupUnavailableError
from nutrilog.services.cache import Cache
from nutrilog.services.conversion import resolve_reference

_NUTRIENT_IDS = {
    1008: "calories",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    1051: "water",
}

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class FoodLookupService:
    """Searches FDC foods and resolves their per-cup reference profiles."""

    fdc_client: FdcClient
    cache: Cache
    configured: bool = True
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    debug: bool = False
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int = 10) -> list[FoodCandidate]:
        """Search FDC foods, normalised to per-100g profiles.

        Raises ``LookupUnavailableError`` when FDC cannot be reached.
        """
        cleaned = query.strip()
        if not cleaned:
            return []
        cache_key = f"fdc:search:{cleaned.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._fetch(
            lambda: self.fdc_client.search_foods(cleaned, page_size=limit),
            action="search",
        )
        foods = [_parse_candidate(food) for food in payload.get("foods") or []]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        if self.debug:
            _logger.info("Food search FDC: query=%s results=%s", cleaned, len(foods))
        return foods

    async def get_portions(self, fdc_id: int) -> list[FoodPortion]:
        """Return the portion list of a food from its detail record."""
        cache_key = f"fdc:portions:{fdc_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._fetch(
            lambda: self.fdc_client.get_food(fdc_id),
            action=f"get_food:{fdc_id}",
        )
        portions = _parse_portions(payload)
        self.cache.set(cache_key, portions, ttl_seconds=self.food_ttl_seconds)
        return portions

    async def select(self, candidate: FoodCandidate) -> FoodReferenceProfile:
        """Resolve a chosen candidate into a reference profile.

        Portions missing from the search result are fetched; if that fails the
        food stays on its per-100g basis.
        """
        portions = candidate.portions
        if not portions:
            try:
                portions = await self.get_portions(candidate.fdc_id)
            except LookupUnavailableError:
                _logger.warning(
                    "Portion lookup failed for fdc_id=%s, using per 100g",
                    candidate.fdc_id,
                )
                portions = []
        return resolve_reference(candidate.per_100g, portions)

    async def _fetch(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Run an FDC request, retrying briefly before giving up."""
        if not self.configured:
            raise LookupUnavailableError("Food search is not configured")
        attempts = self.retry_attempts + 1
        for attempt in range(1, attempts + 1):
            try:
                return await func()
            except Exception as exc:
                status = _http_status(exc)
                if self.debug:
                    _logger.warning(
                        "FDC %s attempt %s/%s failed (status=%s): %s",
                        action,
                        attempt,
                        attempts,
                        status,
                        exc,
                    )
                if attempt == attempts:
                    raise LookupUnavailableError(
                        f"Food search is unavailable (status {status})"
                    ) from exc
            await asyncio.sleep(self.retry_delay_seconds)
        raise ValueError("retry_attempts must not be negative")


def _http_status(exc: Exception) -> str:
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    return str(code) if isinstance(code, int) else "n/a"


def _parse_candidate(food: dict[str, object]) -> FoodCandidate:
    return FoodCandidate(
        fdc_id=int(food["fdcId"]),
        description=str(food.get("description", "")),
        per_100g=_extract_nutrients(food.get("foodNutrients") or []),
        portions=_parse_portions(food),
        brand_owner=food.get("brandOwner"),
        data_type=food.get("dataType"),
    )


def _extract_nutrients(food_nutrients: list[dict[str, object]]) -> NutrientProfile:
    """Pick the tracked nutrients out of search or detail nutrient rows."""
    values: dict[str, float] = {}
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = nutrient.get("value", nutrient.get("amount"))
        name = _NUTRIENT_IDS.get(nutrient_id)
        if name is not None and amount is not None:
            values[name] = float(amount)
    return NutrientProfile(**values)


def _parse_portions(payload: dict[str, object]) -> list[FoodPortion]:
    """Read portions from detail ``foodPortions`` or search ``foodMeasures``."""
    portions: list[FoodPortion] = []
    for portion in payload.get("foodPortions") or []:
        unit_name = (portion.get("measureUnit") or {}).get("name")
        if unit_name and unit_name != "undetermined":
            label = str(unit_name)
        else:
            label = str(
                portion.get("modifier") or portion.get("portionDescription") or ""
            )
        gram_weight = portion.get("gramWeight")
        if not label or gram_weight is None:
            continue
        portions.append(
            FoodPortion(
                unit=label,
                gram_weight=float(gram_weight),
                amount=float(portion.get("amount") or 1),
            )
        )
    for measure in payload.get("foodMeasures") or []:
        label = str(measure.get("disseminationText") or "")
        gram_weight = measure.get("gramWeight")
        if not label or gram_weight is None:
            continue
        portions.append(FoodPortion(unit=label, gram_weight=float(gram_weight)))
    return portions
