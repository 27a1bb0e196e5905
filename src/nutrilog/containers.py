"""Wiring of settings, stores, clients and services."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import create_client

from nutrilog.adapters.fdc_client import FdcClient, HttpxFdcClient
from nutrilog.adapters.supabase_daily_log_repository import (
    SupabaseDailyLogRepository,
)
from nutrilog.adapters.supabase_library_repository import SupabaseLibraryRepository
from nutrilog.adapters.supabase_notes_repository import SupabaseNotesRepository
from nutrilog.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutrilog.adapters.supabase_recipe_repository import SupabaseRecipeRepository
from nutrilog.adapters.supabase_weight_repository import SupabaseWeightRepository
from nutrilog.config import Settings, parse_week_start
from nutrilog.services.cache import InMemoryCache
from nutrilog.services.days import DailyLogRepository
from nutrilog.services.drafts import DraftService
from nutrilog.services.food_lookup import FoodLookupService
from nutrilog.services.goals import GoalsRepository
from nutrilog.services.library import LibraryService
from nutrilog.services.notes import NotesService
from nutrilog.services.recipes import RecipeService
from nutrilog.services.reconciler import DailyLogReconciler
from nutrilog.services.weight import WeightService


@dataclass
class AppContainer:
    """Process-wide services and the resources they share."""

    settings: Settings
    fdc_client: FdcClient
    daily_log_repository: DailyLogRepository
    goals_repository: GoalsRepository
    food_lookup_service: FoodLookupService
    library_service: LibraryService
    recipe_service: RecipeService
    weight_service: WeightService
    draft_service: DraftService
    notes_service: NotesService
    first_weekday: int
    close_resources: Callable[[], Awaitable[None]]

    def open_day(self, user_id: UUID, log_date: date) -> DailyLogReconciler:
        """Return an unresolved reconciler for one user's day."""
        return DailyLogReconciler(
            repository=self.daily_log_repository,
            user_id=user_id,
            log_date=log_date,
            first_weekday=self.first_weekday,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Wire Supabase repositories and the FDC client from settings."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    cache = InMemoryCache()
    draft_service = DraftService(cache)
    food_lookup_service = FoodLookupService(
        fdc_client=fdc_client,
        cache=cache,
        configured=bool(resolved_settings.fdc_api_key),
        debug=resolved_settings.lookup_debug,
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        fdc_client=fdc_client,
        daily_log_repository=SupabaseDailyLogRepository(supabase_client),
        goals_repository=SupabaseProfileRepository(supabase_client),
        food_lookup_service=food_lookup_service,
        library_service=LibraryService(SupabaseLibraryRepository(supabase_client)),
        recipe_service=RecipeService(SupabaseRecipeRepository(supabase_client)),
        weight_service=WeightService(SupabaseWeightRepository(supabase_client)),
        draft_service=draft_service,
        notes_service=NotesService(
            SupabaseNotesRepository(supabase_client), drafts=draft_service
        ),
        first_weekday=parse_week_start(resolved_settings.week_start),
        close_resources=close_resources,
    )
