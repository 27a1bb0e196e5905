"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutrilog.adapters.fdc_client import FdcClient
from nutrilog.config import Settings
from nutrilog.containers import AppContainer
from nutrilog.domain.goals import DailyGoals
from nutrilog.domain.library import LibraryFood
from nutrilog.domain.logs import (
    AggregateTotals,
    DailyRecord,
    LineItem,
    Meal,
    WeekRecord,
)
from nutrilog.domain.notes import Note, NoteReply
from nutrilog.domain.nutrition import NutrientProfile
from nutrilog.domain.recipes import Recipe
from nutrilog.domain.weight import WeightEntry
from nutrilog.errors import UniqueViolationError
from nutrilog.services.cache import InMemoryCache
from nutrilog.services.days import SUNDAY, DailyLogRepository
from nutrilog.services.drafts import DraftService
from nutrilog.services.food_lookup import FoodLookupService
from nutrilog.services.goals import GoalsRepository
from nutrilog.services.library import LibraryRepository, LibraryService
from nutrilog.services.notes import NotesRepository, NotesService
from nutrilog.services.recipes import RecipeRepository, RecipeService
from nutrilog.services.weight import WeightRepository, WeightService


@dataclass
class InMemoryDailyLogRepository(DailyLogRepository):
    """In-memory daily log store enforcing the same unique keys as the database.

    Operation names listed in ``fail_on`` raise ``RuntimeError`` when called.
    """

    weeks: dict[UUID, WeekRecord] = field(default_factory=dict)
    records: dict[UUID, DailyRecord] = field(default_factory=dict)
    meals: dict[UUID, Meal] = field(default_factory=dict)
    items: dict[UUID, LineItem] = field(default_factory=dict)
    fail_on: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def get_daily_record(self, user_id: UUID, log_date: date) -> DailyRecord | None:
        self._call("get_daily_record")
        for record in self.records.values():
            if record.user_id == user_id and record.log_date == log_date:
                return record
        return None

    def create_daily_record(
        self, user_id: UUID, week_id: UUID, log_date: date
    ) -> DailyRecord:
        self._call("create_daily_record")
        if any(
            record.user_id == user_id and record.log_date == log_date
            for record in self.records.values()
        ):
            raise UniqueViolationError("daily_logs_user_id_log_date_key")
        record = DailyRecord(
            id=uuid4(), user_id=user_id, week_id=week_id, log_date=log_date
        )
        self.records[record.id] = record
        return record

    def list_daily_records(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailyRecord]:
        self._call("list_daily_records")
        return sorted(
            (
                record
                for record in self.records.values()
                if record.user_id == user_id and start <= record.log_date <= end
            ),
            key=lambda record: record.log_date,
        )

    def get_week_by_start(self, user_id: UUID, start_date: date) -> WeekRecord | None:
        self._call("get_week_by_start")
        for week in self.weeks.values():
            if week.user_id == user_id and week.start_date == start_date:
                return week
        return None

    def find_week_containing(self, user_id: UUID, day: date) -> WeekRecord | None:
        self._call("find_week_containing")
        for week in self.weeks.values():
            if week.user_id == user_id and week.contains(day):
                return week
        return None

    def create_week(
        self, user_id: UUID, start_date: date, end_date: date
    ) -> WeekRecord:
        self._call("create_week")
        if any(
            week.user_id == user_id and week.start_date == start_date
            for week in self.weeks.values()
        ):
            raise UniqueViolationError("weeks_user_id_start_date_key")
        week = WeekRecord(
            id=uuid4(), user_id=user_id, start_date=start_date, end_date=end_date
        )
        self.weeks[week.id] = week
        return week

    def list_meals(self, daily_record_id: UUID) -> list[Meal]:
        self._call("list_meals")
        meals = []
        for meal in self.meals.values():
            if meal.daily_record_id != daily_record_id:
                continue
            items = sorted(
                (item for item in self.items.values() if item.parent_id == meal.id),
                key=lambda item: item.order,
            )
            meals.append(replace(meal, items=tuple(items)))
        return sorted(meals, key=lambda meal: meal.meal_order)

    def create_meal(self, meal: Meal) -> None:
        self._call("create_meal")
        self.meals[meal.id] = replace(meal, items=())

    def create_line_item(self, item: LineItem) -> None:
        self._call("create_line_item")
        if item.parent_id not in self.meals:
            raise RuntimeError("meal_items_meal_id_fkey")
        self.items[item.id] = item

    def delete_line_item(self, item_id: UUID) -> None:
        self._call("delete_line_item")
        self.items.pop(item_id, None)

    def delete_line_items(self, meal_id: UUID) -> None:
        self._call("delete_line_items")
        for item_id in [i.id for i in self.items.values() if i.parent_id == meal_id]:
            del self.items[item_id]

    def delete_meal(self, meal_id: UUID) -> None:
        self._call("delete_meal")
        self.meals.pop(meal_id, None)

    def update_totals(self, daily_record_id: UUID, nutrients: NutrientProfile) -> None:
        self._call("update_totals")
        record = self.records[daily_record_id]
        self.records[daily_record_id] = replace(
            record, totals=replace(record.totals, nutrients=nutrients)
        )

    def update_water_intake(self, daily_record_id: UUID, water_intake: float) -> None:
        self._call("update_water_intake")
        record = self.records[daily_record_id]
        self.records[daily_record_id] = replace(
            record,
            totals=AggregateTotals(
                nutrients=record.totals.nutrients, water_intake=water_intake
            ),
        )

    def update_locked(self, daily_record_id: UUID, is_locked: bool) -> None:
        self._call("update_locked")
        self.records[daily_record_id] = replace(
            self.records[daily_record_id], is_locked=is_locked
        )


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with in-memory responses."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 173410,
                    "description": "Butter, salted",
                    "dataType": "SR Legacy",
                    "foodNutrients": [
                        {"nutrientId": 1008, "value": 717},
                        {"nutrientId": 1003, "value": 0.85},
                        {"nutrientId": 1005, "value": 0.06},
                        {"nutrientId": 1004, "value": 81.11},
                        {"nutrientId": 1051, "value": 15.87},
                    ],
                }
            ]
        }
    )
    food_payload: dict[str, object] = field(
        default_factory=lambda: {
            "fdcId": 173410,
            "description": "Butter, salted",
            "foodPortions": [
                {
                    "amount": 1,
                    "gramWeight": 14.2,
                    "measureUnit": {"name": "tbsp"},
                },
                {
                    "amount": 1,
                    "gramWeight": 227,
                    "measureUnit": {"name": "cup"},
                },
            ],
        }
    )
    failures: int = 0
    search_calls: list[str] = field(default_factory=list)
    food_calls: list[int] = field(default_factory=list)

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.search_calls.append(query)
        self._maybe_fail()
        return self.search_payload

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls.append(fdc_id)
        self._maybe_fail()
        return self.food_payload

    def _maybe_fail(self) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("FDC unavailable")


@dataclass
class InMemoryLibraryRepository(LibraryRepository):
    """In-memory library repository for tests."""

    foods: dict[UUID, LibraryFood] = field(default_factory=dict)

    def create_food(
        self,
        user_id: UUID,
        name: str,
        default_amount: str,
        nutrients: NutrientProfile,
    ) -> LibraryFood:
        food = LibraryFood(
            id=uuid4(),
            user_id=user_id,
            name=name,
            default_amount=default_amount,
            nutrients=nutrients,
            usage_count=0,
            last_used_at=None,
        )
        self.foods[food.id] = food
        return food

    def find_by_name(self, user_id: UUID, name: str) -> LibraryFood | None:
        for food in self.foods.values():
            if food.user_id == user_id and food.name.lower() == name.lower():
                return food
        return None

    def get_food(self, food_id: UUID) -> LibraryFood | None:
        return self.foods.get(food_id)

    def search_foods(self, user_id: UUID, query: str, limit: int) -> list[LibraryFood]:
        return [
            food
            for food in self.foods.values()
            if food.user_id == user_id and query.lower() in food.name.lower()
        ][:limit]

    def list_top_foods(self, user_id: UUID, limit: int) -> list[LibraryFood]:
        return [food for food in self.foods.values() if food.user_id == user_id][
            :limit
        ]

    def increment_usage(self, food_id: UUID, used_at: datetime) -> None:
        food = self.foods[food_id]
        self.foods[food_id] = replace(
            food, usage_count=food.usage_count + 1, last_used_at=used_at
        )

    def delete_food(self, food_id: UUID) -> None:
        self.foods.pop(food_id, None)


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    """In-memory recipe repository for tests."""

    recipes: dict[UUID, Recipe] = field(default_factory=dict)
    items: dict[UUID, LineItem] = field(default_factory=dict)

    def create_recipe(
        self, user_id: UUID, name: str, servings: int, notes: str | None
    ) -> Recipe:
        recipe = Recipe(
            id=uuid4(), user_id=user_id, name=name, servings=servings, notes=notes
        )
        self.recipes[recipe.id] = recipe
        return recipe

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return None
        return replace(recipe, items=tuple(self.list_recipe_items(recipe_id)))

    def list_recipes(self, user_id: UUID) -> list[Recipe]:
        return [r for r in self.recipes.values() if r.user_id == user_id]

    def create_recipe_item(self, item: LineItem) -> None:
        self.items[item.id] = item

    def delete_recipe_item(self, item_id: UUID) -> None:
        self.items.pop(item_id, None)

    def list_recipe_items(self, recipe_id: UUID) -> list[LineItem]:
        return sorted(
            (item for item in self.items.values() if item.parent_id == recipe_id),
            key=lambda item: item.order,
        )

    def update_recipe_totals(self, recipe_id: UUID, totals: NutrientProfile) -> None:
        self.recipes[recipe_id] = replace(self.recipes[recipe_id], totals=totals)


@dataclass
class InMemoryWeightRepository(WeightRepository):
    """In-memory weight repository, unique per user and date."""

    entries: dict[UUID, WeightEntry] = field(default_factory=dict)

    def get_entry(self, user_id: UUID, log_date: date) -> WeightEntry | None:
        for entry in self.entries.values():
            if entry.user_id == user_id and entry.log_date == log_date:
                return entry
        return None

    def create_entry(
        self, user_id: UUID, log_date: date, weight: float, notes: str | None
    ) -> WeightEntry:
        if self.get_entry(user_id, log_date) is not None:
            raise UniqueViolationError("weight_logs_user_id_log_date_key")
        entry = WeightEntry(
            id=uuid4(), user_id=user_id, log_date=log_date, weight=weight, notes=notes
        )
        self.entries[entry.id] = entry
        return entry

    def update_entry(self, entry_id: UUID, weight: float, notes: str | None) -> None:
        self.entries[entry_id] = replace(
            self.entries[entry_id], weight=weight, notes=notes
        )

    def delete_entry(self, entry_id: UUID) -> None:
        self.entries.pop(entry_id, None)

    def list_entries(self, user_id: UUID) -> list[WeightEntry]:
        return sorted(
            (e for e in self.entries.values() if e.user_id == user_id),
            key=lambda entry: entry.log_date,
            reverse=True,
        )


@dataclass
class InMemoryGoalsRepository(GoalsRepository):
    goals: dict[UUID, DailyGoals] = field(default_factory=dict)

    def get_daily_goals(self, user_id: UUID) -> DailyGoals:
        return self.goals.get(user_id, DailyGoals())


@dataclass
class InMemoryNotesRepository(NotesRepository):
    """In-memory notes store with a fixed clock that ticks per insert."""

    notes: dict[UUID, Note] = field(default_factory=dict)
    replies: dict[UUID, NoteReply] = field(default_factory=dict)
    ticks: int = 0

    def _now(self) -> datetime:
        self.ticks += 1
        return datetime(2024, 6, 12, 8, 0, tzinfo=UTC) + timedelta(minutes=self.ticks)

    def create_note(self, author_id: UUID, title: str, content: str) -> Note:
        now = self._now()
        note = Note(
            id=uuid4(),
            author_id=author_id,
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.notes[note.id] = note
        return note

    def get_note(self, note_id: UUID) -> Note | None:
        return self.notes.get(note_id)

    def list_notes(self) -> list[Note]:
        notes = []
        for note in self.notes.values():
            replies = sorted(
                (r for r in self.replies.values() if r.note_id == note.id),
                key=lambda reply: reply.created_at,
            )
            notes.append(replace(note, replies=tuple(replies)))
        return sorted(notes, key=lambda note: note.created_at, reverse=True)

    def update_note(self, note_id: UUID, title: str, content: str) -> Note:
        note = replace(
            self.notes[note_id], title=title, content=content, updated_at=self._now()
        )
        self.notes[note_id] = note
        return note

    def delete_note(self, note_id: UUID) -> None:
        self.notes.pop(note_id, None)
        for reply_id in [r.id for r in self.replies.values() if r.note_id == note_id]:
            del self.replies[reply_id]

    def create_reply(self, note_id: UUID, author_id: UUID, content: str) -> NoteReply:
        reply = NoteReply(
            id=uuid4(),
            note_id=note_id,
            author_id=author_id,
            content=content,
            created_at=self._now(),
        )
        self.replies[reply.id] = reply
        return reply

    def get_reply(self, reply_id: UUID) -> NoteReply | None:
        return self.replies.get(reply_id)

    def delete_reply(self, reply_id: UUID) -> None:
        self.replies.pop(reply_id, None)


def library_food(
    user_id: UUID,
    name: str,
    usage_count: int = 0,
    last_used_at: datetime | None = None,
) -> LibraryFood:
    return LibraryFood(
        id=uuid4(),
        user_id=user_id,
        name=name,
        default_amount="1 cup",
        nutrients=NutrientProfile(calories=100),
        usage_count=usage_count,
        last_used_at=last_used_at,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def daily_log_repository() -> InMemoryDailyLogRepository:
    return InMemoryDailyLogRepository()


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def goals_repository() -> InMemoryGoalsRepository:
    return InMemoryGoalsRepository()


@pytest.fixture
def notes_repository() -> InMemoryNotesRepository:
    return InMemoryNotesRepository()


@pytest.fixture
def container(
    settings: Settings,
    daily_log_repository: InMemoryDailyLogRepository,
    fdc_client: FakeFdcClient,
    goals_repository: InMemoryGoalsRepository,
    notes_repository: InMemoryNotesRepository,
) -> AppContainer:
    cache = InMemoryCache()
    draft_service = DraftService(cache)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        fdc_client=fdc_client,
        daily_log_repository=daily_log_repository,
        goals_repository=goals_repository,
        food_lookup_service=FoodLookupService(
            fdc_client=fdc_client, cache=cache, retry_delay_seconds=0
        ),
        library_service=LibraryService(InMemoryLibraryRepository()),
        recipe_service=RecipeService(InMemoryRecipeRepository()),
        weight_service=WeightService(InMemoryWeightRepository()),
        draft_service=draft_service,
        notes_service=NotesService(notes_repository, drafts=draft_service),
        first_weekday=SUNDAY,
        close_resources=close_resources,
    )
