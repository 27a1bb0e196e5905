"""HTTP API for food lookup, conversion, day summaries and notes."""

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Request, status

from nutrilog.api.models import ConvertRequest, NoteRequest, ReplyRequest
from nutrilog.app_logging import configure_logging
from nutrilog.containers import AppContainer
from nutrilog.domain.logs import Meal
from nutrilog.domain.notes import Note, NoteReply
from nutrilog.domain.nutrition import (
    ConvertedServing,
    FoodCandidate,
    FoodPortion,
    FoodReferenceProfile,
    ReferenceBasis,
)
from nutrilog.errors import (
    EmptyNoteError,
    LookupUnavailableError,
    NotAuthorError,
    RecordNotFoundError,
)
from nutrilog.services.conversion import convert, find_cup_grams, resolve_reference
from nutrilog.services.goals import compare_day


def create_app(container: AppContainer) -> FastAPI:
    """Build the API around an already wired container."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Report that the service is up."""
        return {"status": "ok"}

    @app.get("/food-search")
    async def food_search(
        request: Request, query: str | None = None
    ) -> dict[str, object]:
        """Search the external food database."""
        if not query or not query.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required"
            )
        state_container: AppContainer = request.app.state.container
        try:
            foods = await state_container.food_lookup_service.search(query)
        except LookupUnavailableError as exc:
            logger.warning("Food search failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        return {"foods": [_candidate_payload(food) for food in foods]}

    @app.get("/food-search/{fdc_id}/portions")
    async def food_portions(fdc_id: int, request: Request) -> dict[str, object]:
        """Return portion metadata and the resolved cup weight of a food."""
        state_container: AppContainer = request.app.state.container
        try:
            portions = await state_container.food_lookup_service.get_portions(fdc_id)
        except LookupUnavailableError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        return {
            "fdc_id": fdc_id,
            "portions": [_portion_payload(portion) for portion in portions],
            "cup_gram_weight": find_cup_grams(portions),
        }

    @app.post("/convert")
    async def convert_serving(payload: ConvertRequest) -> dict[str, object]:
        """Scale a reference profile to a serving."""
        profile = payload.profile.to_profile()
        if payload.basis == ReferenceBasis.PER_100G:
            reference = resolve_reference(
                profile, [portion.to_portion() for portion in payload.portions]
            )
        else:
            reference = FoodReferenceProfile(profile=profile, basis=payload.basis)
        return _converted_payload(convert(reference, payload.to_serving()))

    @app.get("/days/{log_date}")
    async def day_summary(
        log_date: date, request: Request, x_user_id: UUID = Header()
    ) -> dict[str, object]:
        """Resolve a day and compare its totals with the user's goals."""
        state_container: AppContainer = request.app.state.container
        reconciler = state_container.open_day(x_user_id, log_date)
        record = await reconciler.resolve()
        goals = state_container.goals_repository.get_daily_goals(x_user_id)
        totals = reconciler.totals
        return {
            "id": str(record.id),
            "log_date": log_date.isoformat(),
            "is_locked": reconciler.is_locked,
            "totals": totals.nutrients.rounded().as_dict(),
            "water_intake": totals.water_intake,
            "meals": [_meal_payload(meal) for meal in reconciler.meals],
            "goals": [
                {
                    "nutrient": comparison.nutrient,
                    "actual": comparison.actual,
                    "goal": comparison.goal,
                    "percentage": comparison.status.percentage,
                    "classification": comparison.status.classification,
                    "over_goal": comparison.over_goal,
                    "progress": comparison.progress,
                }
                for comparison in compare_day(totals, goals)
            ],
        }

    @app.get("/notes")
    async def list_notes(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        notes = state_container.notes_service.list_notes()
        return {"notes": [_note_payload(note) for note in notes]}

    @app.post("/notes", status_code=status.HTTP_201_CREATED)
    async def create_note(
        payload: NoteRequest, request: Request, x_user_id: UUID = Header()
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        with _note_errors():
            note = state_container.notes_service.create(
                x_user_id, payload.title, payload.content
            )
        return _note_payload(note)

    @app.put("/notes/{note_id}")
    async def update_note(
        note_id: UUID,
        payload: NoteRequest,
        request: Request,
        x_user_id: UUID = Header(),
    ) -> dict[str, object]:
        """Edit a note; only its author may."""
        state_container: AppContainer = request.app.state.container
        with _note_errors():
            note = state_container.notes_service.update(
                x_user_id, note_id, payload.title, payload.content
            )
        return _note_payload(note)

    @app.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_note(
        note_id: UUID, request: Request, x_user_id: UUID = Header()
    ) -> None:
        state_container: AppContainer = request.app.state.container
        with _note_errors():
            state_container.notes_service.delete(x_user_id, note_id)

    @app.post("/notes/{note_id}/replies", status_code=status.HTTP_201_CREATED)
    async def create_reply(
        note_id: UUID,
        payload: ReplyRequest,
        request: Request,
        x_user_id: UUID = Header(),
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        with _note_errors():
            reply = state_container.notes_service.reply(
                x_user_id, note_id, payload.content
            )
        return _reply_payload(reply)

    @app.delete(
        "/notes/replies/{reply_id}", status_code=status.HTTP_204_NO_CONTENT
    )
    async def delete_reply(
        reply_id: UUID, request: Request, x_user_id: UUID = Header()
    ) -> None:
        state_container: AppContainer = request.app.state.container
        with _note_errors():
            state_container.notes_service.delete_reply(x_user_id, reply_id)

    return app


@contextmanager
def _note_errors() -> Iterator[None]:
    """Translate note service errors into HTTP responses."""
    try:
        yield
    except EmptyNoteError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except NotAuthorError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
        ) from exc
    except RecordNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc


def _reply_payload(reply: NoteReply) -> dict[str, object]:
    return {
        "id": str(reply.id),
        "note_id": str(reply.note_id),
        "author_id": str(reply.author_id),
        "content": reply.content,
        "created_at": reply.created_at.isoformat() if reply.created_at else None,
    }


def _note_payload(note: Note) -> dict[str, object]:
    return {
        "id": str(note.id),
        "author_id": str(note.author_id),
        "title": note.title,
        "content": note.content,
        "created_at": note.created_at.isoformat() if note.created_at else None,
        "updated_at": note.updated_at.isoformat() if note.updated_at else None,
        "replies": [_reply_payload(reply) for reply in note.replies],
    }


def _candidate_payload(food: FoodCandidate) -> dict[str, object]:
    return {
        "fdc_id": food.fdc_id,
        "description": food.description,
        "brand_owner": food.brand_owner,
        "data_type": food.data_type,
        "per_100g": food.per_100g.as_dict(),
        "portions": [_portion_payload(portion) for portion in food.portions],
    }


def _portion_payload(portion: FoodPortion) -> dict[str, object]:
    return {
        "unit": portion.unit,
        "gram_weight": portion.gram_weight,
        "amount": portion.amount,
    }


def _converted_payload(converted: ConvertedServing) -> dict[str, object]:
    return {
        "nutrients": converted.profile.as_dict(),
        "description": converted.description,
        "reference": converted.reference_description,
        "degraded": converted.degraded,
    }


def _meal_payload(meal: Meal) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "meal_type": meal.meal_type,
        "meal_order": meal.meal_order,
        "preparation_notes": meal.preparation_notes,
        "items": [
            {
                "id": str(item.id),
                "name": item.name,
                "amount": item.serving_text,
                "order": item.order,
                "notes": item.notes,
                "nutrients": item.nutrients.as_dict(),
            }
            for item in meal.items
        ],
    }
