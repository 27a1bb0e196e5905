"""Supabase repository for notes and note replies."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrilog.domain.notes import Note, NoteReply
from nutrilog.services.notes import NotesRepository


@dataclass
class SupabaseNotesRepository(NotesRepository):
    """Notes in `dietitian_notes`, replies in `note_replies`."""

    client: Client

    def create_note(self, author_id: UUID, title: str, content: str) -> Note:
        response = (
            self.client.table("dietitian_notes")
            .insert({"author_id": str(author_id), "title": title, "content": content})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create note")
        return _parse_note(response.data[0])

    def get_note(self, note_id: UUID) -> Note | None:
        response = (
            self.client.table("dietitian_notes")
            .select("*")
            .eq("id", str(note_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_note(response.data[0])

    def list_notes(self) -> list[Note]:
        response = (
            self.client.table("dietitian_notes")
            .select("*, note_replies(*)")
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_note(row) for row in response.data or []]

    def update_note(self, note_id: UUID, title: str, content: str) -> Note:
        # updated_at is maintained by a database trigger.
        response = (
            self.client.table("dietitian_notes")
            .update({"title": title, "content": content})
            .eq("id", str(note_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update note")
        return _parse_note(response.data[0])

    def delete_note(self, note_id: UUID) -> None:
        self.client.table("dietitian_notes").delete().eq("id", str(note_id)).execute()

    def create_reply(self, note_id: UUID, author_id: UUID, content: str) -> NoteReply:
        response = (
            self.client.table("note_replies")
            .insert(
                {
                    "note_id": str(note_id),
                    "author_id": str(author_id),
                    "content": content,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create note reply")
        return _parse_reply(response.data[0])

    def get_reply(self, reply_id: UUID) -> NoteReply | None:
        response = (
            self.client.table("note_replies")
            .select("*")
            .eq("id", str(reply_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_reply(response.data[0])

    def delete_reply(self, reply_id: UUID) -> None:
        self.client.table("note_replies").delete().eq("id", str(reply_id)).execute()


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_reply(row: dict[str, object]) -> NoteReply:
    return NoteReply(
        id=UUID(str(row["id"])),
        note_id=UUID(str(row["note_id"])),
        author_id=UUID(str(row["author_id"])),
        content=str(row.get("content") or ""),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def _parse_note(row: dict[str, object]) -> Note:
    rows = sorted(
        row.get("note_replies") or [], key=lambda reply: str(reply.get("created_at"))
    )
    return Note(
        id=UUID(str(row["id"])),
        author_id=UUID(str(row["author_id"])),
        title=str(row.get("title") or ""),
        content=str(row.get("content") or ""),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
        replies=tuple(_parse_reply(reply) for reply in rows),
    )
