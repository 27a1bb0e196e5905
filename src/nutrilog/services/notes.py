"""Notes and replies exchanged between users."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrilog.domain.notes import Note, NoteReply
from nutrilog.errors import EmptyNoteError, NotAuthorError, RecordNotFoundError
from nutrilog.services.drafts import DraftService


class NotesRepository(Protocol):
    """Persistence interface for notes and their replies."""

    def create_note(self, author_id: UUID, title: str, content: str) -> Note:
        """Insert a note and return it."""

    def get_note(self, note_id: UUID) -> Note | None:
        """Return a note without its replies, if present."""

    def list_notes(self) -> list[Note]:
        """Return every note newest first, replies oldest first."""

    def update_note(self, note_id: UUID, title: str, content: str) -> Note:
        """Replace title and content of a note."""

    def delete_note(self, note_id: UUID) -> None:
        """Delete a note; its replies go with it."""

    def create_reply(self, note_id: UUID, author_id: UUID, content: str) -> NoteReply:
        """Insert a reply and return it."""

    def get_reply(self, reply_id: UUID) -> NoteReply | None:
        """Return a reply by id, if present."""

    def delete_reply(self, reply_id: UUID) -> None:
        """Delete a reply."""


@dataclass
class NotesService:
    """Note board where anyone may read and reply, and only authors edit.

    Saved drafts for a form are dropped once that form is submitted.
    """

    repository: NotesRepository
    drafts: DraftService | None = None

    def list_notes(self) -> list[Note]:
        return self.repository.list_notes()

    def create(self, author_id: UUID, title: str, content: str) -> Note:
        note = self.repository.create_note(
            author_id, _required(title, "title"), _required(content, "content")
        )
        self._clear_draft(author_id, "note")
        return note

    def update(self, author_id: UUID, note_id: UUID, title: str, content: str) -> Note:
        self._owned_note(author_id, note_id)
        note = self.repository.update_note(
            note_id, _required(title, "title"), _required(content, "content")
        )
        self._clear_draft(author_id, f"note:{note_id}")
        return note

    def delete(self, author_id: UUID, note_id: UUID) -> None:
        self._owned_note(author_id, note_id)
        self.repository.delete_note(note_id)

    def reply(self, author_id: UUID, note_id: UUID, content: str) -> NoteReply:
        """Reply to a note. Any user may reply to any note."""
        body = _required(content, "reply")
        if self.repository.get_note(note_id) is None:
            raise RecordNotFoundError(f"Note {note_id} does not exist")
        reply = self.repository.create_reply(note_id, author_id, body)
        self._clear_draft(author_id, f"reply:{note_id}")
        return reply

    def delete_reply(self, author_id: UUID, reply_id: UUID) -> None:
        reply = self.repository.get_reply(reply_id)
        if reply is None:
            raise RecordNotFoundError(f"Reply {reply_id} does not exist")
        if reply.author_id != author_id:
            raise NotAuthorError(f"Reply {reply_id} belongs to another user")
        self.repository.delete_reply(reply_id)

    def _owned_note(self, author_id: UUID, note_id: UUID) -> Note:
        note = self.repository.get_note(note_id)
        if note is None:
            raise RecordNotFoundError(f"Note {note_id} does not exist")
        if note.author_id != author_id:
            raise NotAuthorError(f"Note {note_id} belongs to another user")
        return note

    def _clear_draft(self, user_id: UUID, context: str) -> None:
        if self.drafts is not None:
            self.drafts.clear(user_id, context)


def _required(value: str, field_name: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise EmptyNoteError(f"Note {field_name} is required")
    return cleaned
