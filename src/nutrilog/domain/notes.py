"""Shared notes between a dietitian and their clients."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class NoteReply:
    """A reply left under a note by any user."""

    id: UUID
    note_id: UUID
    author_id: UUID
    content: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class Note:
    """A titled note; only its author may edit or delete it."""

    id: UUID
    author_id: UUID
    title: str
    content: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    replies: tuple[NoteReply, ...] = ()
