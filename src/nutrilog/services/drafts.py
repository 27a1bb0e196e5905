"""Scratch storage for partially typed form input."""

from dataclasses import dataclass
from uuid import UUID

from nutrilog.services.cache import Cache


@dataclass
class DraftService:
    """Keeps form drafts per user and context. Never authoritative."""

    cache: Cache
    ttl_seconds: int = 86400

    def save(self, user_id: UUID, context: str, values: dict[str, object]) -> None:
        self.cache.set(_key(user_id, context), dict(values), self.ttl_seconds)

    def load(self, user_id: UUID, context: str) -> dict[str, object] | None:
        """Return the saved draft, or None if there is none or it expired."""
        cached = self.cache.get(_key(user_id, context))
        if isinstance(cached, dict):
            return dict(cached)
        return None

    def clear(self, user_id: UUID, context: str) -> None:
        self.cache.delete(_key(user_id, context))


def _key(user_id: UUID, context: str) -> str:
    return f"draft:{user_id}:{context}"
