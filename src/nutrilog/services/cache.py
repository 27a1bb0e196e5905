"""Process-local key-value caching with expiry."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Cache(Protocol):
    """Key-value store whose entries lapse after a TTL."""

    def get(self, key: str) -> object | None:
        """Return the live value for a key, or None."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a value that lapses after ``ttl_seconds``."""

    def delete(self, key: str) -> None:
        """Forget a key; unknown keys are ignored."""


@dataclass
class InMemoryCache(Cache):
    """Dictionary-backed cache. Expired entries are dropped when read."""

    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, tuple[datetime, object]] = field(
        default_factory=dict, init=False, repr=False
    )

    def get(self, key: str) -> object | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)
