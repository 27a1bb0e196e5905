"""Translation of PostgREST errors into nutrilog errors."""

from collections.abc import Callable
from typing import TypeVar

from postgrest.exceptions import APIError

from nutrilog.errors import UniqueViolationError

T = TypeVar("T")

UNIQUE_VIOLATION_CODE = "23505"


def is_unique_violation(exc: Exception) -> bool:
    return str(getattr(exc, "code", "")) == UNIQUE_VIOLATION_CODE


def insert_or_raise_conflict(insert: Callable[[], T]) -> T:
    """Run an insert, raising ``UniqueViolationError`` on duplicate keys."""
    try:
        return insert()
    except APIError as exc:
        if is_unique_violation(exc):
            raise UniqueViolationError(str(getattr(exc, "message", exc))) from exc
        raise
