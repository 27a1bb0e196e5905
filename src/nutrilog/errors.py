"""Error types raised by nutrilog services and adapters."""


class NutrilogError(Exception):
    """Base class for nutrilog errors."""


class UniqueViolationError(NutrilogError):
    """A create collided with an existing row on a unique key."""


class RecordNotFoundError(NutrilogError):
    """A row expected to exist was not found."""


class DayNotResolvedError(NutrilogError):
    """A day was mutated before its daily record was resolved."""


class DayLockedError(NutrilogError):
    """A line-item mutation was attempted on a locked day."""


class InvalidTransitionError(NutrilogError):
    """The reconciler received an event that is not valid in its state."""


class InvalidWaterIntakeError(NutrilogError, ValueError):
    """Water intake would become negative."""


class LookupUnavailableError(NutrilogError):
    """The external food lookup could not be reached or is misconfigured."""


class NotAuthorError(NutrilogError):
    """A note or reply was changed by someone other than its author."""


class EmptyNoteError(NutrilogError, ValueError):
    """A note title, note body or reply was blank."""
