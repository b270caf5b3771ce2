"""Error taxonomy for the procurement domain.

Every business-rule violation surfaces as one of these exceptions. They all
carry a ``messages`` dict keyed by field (``{"status": ["..."]}``) like the
framework's own validation errors, and raising any of them inside a command
handler aborts the unit of work so no partial writes are committed.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

__all__ = [
    "AlreadyAwardedError",
    "ConsistencyError",
    "DeadlinePassedError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "ValidationError",
]


class InvalidStateTransitionError(ValidationError):
    """The operation is not legal from the record's current status."""


class DeadlinePassedError(ValidationError):
    """A time-gated action was attempted after its deadline."""


class AlreadyAwardedError(ValidationError):
    """The bid, or the line it targets, already carries an award."""


class ConsistencyError(ValidationError):
    """A cross-record invariant was found violated."""


class NotFoundError(ObjectNotFoundError):
    """A referenced record does not exist."""
