"""Exception types raised by the roster core and its storage layer."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shifttracker.validation.validator import ValidationError


class TrackerError(Exception):
    """Base class for all shifttracker errors."""


class InvalidArgument(TrackerError, ValueError):
    """An argument is outside the domain of an operation (e.g. zero teams)."""


class NotFoundError(TrackerError, LookupError):
    """A referenced person, pattern, swap, entry or row does not exist."""

    def __init__(self, kind: str, key: object):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class InvalidStateTransition(TrackerError):
    """A shift swap was asked to move to a state its current state forbids."""

    def __init__(self, swap_id: str, current: str, target: str):
        self.swap_id = swap_id
        self.current = current
        self.target = target
        super().__init__(
            f"Swap {swap_id} cannot move from {current} to {target}"
        )


class ValidationFailed(TrackerError):
    """One or more user-correctable validation errors.

    Raised before any mutation is applied, so a caller that catches it can
    be sure nothing was written.
    """

    def __init__(self, errors: list["ValidationError"]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors) or "validation failed"
        super().__init__(summary)
