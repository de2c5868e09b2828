"""Domain errors raised by the booking engine.

The slot generator never raises these; a date without availability simply
yields no slots. Everything here propagates to the caller unrecovered.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for all viewing-scheduler domain errors."""


class InvalidInput(SchedulingError):
    """Malformed date/time or missing required identifiers."""


class VisitNotFound(InvalidInput):
    """No visit exists with the given id."""

    def __init__(self, visit_id: str) -> None:
        super().__init__(f"Visit {visit_id} not found.")
        self.visit_id = visit_id


class InvalidTransition(SchedulingError):
    """The requested status change is not allowed from the visit's current status."""

    def __init__(self, status: str, trigger: str, valid: Optional[list[str]] = None) -> None:
        valid = valid or []
        super().__init__(
            f"No valid transition from '{status}' with trigger '{trigger}'. "
            f"Valid triggers: {valid}"
        )
        self.status = status
        self.trigger = trigger
        self.valid = valid


class SlotConflict(SchedulingError):
    """The targeted slot became unavailable between read and write."""


class PersistenceError(SchedulingError):
    """The underlying store failed to read or write."""


class RescheduleFailed(SchedulingError):
    """The cancellation half of a reschedule failed; no new visit was created."""

    def __init__(self, visit_id: str, message: str) -> None:
        super().__init__(message)
        self.visit_id = visit_id
