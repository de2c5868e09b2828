"""
Visit status state machine.

    [none] --book--> pending --confirm--> confirmed
    pending   --cancel--> cancelled
    confirmed --cancel--> cancelled
    cancelled is terminal.

Every status change made by the booking engine goes through
:func:`next_status`; anything not listed in ``TRANSITIONS`` is rejected.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from viewing_scheduler.errors import InvalidTransition
from viewing_scheduler.schemas.visit_schema import ACTIVE_STATUSES, VisitStatus

logger = logging.getLogger(__name__)

INITIAL_STATUS = VisitStatus.PENDING


class VisitTrigger(str, Enum):
    """Events that change a visit's status."""
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: VisitStatus
    to_status: VisitStatus
    trigger: VisitTrigger


TRANSITIONS: list[Transition] = [
    Transition(VisitStatus.PENDING, VisitStatus.CONFIRMED, VisitTrigger.CONFIRM),
    Transition(VisitStatus.PENDING, VisitStatus.CANCELLED, VisitTrigger.CANCEL),
    Transition(VisitStatus.CONFIRMED, VisitStatus.CANCELLED, VisitTrigger.CANCEL),
]


def next_status(status: VisitStatus, trigger: VisitTrigger) -> VisitStatus:
    """
    Resolve the status a visit moves to.

    Raises:
        InvalidTransition: if ``trigger`` is not allowed from ``status``.
    """
    for t in TRANSITIONS:
        if t.from_status == status and t.trigger == trigger:
            logger.debug(
                "Visit transition: %s -> %s (trigger: %s)",
                status.value, t.to_status.value, trigger.value,
            )
            return t.to_status

    raise InvalidTransition(
        status.value,
        trigger.value,
        [t.value for t in valid_triggers(status)],
    )


def valid_triggers(status: VisitStatus) -> list[VisitTrigger]:
    """Return all triggers valid from ``status``."""
    return [t.trigger for t in TRANSITIONS if t.from_status == status]


def is_terminal(status: VisitStatus) -> bool:
    return not valid_triggers(status)
