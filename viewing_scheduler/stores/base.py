"""
Visit store contract.

Availability rules, blocked dates and visit records live in an external
database. The booking engine only talks to it through this protocol, so a
Supabase/Postgres adapter and the in-memory store are interchangeable.
Every method is a blocking I/O call.
"""

from datetime import date, datetime
from typing import Any, Optional, Protocol

from viewing_scheduler.schemas.visit_schema import AvailabilityWindow, Visit, VisitStatus


class StoreError(Exception):
    """The store could not complete a read or write."""


class UniqueConstraintViolation(StoreError):
    """An active visit already holds (agent_id, visit_date, start_time)."""


class VisitStore(Protocol):
    """Persistence operations consumed by the booking engine."""

    def list_availability(self, agent_id: str) -> list[AvailabilityWindow]:
        ...

    def list_blocked_dates(self, agent_id: str) -> list[date]:
        ...

    def list_visits(self, agent_id: str, visit_date: date) -> list[Visit]:
        """Visits for the agent on that date with status pending or confirmed."""
        ...

    def get_visit(self, visit_id: str) -> Optional[Visit]:
        ...

    def insert_visit(self, fields: dict[str, Any]) -> Visit:
        """Persist a new visit, generating its id."""
        ...

    def update_visit_status(
        self,
        visit_id: str,
        status: VisitStatus,
        cancelled_at: Optional[datetime] = None,
        cancellation_reason: Optional[str] = None,
    ) -> None:
        ...
