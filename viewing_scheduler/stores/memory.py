"""
In-memory visit store.

Used by the test suite and the console demo. In production the same
protocol is backed by the marketplace database, with a partial unique
index on (agent_id, visit_date, start_time) for active statuses.
"""

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Optional

from viewing_scheduler.schemas.visit_schema import (
    AvailabilityWindow,
    BlockedDate,
    Visit,
    VisitStatus,
)
from viewing_scheduler.stores.base import StoreError, UniqueConstraintViolation

logger = logging.getLogger(__name__)


class InMemoryVisitStore:
    """Dict-backed implementation of :class:`~viewing_scheduler.stores.base.VisitStore`.

    Like a database trigger, the store owns ``updated_at`` and stamps it on
    every status change.
    """

    def __init__(self) -> None:
        self._availability: dict[str, list[AvailabilityWindow]] = defaultdict(list)
        self._blocked: dict[str, set[BlockedDate]] = defaultdict(set)
        self._visits: dict[str, Visit] = {}

    # ------------------------------------------------------------------ #
    # Agent settings (outside the booking core)
    # ------------------------------------------------------------------ #

    def add_availability(self, agent_id: str, window: AvailabilityWindow) -> None:
        self._availability[agent_id].append(window)

    def block_date(self, agent_id: str, blocked_date: date) -> None:
        self._blocked[agent_id].add(BlockedDate(agent_id=agent_id, blocked_date=blocked_date))

    # ------------------------------------------------------------------ #
    # VisitStore protocol
    # ------------------------------------------------------------------ #

    def list_availability(self, agent_id: str) -> list[AvailabilityWindow]:
        return list(self._availability.get(agent_id, []))

    def list_blocked_dates(self, agent_id: str) -> list[date]:
        return sorted(b.blocked_date for b in self._blocked.get(agent_id, set()))

    def list_visits(self, agent_id: str, visit_date: date) -> list[Visit]:
        return [
            visit.model_copy()
            for visit in self._visits.values()
            if visit.agent_id == agent_id
            and visit.visit_date == visit_date
            and visit.is_active
        ]

    def all_visits(self) -> list[Visit]:
        """Every stored visit regardless of status, oldest first."""
        return sorted(
            (v.model_copy() for v in self._visits.values()),
            key=lambda v: v.created_at,
        )

    def get_visit(self, visit_id: str) -> Optional[Visit]:
        visit = self._visits.get(visit_id)
        return visit.model_copy() if visit else None

    def insert_visit(self, fields: dict[str, Any]) -> Visit:
        status = VisitStatus(fields.get("status", VisitStatus.PENDING))
        if status != VisitStatus.CANCELLED and self._holds_active_slot(fields):
            raise UniqueConstraintViolation(
                f"Active visit already exists for agent {fields['agent_id']} "
                f"on {fields['visit_date']} at {fields['start_time']}"
            )

        visit = Visit(id=str(uuid.uuid4()), **fields)
        self._visits[visit.id] = visit
        logger.debug("Visit stored: %s", visit.id)
        return visit.model_copy()

    def update_visit_status(
        self,
        visit_id: str,
        status: VisitStatus,
        cancelled_at: Optional[datetime] = None,
        cancellation_reason: Optional[str] = None,
    ) -> None:
        if visit_id not in self._visits:
            raise StoreError(f"Visit {visit_id} not found.")
        self._visits[visit_id] = self._visits[visit_id].model_copy(
            update={
                "status": status,
                "cancelled_at": cancelled_at,
                "cancellation_reason": cancellation_reason,
                "updated_at": datetime.now(timezone.utc),
            }
        )

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        self._availability.clear()
        self._blocked.clear()
        self._visits.clear()

    def _holds_active_slot(self, fields: dict[str, Any]) -> bool:
        return any(
            v.is_active
            and v.agent_id == fields["agent_id"]
            and v.visit_date == fields["visit_date"]
            and v.start_time == fields["start_time"]
            for v in self._visits.values()
        )
