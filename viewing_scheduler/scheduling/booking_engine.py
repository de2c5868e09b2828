"""
Booking lifecycle engine.

Turns a slot picked from :func:`generate_time_slots` into a persisted
visit, moves visits through the status state machine, and reschedules by
cancelling the old visit before booking the new slot.

Usage:
    engine = BookingEngine(store)
    slots = engine.get_time_slots("agent-1", date(2026, 10, 19))
    visit = engine.book_visit({
        "property_id": "prop-9", "agent_id": "agent-1",
        "visit_date": "2026-10-19", "start_time": "09:00:00", "end_time": "09:30:00",
    })
    engine.reschedule_visit(visit.id, {...})
"""

from contextlib import contextmanager
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from pydantic import ValidationError

from viewing_scheduler.config import SchedulingConfig, settings
from viewing_scheduler.errors import (
    InvalidInput,
    PersistenceError,
    RescheduleFailed,
    SchedulingError,
    SlotConflict,
    VisitNotFound,
)
from viewing_scheduler.logging_context import get_request_logger, request_scope
from viewing_scheduler.scheduling.date_picker import validate_visit_date
from viewing_scheduler.scheduling.slot_generator import generate_time_slots
from viewing_scheduler.scheduling.visit_lifecycle import (
    INITIAL_STATUS,
    VisitTrigger,
    next_status,
)
from viewing_scheduler.schemas.visit_schema import TimeSlot, Visit, VisitRequest, VisitStatus
from viewing_scheduler.stores.base import StoreError, UniqueConstraintViolation, VisitStore
from viewing_scheduler.utils import format_time, intervals_overlap, local_date, parse_utc_offset

logger = get_request_logger(__name__)

VisitInput = Union[VisitRequest, Mapping[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Translate store exceptions into domain errors."""
    try:
        yield
    except UniqueConstraintViolation as exc:
        raise SlotConflict(f"Slot is no longer available: {exc}") from exc
    except StoreError as exc:
        raise PersistenceError(f"Failed to {action}: {exc}") from exc


class BookingEngine:
    """
    Validates and persists visits against a :class:`VisitStore`.

    Conflict detection is advisory (read, then write) unless the store
    enforces uniqueness on (agent_id, visit_date, start_time) for active
    visits, in which case a violation also surfaces as SlotConflict.

    Timestamps come from ``clock`` (UTC by default). Date-boundary checks
    use the clock's date in the agent's zone ``tz``, which defaults to
    ``AGENT_UTC_OFFSET`` and then to the host's local time.
    """

    def __init__(
        self,
        store: VisitStore,
        config: Optional[SchedulingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._store = store
        self._config = config or settings.scheduling
        self._clock = clock or _utcnow
        self._tz = tz if tz is not None else parse_utc_offset(self._config.agent_utc_offset)

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    def today(self) -> date:
        """The agent's current calendar date."""
        return local_date(self._clock(), self._tz)

    # ------------------------------------------------------------------ #
    # Slots
    # ------------------------------------------------------------------ #

    def get_time_slots(
        self, agent_id: str, visit_date: date, today: Optional[date] = None
    ) -> list[TimeSlot]:
        """
        Slots offered for an agent on a date.

        Args:
            agent_id: the listing agent.
            visit_date: the date picked by the visitor.
            today: reference date for the picker window; defaults to
                :meth:`today`.

        Raises:
            InvalidInput: missing agent, or a date in the past / beyond the horizon.
            PersistenceError: the store could not be read.
        """
        with request_scope():
            if not agent_id or not agent_id.strip():
                raise InvalidInput("agent_id is required.")
            if today is None:
                today = self.today()
            validate_visit_date(visit_date, today, self._config.booking_horizon_days)

            with _store_errors("read agent schedule"):
                windows = self._store.list_availability(agent_id)
                blocked = self._store.list_blocked_dates(agent_id)
                visits = self._store.list_visits(agent_id, visit_date)

            return generate_time_slots(
                windows,
                visit_date,
                visits,
                blocked,
                slot_duration_minutes=self._config.slot_duration_minutes,
            )

    # ------------------------------------------------------------------ #
    # Booking lifecycle
    # ------------------------------------------------------------------ #

    def book_visit(self, request: VisitInput) -> Visit:
        """
        Create a pending visit for a slot the caller obtained from the generator.

        Raises:
            InvalidInput: malformed request.
            SlotConflict: an active visit already overlaps the slot.
            PersistenceError: the store rejected the write.
        """
        with request_scope():
            parsed = self._parse_request(request)
            if self._config.verify_slot_before_insert:
                self._ensure_slot_free(parsed)

            now = self._clock()
            fields = parsed.model_dump()
            fields.update(status=INITIAL_STATUS, created_at=now, updated_at=now)

            with _store_errors("insert visit"):
                visit = self._store.insert_visit(fields)

            logger.info(
                "Visit booked: %s for property %s with agent %s on %s %s-%s",
                visit.id,
                visit.property_id,
                visit.agent_id,
                visit.visit_date,
                format_time(visit.start_time),
                format_time(visit.end_time),
            )
            return visit

    def get_visit(self, visit_id: str) -> Visit:
        with _store_errors("read visit"):
            visit = self._store.get_visit(visit_id)
        if visit is None:
            raise VisitNotFound(visit_id)
        return visit

    def confirm_visit(self, visit_id: str) -> Visit:
        """Agent-side confirmation: pending to confirmed. Returns the stored record."""
        with request_scope():
            self._apply(visit_id, VisitTrigger.CONFIRM)
            logger.info("Visit confirmed: %s", visit_id)
            return self.get_visit(visit_id)

    def cancel_visit(self, visit_id: str, reason: Optional[str] = None) -> Visit:
        """Cancel a pending or confirmed visit, stamping cancelled_at from the clock.

        Returns the stored record, so ``updated_at`` is whatever the store wrote.
        """
        with request_scope():
            self._apply(visit_id, VisitTrigger.CANCEL, reason=reason)
            logger.info("Visit cancelled: %s (reason: %s)", visit_id, reason or "none given")
            return self.get_visit(visit_id)

    def reschedule_visit(self, existing_visit_id: str, new_slot_input: VisitInput) -> Visit:
        """
        Cancel ``existing_visit_id`` then book ``new_slot_input``.

        The cancel completes before the booking is attempted. If the cancel
        fails nothing has changed and RescheduleFailed is raised. If the
        booking fails the old visit stays cancelled and the booking error
        propagates; the caller retries the booking alone.

        Raises:
            InvalidInput: malformed new slot (checked before anything is written).
            RescheduleFailed: the old visit could not be cancelled.
            SlotConflict, PersistenceError: the replacement booking failed.
        """
        with request_scope():
            request = self._parse_request(new_slot_input)

            try:
                self._apply(
                    existing_visit_id,
                    VisitTrigger.CANCEL,
                    reason=self._config.reschedule_reason,
                )
            except SchedulingError as exc:
                logger.warning(
                    "Reschedule aborted, could not cancel %s: %s", existing_visit_id, exc
                )
                raise RescheduleFailed(
                    existing_visit_id, f"Could not cancel visit {existing_visit_id}: {exc}"
                ) from exc
            logger.info(
                "Visit cancelled: %s (reason: %s)",
                existing_visit_id,
                self._config.reschedule_reason,
            )

            try:
                visit = self.book_visit(request)
            except SchedulingError as exc:
                logger.warning(
                    "Visit %s cancelled for reschedule but replacement booking failed: %s",
                    existing_visit_id,
                    exc,
                )
                raise

            logger.info("Visit %s rescheduled to %s", existing_visit_id, visit.id)
            return visit

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _apply(
        self, visit_id: str, trigger: VisitTrigger, reason: Optional[str] = None
    ) -> None:
        """Write a status transition. Nothing is read back after the write."""
        visit = self.get_visit(visit_id)
        status = next_status(visit.status, trigger)

        cancelled = status == VisitStatus.CANCELLED
        with _store_errors(f"{trigger.value} visit"):
            self._store.update_visit_status(
                visit_id,
                status,
                cancelled_at=self._clock() if cancelled else None,
                cancellation_reason=reason if cancelled else None,
            )

    def _ensure_slot_free(self, request: VisitRequest) -> None:
        with _store_errors("read visits"):
            visits = self._store.list_visits(request.agent_id, request.visit_date)

        conflicts = [
            v.id
            for v in visits
            if v.is_active
            and intervals_overlap(request.start_time, request.end_time, v.start_time, v.end_time)
        ]
        if conflicts:
            logger.warning(
                "Slot conflict for agent %s on %s %s: %s",
                request.agent_id,
                request.visit_date,
                format_time(request.start_time),
                ", ".join(conflicts),
            )
            raise SlotConflict(
                f"{request.visit_date} {format_time(request.start_time)}-"
                f"{format_time(request.end_time)} is already booked."
            )

    @staticmethod
    def _parse_request(request: VisitInput) -> VisitRequest:
        if isinstance(request, VisitRequest):
            return request
        try:
            return VisitRequest.model_validate(dict(request))
        except (ValidationError, TypeError) as exc:
            raise InvalidInput(f"Invalid visit request: {exc}") from exc
