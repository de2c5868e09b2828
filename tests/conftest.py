"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timezone
from typing import Optional

import pytest

from viewing_scheduler.config import SchedulingConfig
from viewing_scheduler.scheduling.booking_engine import BookingEngine
from viewing_scheduler.schemas.visit_schema import AvailabilityWindow, Visit, VisitStatus
from viewing_scheduler.stores.memory import InMemoryVisitStore

TODAY = date(2026, 10, 17)   # Saturday
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
AGENT = "agent-1"
PROPERTY = "prop-1"
NOW = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)


def make_config(**overrides) -> SchedulingConfig:
    values = {
        "slot_duration_minutes": 30,
        "booking_horizon_days": 60,
        "reschedule_reason": "Rescheduled",
        "verify_slot_before_insert": True,
        "agent_utc_offset": "",
    }
    values.update(overrides)
    return SchedulingConfig(**values)


def make_window(day: int = 1, start: str = "09:00:00", end: str = "11:00:00") -> AvailabilityWindow:
    return AvailabilityWindow(day_of_week=day, start_time=start, end_time=end)


def make_visit(
    start: str,
    end: str,
    status: VisitStatus = VisitStatus.CONFIRMED,
    visit_date: date = MONDAY,
    agent_id: str = AGENT,
    visit_id: Optional[str] = None,
) -> Visit:
    """Helper to create a Visit without going through a store."""
    return Visit(
        id=visit_id or f"visit-{start}",
        property_id=PROPERTY,
        agent_id=agent_id,
        visit_date=visit_date,
        start_time=start,
        end_time=end,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


def make_request(
    start: str = "09:00:00",
    end: str = "09:30:00",
    visit_date: date = MONDAY,
    **extra,
) -> dict:
    """Booking input as the UI form submits it."""
    request = {
        "property_id": PROPERTY,
        "agent_id": AGENT,
        "visit_date": visit_date.isoformat(),
        "start_time": start,
        "end_time": end,
    }
    request.update(extra)
    return request


@pytest.fixture
def monday_window():
    return make_window()


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def store(monday_window):
    store = InMemoryVisitStore()
    store.add_availability(AGENT, monday_window)
    yield store
    store.reset()


@pytest.fixture
def engine(store, fixed_clock):
    return BookingEngine(store, config=make_config(), clock=fixed_clock, tz=timezone.utc)


class FlakyStore(InMemoryVisitStore):
    """In-memory store that fails chosen operations with a StoreError."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            from viewing_scheduler.stores.base import StoreError

            raise StoreError(f"{operation} failed: connection reset")

    def list_visits(self, agent_id, visit_date):
        self._maybe_fail("read")
        return super().list_visits(agent_id, visit_date)

    def insert_visit(self, fields):
        self._maybe_fail("insert")
        return super().insert_visit(fields)

    def update_visit_status(self, visit_id, status, cancelled_at=None, cancellation_reason=None):
        self._maybe_fail("update")
        super().update_visit_status(visit_id, status, cancelled_at, cancellation_reason)


@pytest.fixture
def flaky_store(monday_window):
    store = FlakyStore()
    store.add_availability(AGENT, monday_window)
    return store


@pytest.fixture
def flaky_engine(flaky_store, fixed_clock):
    return BookingEngine(flaky_store, config=make_config(), clock=fixed_clock, tz=timezone.utc)
