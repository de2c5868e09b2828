"""Tests for booking, confirming and cancelling visits."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from viewing_scheduler.errors import (
    InvalidInput,
    InvalidTransition,
    PersistenceError,
    SlotConflict,
    VisitNotFound,
)
from viewing_scheduler.scheduling.booking_engine import BookingEngine
from viewing_scheduler.schemas.visit_schema import VisitRequest, VisitStatus
from tests.conftest import AGENT, MONDAY, NOW, PROPERTY, TODAY, TUESDAY, make_config, make_request


class TestGetTimeSlots:
    def test_scenario_four_free_slots(self, engine):
        slots = engine.get_time_slots(AGENT, MONDAY)
        assert [s.label() for s in slots] == [
            "09:00-09:30", "09:30-10:00", "10:00-10:30", "10:30-11:00",
        ]
        assert all(s.available for s in slots)

    def test_booked_slot_marked_taken(self, engine):
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        slots = engine.get_time_slots(AGENT, MONDAY)
        assert [s.available for s in slots] == [True, True, False, True]

    def test_blocked_date_yields_no_slots(self, engine, store):
        store.block_date(AGENT, MONDAY)
        assert engine.get_time_slots(AGENT, MONDAY) == []

    def test_unknown_agent_has_no_slots(self, engine):
        assert engine.get_time_slots("agent-unknown", MONDAY) == []

    def test_today_defaults_to_clock(self, engine):
        with pytest.raises(InvalidInput, match="in the past"):
            engine.get_time_slots(AGENT, TODAY - timedelta(days=1))

    def test_explicit_today_overrides_clock(self, engine):
        assert engine.get_time_slots(AGENT, MONDAY, today=MONDAY)

    def test_beyond_horizon_rejected(self, engine):
        with pytest.raises(InvalidInput, match="horizon"):
            engine.get_time_slots(AGENT, TODAY + timedelta(days=61))

    def test_missing_agent_rejected(self, engine):
        with pytest.raises(InvalidInput, match="agent_id"):
            engine.get_time_slots("  ", MONDAY)

    def test_store_read_failure(self, flaky_engine, flaky_store):
        flaky_store.fail_on.add("read")
        with pytest.raises(PersistenceError):
            flaky_engine.get_time_slots(AGENT, MONDAY)

    def test_configured_duration_used(self, store, fixed_clock):
        engine = BookingEngine(store, config=make_config(slot_duration_minutes=60), clock=fixed_clock)
        assert [s.label() for s in engine.get_time_slots(AGENT, MONDAY)] == [
            "09:00-10:00", "10:00-11:00",
        ]


class TestBookVisit:
    def test_creates_pending_visit(self, engine, store):
        visit = engine.book_visit(make_request(visitor_name="  Ayu  ", notes="Gate code 1234"))
        assert visit.status == VisitStatus.PENDING
        assert visit.id
        assert visit.created_at == NOW
        assert visit.updated_at == NOW
        assert visit.visitor_name == "Ayu"
        assert visit.notes == "Gate code 1234"
        assert visit.cancelled_at is None
        assert store.get_visit(visit.id) == visit

    def test_accepts_visit_request_model(self, engine):
        request = VisitRequest(
            property_id=PROPERTY,
            agent_id=AGENT,
            visit_date=MONDAY,
            start_time=time(9, 30),
            end_time=time(10),
        )
        visit = engine.book_visit(request)
        assert visit.start_time == time(9, 30)

    def test_visitor_phone_normalized(self, engine):
        visit = engine.book_visit(make_request(visitor_phone="+62 812-3456-7890"))
        assert visit.visitor_phone == "+6281234567890"

    def test_missing_property_id(self, engine):
        request = make_request()
        del request["property_id"]
        with pytest.raises(InvalidInput):
            engine.book_visit(request)

    def test_blank_agent_id(self, engine):
        with pytest.raises(InvalidInput):
            engine.book_visit(make_request(agent_id="   "))

    def test_malformed_time(self, engine):
        with pytest.raises(InvalidInput):
            engine.book_visit(make_request(start_time="9 o'clock"))

    def test_end_before_start(self, engine):
        with pytest.raises(InvalidInput):
            engine.book_visit(make_request("10:00:00", "09:30:00"))

    def test_non_mapping_input(self, engine):
        with pytest.raises(InvalidInput):
            engine.book_visit(42)

    def test_trusts_slots_outside_generator_output(self, engine):
        # 15:00 is outside the agent's Monday window
        visit = engine.book_visit(make_request("15:00:00", "15:30:00"))
        assert visit.status == VisitStatus.PENDING

    def test_conflicting_active_visit_rejected(self, engine):
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        with pytest.raises(SlotConflict, match="already booked"):
            engine.book_visit(make_request("10:15:00", "10:45:00"))

    def test_back_to_back_booking_allowed(self, engine):
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        visit = engine.book_visit(make_request("10:30:00", "11:00:00"))
        assert visit.start_time == time(10, 30)

    def test_cancelled_visit_frees_slot(self, engine):
        first = engine.book_visit(make_request("10:00:00", "10:30:00"))
        engine.cancel_visit(first.id)
        second = engine.book_visit(make_request("10:00:00", "10:30:00"))
        assert second.id != first.id

    def test_other_agent_does_not_conflict(self, engine):
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        visit = engine.book_visit(make_request("10:00:00", "10:30:00", agent_id="agent-2"))
        assert visit.agent_id == "agent-2"

    def test_without_recheck_overlap_is_trusted(self, store, fixed_clock):
        engine = BookingEngine(
            store, config=make_config(verify_slot_before_insert=False), clock=fixed_clock
        )
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        visit = engine.book_visit(make_request("10:15:00", "10:45:00"))
        assert visit.status == VisitStatus.PENDING

    def test_without_recheck_store_constraint_still_applies(self, store, fixed_clock):
        engine = BookingEngine(
            store, config=make_config(verify_slot_before_insert=False), clock=fixed_clock
        )
        engine.book_visit(make_request("10:00:00", "10:30:00"))
        with pytest.raises(SlotConflict):
            engine.book_visit(make_request("10:00:00", "10:30:00"))

    def test_store_write_failure(self, flaky_engine, flaky_store):
        flaky_store.fail_on.add("insert")
        with pytest.raises(PersistenceError, match="insert visit"):
            flaky_engine.book_visit(make_request())
        assert flaky_store.all_visits() == []


class TestStatusChanges:
    def test_confirm_pending(self, engine, store):
        visit = engine.book_visit(make_request())
        confirmed = engine.confirm_visit(visit.id)
        assert confirmed.status == VisitStatus.CONFIRMED
        assert store.get_visit(visit.id).status == VisitStatus.CONFIRMED

    def test_cancel_pending_records_reason_and_time(self, engine, store):
        visit = engine.book_visit(make_request())
        cancelled = engine.cancel_visit(visit.id, reason="Found another place")
        assert cancelled.status == VisitStatus.CANCELLED
        assert cancelled.cancelled_at == NOW
        assert cancelled.cancellation_reason == "Found another place"
        stored = store.get_visit(visit.id)
        assert stored.status == VisitStatus.CANCELLED
        assert stored.cancellation_reason == "Found another place"

    def test_cancel_confirmed(self, engine):
        visit = engine.book_visit(make_request())
        engine.confirm_visit(visit.id)
        assert engine.cancel_visit(visit.id).status == VisitStatus.CANCELLED

    def test_cancel_twice_rejected(self, engine):
        visit = engine.book_visit(make_request())
        engine.cancel_visit(visit.id)
        with pytest.raises(InvalidTransition):
            engine.cancel_visit(visit.id)

    def test_confirm_cancelled_rejected(self, engine):
        visit = engine.book_visit(make_request())
        engine.cancel_visit(visit.id)
        with pytest.raises(InvalidTransition):
            engine.confirm_visit(visit.id)

    def test_unknown_visit(self, engine):
        with pytest.raises(VisitNotFound, match="missing-id"):
            engine.cancel_visit("missing-id")

    def test_update_failure_leaves_status(self, flaky_engine, flaky_store):
        visit = flaky_engine.book_visit(make_request())
        flaky_store.fail_on.add("update")
        with pytest.raises(PersistenceError):
            flaky_engine.cancel_visit(visit.id)
        assert flaky_store.get_visit(visit.id).status == VisitStatus.PENDING

    def test_returned_visit_matches_stored_record(self, store):
        clock_times = iter([NOW, datetime(2030, 1, 1, tzinfo=timezone.utc)])
        engine = BookingEngine(store, config=make_config(), clock=lambda: next(clock_times))
        visit = engine.book_visit(make_request())
        cancelled = engine.cancel_visit(visit.id, reason="Sold")
        assert cancelled == store.get_visit(visit.id)

    def test_confirm_returns_stored_record(self, engine, store):
        visit = engine.book_visit(make_request())
        assert engine.confirm_visit(visit.id) == store.get_visit(visit.id)


class TestAgentLocalDate:
    """The picker window follows the agent's calendar, not the UTC one."""

    JAKARTA = timezone(timedelta(hours=7))

    def _engine(self, store, now, **kwargs):
        return BookingEngine(store, config=make_config(**kwargs), clock=lambda: now)

    def test_date_already_past_locally_rejected(self, store):
        # 2026-10-19 22:00 UTC is 2026-10-20 05:00 in Jakarta
        now = datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)
        engine = BookingEngine(store, config=make_config(), clock=lambda: now, tz=self.JAKARTA)
        assert engine.today() == TUESDAY
        with pytest.raises(InvalidInput, match="in the past"):
            engine.get_time_slots(AGENT, MONDAY)

    def test_offset_read_from_config(self, store):
        now = datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)
        engine = self._engine(store, now, agent_utc_offset="+07:00")
        with pytest.raises(InvalidInput, match="in the past"):
            engine.get_time_slots(AGENT, MONDAY)

    def test_same_instant_still_monday_west_of_utc(self, store):
        now = datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc)
        engine = self._engine(store, now, agent_utc_offset="-05:00")
        assert engine.today() == MONDAY
        assert len(engine.get_time_slots(AGENT, MONDAY)) == 4

    def test_naive_clock_is_agent_local(self, store):
        engine = self._engine(store, datetime(2026, 10, 19, 23, 59), agent_utc_offset="+07:00")
        assert engine.today() == MONDAY

    def test_timestamps_stay_in_utc(self, store):
        now = datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)
        engine = self._engine(store, now, agent_utc_offset="+07:00")
        visit = engine.book_visit(make_request(visit_date=TUESDAY))
        assert visit.created_at == now
        assert visit.created_at.utcoffset() == timedelta(0)
        cancelled = engine.cancel_visit(visit.id)
        assert cancelled.cancelled_at == now
