"""
Offline console demo: walks through the viewing booking flow.

Seeds an in-memory store with one listing agent (weekday mornings and
afternoons, Saturday mornings), then shows the slot grid, books a visit,
and optionally reschedules it. No database, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario reschedule
    python console_demo.py --scenario blocked --date 2026-10-19
"""

import argparse
from datetime import date, datetime, time, timedelta
from typing import Optional

from viewing_scheduler.config import settings
from viewing_scheduler.errors import SchedulingError
from viewing_scheduler.logging_context import set_request_id
from viewing_scheduler.scheduling.booking_engine import BookingEngine
from viewing_scheduler.schemas.visit_schema import AvailabilityWindow, TimeSlot, Visit
from viewing_scheduler.stores.memory import InMemoryVisitStore
from viewing_scheduler.utils import format_time, parse_date, weekday_index

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

AGENT_ID = "agent-dewi"
PROPERTY_ID = "villa-canggu-12"


def next_monday(today: date) -> date:
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def seed_store() -> InMemoryVisitStore:
    store = InMemoryVisitStore()
    for day in range(1, 6):
        store.add_availability(
            AGENT_ID, AvailabilityWindow(day_of_week=day, start_time=time(9), end_time=time(12))
        )
        store.add_availability(
            AGENT_ID, AvailabilityWindow(day_of_week=day, start_time=time(14), end_time=time(17))
        )
    store.add_availability(
        AGENT_ID, AvailabilityWindow(day_of_week=6, start_time=time(9), end_time=time(11))
    )
    return store


class ConsoleSession:
    """Scripted walkthrough of the booking engine against an in-memory store."""

    def __init__(self, visit_date: date, today: Optional[date] = None) -> None:
        self.store = seed_store()
        self.today = today or date.today()
        self.engine = BookingEngine(
            self.store,
            clock=lambda: datetime.combine(self.today, time(8)),
        )
        self.visit_date = visit_date

    def say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[scheduler]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_slots(self) -> list[TimeSlot]:
        slots = self.engine.get_time_slots(AGENT_ID, self.visit_date, today=self.today)
        if not slots:
            self.say(f"No viewings offered on {self.visit_date:%A %Y-%m-%d}.")
            return slots
        self.say(f"Slots on {self.visit_date:%A %Y-%m-%d}:")
        for slot in slots:
            colour = GREEN if slot.available else RED
            marker = "open" if slot.available else "taken"
            print(f"    {colour}{slot.label()}  {marker}{RESET}")
        return slots

    def show_visit(self, visit: Visit) -> None:
        self.system_log(
            f"visit {visit.id[:8]} {visit.visit_date} "
            f"{format_time(visit.start_time)}-{format_time(visit.end_time)} "
            f"status={visit.status.value}"
            + (f" reason={visit.cancellation_reason}" if visit.cancellation_reason else "")
        )

    def book_first_open(self, slots: list[TimeSlot], skip: int = 0) -> Optional[Visit]:
        open_slots = [s for s in slots if s.available]
        if len(open_slots) <= skip:
            self.say("Nothing left to book.")
            return None
        slot = open_slots[skip]
        visit = self.engine.book_visit({
            "property_id": PROPERTY_ID,
            "agent_id": AGENT_ID,
            "visit_date": self.visit_date,
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "visitor_name": "Budi Santoso",
            "visitor_phone": "+62 812-3456-7890",
        })
        self.say(f"Booked {slot.label()} for {visit.visitor_name}.")
        self.show_visit(visit)
        return visit

    def run_scenario(self, name: str) -> None:
        print(f"\n{BOLD}=== {name} scenario ({settings.scheduling.slot_duration_minutes} min slots) ==={RESET}\n")
        set_request_id()
        try:
            if name == "blocked":
                self.store.block_date(AGENT_ID, self.visit_date)
                self.system_log(f"agent blocked {self.visit_date}")
                self.show_slots()
                return

            slots = self.show_slots()
            visit = self.book_first_open(slots)
            if visit is None:
                return
            slots = self.show_slots()

            if name == "reschedule":
                open_slots = [s for s in slots if s.available]
                if not open_slots:
                    self.say("No other slot is open that day, keeping the booking.")
                    return
                target = open_slots[-1]
                self.say(f"Moving the viewing to {target.label()}.")
                new_visit = self.engine.reschedule_visit(visit.id, {
                    "property_id": visit.property_id,
                    "agent_id": visit.agent_id,
                    "visit_date": visit.visit_date,
                    "start_time": target.start_time,
                    "end_time": target.end_time,
                    "visitor_name": visit.visitor_name,
                    "visitor_phone": visit.visitor_phone,
                })
                self.show_visit(self.engine.get_visit(visit.id))
                self.show_visit(new_visit)
                self.show_slots()
        except SchedulingError as exc:
            print(f"{YELLOW}{type(exc).__name__}: {exc}{RESET}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline viewing scheduler demo")
    parser.add_argument(
        "--scenario",
        choices=["booking", "reschedule", "blocked"],
        default="booking",
        help="Pre-scripted walkthrough to run",
    )
    parser.add_argument(
        "--date",
        type=parse_date,
        default=None,
        help="Viewing date (YYYY-MM-DD), defaults to next Monday",
    )
    args = parser.parse_args(argv)

    today = date.today()
    visit_date = args.date or next_monday(today)
    session = ConsoleSession(visit_date, today=min(today, visit_date))
    session.system_log(f"weekday index {weekday_index(visit_date)} (0 = Sunday)")
    session.run_scenario(args.scenario)


if __name__ == "__main__":
    main()
