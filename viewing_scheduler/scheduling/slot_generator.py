"""
Slot generation for property viewings.

Turns an agent's weekly availability windows into discrete, fixed-length
slots for one calendar date, marking each slot unavailable when it
intersects an active visit. Pure: no I/O, no clock access.

Usage:
    slots = generate_time_slots(windows, date(2026, 10, 19), visits, blocked)
    free = [s for s in slots if s.available]
"""

import logging
from datetime import date
from typing import Iterable, Optional

from viewing_scheduler.config import settings
from viewing_scheduler.schemas.visit_schema import AvailabilityWindow, TimeSlot, Visit
from viewing_scheduler.utils import (
    intervals_overlap,
    seconds_to_time,
    time_to_seconds,
    weekday_index,
)

logger = logging.getLogger(__name__)


def generate_time_slots(
    availability: Iterable[AvailabilityWindow],
    target_date: date,
    existing_visits: Iterable[Visit],
    blocked_dates: Iterable[date],
    slot_duration_minutes: Optional[int] = None,
) -> list[TimeSlot]:
    """
    Generate the candidate slots offered on ``target_date``.

    Args:
        availability: the agent's weekly windows; only those whose
            ``day_of_week`` matches ``target_date`` are used.
        target_date: the calendar date chosen by the caller.
        existing_visits: visits for the same agent; cancelled visits and
            visits on other dates are ignored.
        blocked_dates: dates on which nothing is offered.
        slot_duration_minutes: overrides the configured slot length.

    Returns:
        Slots sorted by start time. Empty when the date is blocked or no
        window matches its weekday. Overlapping windows are not
        deduplicated.
    """
    if target_date in set(blocked_dates):
        logger.debug("No slots on %s: date is blocked", target_date)
        return []

    day = weekday_index(target_date)
    windows = [w for w in availability if w.day_of_week == day]
    if not windows:
        logger.debug("No slots on %s: no availability for weekday %d", target_date, day)
        return []

    if slot_duration_minutes is None:
        slot_duration_minutes = settings.scheduling.slot_duration_minutes
    duration = slot_duration_minutes * 60
    if duration <= 0:
        raise ValueError(f"slot duration must be positive, got {slot_duration_minutes} minutes")
    booked = [
        (visit.start_time, visit.end_time)
        for visit in existing_visits
        if visit.visit_date == target_date and visit.is_active
    ]

    slots: list[TimeSlot] = []
    for window in windows:
        window_end = time_to_seconds(window.end_time)
        slot_start = time_to_seconds(window.start_time)

        # Partial trailing slots are dropped, never truncated
        while slot_start + duration <= window_end:
            start = seconds_to_time(slot_start)
            end = seconds_to_time(slot_start + duration)
            available = not any(
                intervals_overlap(start, end, booked_start, booked_end)
                for booked_start, booked_end in booked
            )
            slots.append(TimeSlot(start_time=start, end_time=end, available=available))
            slot_start += duration

    # sorted() is stable, so slots sharing a start keep window order
    slots = sorted(slots, key=lambda s: s.start_time)
    logger.debug(
        "Generated %d slots on %s (%d available)",
        len(slots), target_date, sum(1 for s in slots if s.available),
    )
    return slots
