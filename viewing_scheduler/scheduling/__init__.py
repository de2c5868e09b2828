from viewing_scheduler.scheduling.booking_engine import BookingEngine
from viewing_scheduler.scheduling.slot_generator import generate_time_slots
from viewing_scheduler.scheduling.visit_lifecycle import (
    ACTIVE_STATUSES,
    VisitTrigger,
    next_status,
)

__all__ = [
    "BookingEngine",
    "generate_time_slots",
    "ACTIVE_STATUSES",
    "VisitTrigger",
    "next_status",
]
