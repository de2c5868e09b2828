from viewing_scheduler.schemas.visit_schema import (
    ACTIVE_STATUSES,
    AvailabilityWindow,
    BlockedDate,
    TimeSlot,
    Visit,
    VisitRequest,
    VisitStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "AvailabilityWindow",
    "BlockedDate",
    "TimeSlot",
    "Visit",
    "VisitRequest",
    "VisitStatus",
]
