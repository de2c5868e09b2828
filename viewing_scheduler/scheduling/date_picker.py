"""
Date-picker constraints applied before slots are generated.

Visitors may pick any date from ``today`` up to ``today + horizon_days``.
"today" is always passed in; nothing here reads the system clock.
"""

from datetime import date, timedelta
from typing import Optional

from viewing_scheduler.config import settings
from viewing_scheduler.errors import InvalidInput


def _horizon(horizon_days: Optional[int]) -> int:
    return settings.scheduling.booking_horizon_days if horizon_days is None else horizon_days


def last_bookable_date(today: date, horizon_days: Optional[int] = None) -> date:
    return today + timedelta(days=_horizon(horizon_days))


def is_bookable_date(visit_date: date, today: date, horizon_days: Optional[int] = None) -> bool:
    return today <= visit_date <= last_bookable_date(today, horizon_days)


def bookable_dates(today: date, horizon_days: Optional[int] = None) -> list[date]:
    """Every date the picker offers, ``today`` first."""
    return [today + timedelta(days=offset) for offset in range(_horizon(horizon_days) + 1)]


def validate_visit_date(
    visit_date: date, today: date, horizon_days: Optional[int] = None
) -> date:
    """Reject dates in the past or beyond the booking horizon.

    Raises:
        InvalidInput: if the date is outside the bookable range.
    """
    if visit_date < today:
        raise InvalidInput(f"Visit date {visit_date} is in the past.")
    last = last_bookable_date(today, horizon_days)
    if visit_date > last:
        raise InvalidInput(
            f"Visit date {visit_date} is beyond the booking horizon ({last})."
        )
    return visit_date
