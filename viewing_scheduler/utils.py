"""Shared time, date and contact helpers used across the viewing scheduler.

All times are agent-local naive values. Slot arithmetic is done in whole
seconds since midnight so that a slot never wraps past the end of a day.
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60

_UTC_OFFSET = re.compile(r"^(?:UTC)?([+-])(\d{2}):?(\d{2})$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0812 345 678")
        '0812345678'
        >>> normalize_phone("+62 (812) 345-678")
        '+62812345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def format_time(value: time) -> str:
    """Render a time the way the visit store keeps it (``HH:MM:SS``)."""
    return value.strftime("%H:%M:%S")


def time_to_seconds(value: time) -> int:
    """Seconds since midnight, ignoring microseconds."""
    return value.hour * 3600 + value.minute * 60 + value.second


def seconds_to_time(seconds: int) -> time:
    """Inverse of :func:`time_to_seconds` for 0 <= seconds < 86400."""
    if not 0 <= seconds < SECONDS_PER_DAY:
        raise ValueError(f"{seconds} seconds is outside a single day")
    hours, remainder = divmod(seconds, 3600)
    return time(hour=hours, minute=remainder // 60, second=remainder % 60)


def weekday_index(value: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6.

    ``date.weekday()`` counts from Monday, availability rules count from Sunday.
    """
    return (value.weekday() + 1) % 7


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval intersection: back-to-back intervals do not overlap."""
    return start_a < end_b and start_b < end_a


def parse_utc_offset(value: str) -> Optional[tzinfo]:
    """Parse an agent's fixed UTC offset such as ``+07:00``, ``-0530`` or ``UTC+08:00``.

    A blank value returns None, meaning the host's local time.

    Raises:
        ValueError: if the offset is malformed or not strictly within 24 hours.
    """
    cleaned = value.strip().upper()
    if not cleaned:
        return None
    if cleaned in ("UTC", "Z"):
        return timezone.utc
    match = _UTC_OFFSET.match(cleaned)
    if not match:
        raise ValueError(f"Invalid UTC offset {value!r}, expected +HH:MM")
    sign, hours, minutes = match.groups()
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    if offset >= timedelta(hours=24) or int(minutes) >= 60:
        raise ValueError(f"Invalid UTC offset {value!r}, expected +HH:MM")
    return timezone(-offset if sign == "-" else offset)


def local_date(now: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of ``now`` as seen by the agent.

    Naive datetimes are already agent-local. Aware ones are converted to
    ``tz``, or to the host's local zone when ``tz`` is None.
    """
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(tz).date()
