"""Availability, visit and slot data models."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from viewing_scheduler.utils import format_time, normalize_phone


class VisitStatus(str, Enum):
    """Lifecycle status of a property visit."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({VisitStatus.PENDING, VisitStatus.CONFIRMED})


class AvailabilityWindow(BaseModel):
    """A recurring weekly time range during which an agent accepts visits.

    ``day_of_week`` counts from Sunday (0) to Saturday (6).
    """

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_end_after_start(self) -> "AvailabilityWindow":
        if self.end_time <= self.start_time:
            raise ValueError(
                f"end_time {format_time(self.end_time)} must be after "
                f"start_time {format_time(self.start_time)}"
            )
        return self


class BlockedDate(BaseModel):
    """A calendar date on which the agent takes no visits at all."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    blocked_date: date


class Visit(BaseModel):
    """A persisted booking between a visitor and a listing agent."""

    id: str
    property_id: str
    agent_id: str
    visit_date: date
    start_time: time
    end_time: time
    visitor_name: Optional[str] = None
    visitor_phone: Optional[str] = None
    visitor_email: Optional[str] = None
    notes: Optional[str] = None
    status: VisitStatus = VisitStatus.PENDING
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class TimeSlot(BaseModel):
    """A candidate appointment interval, derived fresh on every query."""

    start_time: time
    end_time: time
    available: bool = True

    def label(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


class VisitRequest(BaseModel):
    """Validated input for booking a visit."""

    property_id: str
    agent_id: str
    visit_date: date
    start_time: time
    end_time: time
    visitor_name: Optional[str] = None
    visitor_phone: Optional[str] = None
    visitor_email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("property_id", "agent_id")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identifier must not be empty")
        return value

    @field_validator("visitor_name", "visitor_email", "notes")
    @classmethod
    def strip_free_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("visitor_phone")
    @classmethod
    def normalize_visitor_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return normalize_phone(value)

    @model_validator(mode="after")
    def check_end_after_start(self) -> "VisitRequest":
        if self.end_time <= self.start_time:
            raise ValueError(
                f"end_time {format_time(self.end_time)} must be after "
                f"start_time {format_time(self.start_time)}"
            )
        return self
