"""Read-only values the slot generator works on.

Instants are timezone-aware UTC datetimes. The storage layer builds these
from database rows so the scheduling functions never touch a session.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class OrganizationInfo:
    id: int
    name: str
    slug: str
    timezone: str


@dataclass(frozen=True)
class ServiceInfo:
    id: int
    organization_id: int
    name: str
    duration_min: int
    is_active: bool = True


@dataclass(frozen=True)
class WeeklyTemplate:
    """Recurring opening window; ``weekday`` uses 0 = Sunday."""
    weekday: int
    start_minutes: int
    end_minutes: int
    slot_step_min: int
    id: int | None = None
    organization_id: int | None = None


@dataclass(frozen=True)
class BlackoutPeriod:
    starts_at: datetime
    ends_at: datetime
    reason: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class ExistingBooking:
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus = BookingStatus.CONFIRMED
    id: int | None = None
    service_id: int | None = None


@dataclass(frozen=True)
class OpenWindow:
    """A template expanded onto one calendar day."""
    start: datetime
    end: datetime
    step_min: int
    template_id: int | None = None


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime
    available: bool
