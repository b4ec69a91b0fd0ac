"""Read-only data access used by the scheduling core."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.orm import Session

from booking_backend.models.availability_template import AvailabilityTemplate
from booking_backend.models.blackout import Blackout
from booking_backend.models.booking import Booking
from booking_backend.models.organization import Organization
from booking_backend.models.service import Service
from booking_backend.scheduling.calendar import UTC, to_utc
from booking_backend.scheduling.types import (
    BlackoutPeriod,
    BookingStatus,
    ExistingBooking,
    OrganizationInfo,
    ServiceInfo,
    WeeklyTemplate,
)


class SchedulingStorage(Protocol):
    def get_organization(self, organization_id: int) -> OrganizationInfo | None: ...

    def get_organization_by_slug(self, slug: str) -> OrganizationInfo | None: ...

    def get_availability_templates(self, organization_id: int) -> list[WeeklyTemplate]: ...

    def get_blackouts(self, organization_id: int) -> list[BlackoutPeriod]: ...

    def get_bookings(
        self,
        organization_id: int,
        range_start: datetime | None = None,
        range_end: datetime | None = None,
    ) -> list[ExistingBooking]: ...

    def get_service(self, service_id: int) -> ServiceInfo | None: ...


def to_naive_utc(value: datetime) -> datetime:
    return to_utc(value).replace(tzinfo=None)


def from_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def organization_info(row: Organization) -> OrganizationInfo:
    return OrganizationInfo(id=row.id, name=row.name, slug=row.slug, timezone=row.timezone)


def service_info(row: Service) -> ServiceInfo:
    return ServiceInfo(
        id=row.id,
        organization_id=row.organization_id,
        name=row.name,
        duration_min=row.duration_min,
        is_active=bool(row.is_active),
    )


def weekly_template(row: AvailabilityTemplate) -> WeeklyTemplate:
    return WeeklyTemplate(
        id=row.id,
        organization_id=row.organization_id,
        weekday=row.weekday,
        start_minutes=row.start_minutes,
        end_minutes=row.end_minutes,
        slot_step_min=row.slot_step_min,
    )


def blackout_period(row: Blackout) -> BlackoutPeriod:
    return BlackoutPeriod(
        id=row.id,
        starts_at=from_naive_utc(row.starts_at),
        ends_at=from_naive_utc(row.ends_at),
        reason=row.reason,
    )


def existing_booking(row: Booking) -> ExistingBooking:
    return ExistingBooking(
        id=row.id,
        service_id=row.service_id,
        starts_at=from_naive_utc(row.starts_at),
        ends_at=from_naive_utc(row.ends_at),
        status=BookingStatus(row.status),
    )


class SqlAlchemyStorage:
    """``SchedulingStorage`` over a SQLAlchemy session.

    Nothing is cached; every call reads the current rows. Database errors
    are left for the caller to handle.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_organization(self, organization_id: int) -> OrganizationInfo | None:
        row = self.db.query(Organization).filter(Organization.id == organization_id).first()
        return organization_info(row) if row else None

    def get_organization_by_slug(self, slug: str) -> OrganizationInfo | None:
        row = self.db.query(Organization).filter(Organization.slug == slug.strip().lower()).first()
        return organization_info(row) if row else None

    def get_availability_templates(self, organization_id: int) -> list[WeeklyTemplate]:
        rows = self.db.query(AvailabilityTemplate).filter(
            AvailabilityTemplate.organization_id == organization_id,
        ).order_by(
            AvailabilityTemplate.weekday.asc(),
            AvailabilityTemplate.start_minutes.asc(),
            AvailabilityTemplate.id.asc(),
        ).all()
        return [weekly_template(row) for row in rows]

    def get_blackouts(self, organization_id: int) -> list[BlackoutPeriod]:
        rows = self.db.query(Blackout).filter(
            Blackout.organization_id == organization_id,
        ).order_by(Blackout.starts_at.asc(), Blackout.id.asc()).all()
        return [blackout_period(row) for row in rows]

    def get_bookings(
        self,
        organization_id: int,
        range_start: datetime | None = None,
        range_end: datetime | None = None,
    ) -> list[ExistingBooking]:
        """Bookings whose interval intersects ``[range_start, range_end)``, any status."""
        query = self.db.query(Booking).filter(Booking.organization_id == organization_id)

        if range_end is not None:
            query = query.filter(Booking.starts_at < to_naive_utc(range_end))
        if range_start is not None:
            query = query.filter(Booking.ends_at > to_naive_utc(range_start))

        rows = query.order_by(Booking.starts_at.asc(), Booking.id.asc()).all()
        return [existing_booking(row) for row in rows]

    def get_service(self, service_id: int) -> ServiceInfo | None:
        row = self.db.query(Service).filter(Service.id == service_id).first()
        return service_info(row) if row else None
