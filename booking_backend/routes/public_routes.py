import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.database import get_db
from booking_backend.models.booking import Booking
from booking_backend.models.service import Service
from booking_backend.routes.common import database_unavailable, ensure_database_ready, require_organization_by_slug
from booking_backend.scheduling.admission import check_booking_admissible
from booking_backend.scheduling.calendar import to_utc, utc_now
from booking_backend.scheduling.errors import BookingConflict, InvalidSlotQuery
from booking_backend.scheduling.slots import generate_slots
from booking_backend.scheduling.storage import SqlAlchemyStorage, from_naive_utc, to_naive_utc
from booking_backend.scheduling.types import BookingStatus, OrganizationInfo, ServiceInfo

logger = logging.getLogger(__name__)

router = APIRouter(tags=['public'])

MIN_CUSTOMER_NAME_LENGTH = 2
MAX_CUSTOMER_NAME_LENGTH = 80
MAX_BOOKING_NOTE_LENGTH = 500


class ServiceResponse(BaseModel):
    id: int
    name: str
    duration_min: int


class TimeSlotResponse(BaseModel):
    start: datetime
    end: datetime
    available: bool

    class Config:
        from_attributes = True


class CreateBookingRequest(BaseModel):
    service_id: int
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    note: str | None = None
    starts_at: datetime

    @field_validator('customer_name')
    @classmethod
    def validate_customer_name(cls, value: str) -> str:
        normalized = value.strip()
        if not MIN_CUSTOMER_NAME_LENGTH <= len(normalized) <= MAX_CUSTOMER_NAME_LENGTH:
            raise ValueError(
                f'Name must be between {MIN_CUSTOMER_NAME_LENGTH} and {MAX_CUSTOMER_NAME_LENGTH} characters.'
            )
        return normalized

    @field_validator('customer_email')
    @classmethod
    def validate_customer_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        local_part, _, domain = normalized.partition('@')
        if not local_part or '.' not in domain:
            raise ValueError('A valid email address is required.')
        return normalized

    @field_validator('customer_phone', 'note')
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BOOKING_NOTE_LENGTH:
            raise ValueError(f'Text fields must be {MAX_BOOKING_NOTE_LENGTH} characters or fewer.')

        return normalized


class BookingResponse(BaseModel):
    id: int
    organization_id: int
    service_id: int
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    note: str | None = None
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus


def booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        organization_id=booking.organization_id,
        service_id=booking.service_id,
        customer_name=booking.customer_name,
        customer_email=booking.customer_email,
        customer_phone=booking.customer_phone,
        note=booking.note,
        starts_at=from_naive_utc(booking.starts_at),
        ends_at=from_naive_utc(booking.ends_at),
        status=BookingStatus(booking.status),
    )


def require_bookable_service(
    storage: SqlAlchemyStorage,
    organization: OrganizationInfo,
    service_id: int,
) -> ServiceInfo:
    service = storage.get_service(service_id)
    if not service or service.organization_id != organization.id or not service.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Service not found.',
        )
    return service


def conflict_status_code(exc: BookingConflict) -> int:
    if exc.reason in (BookingConflict.PAST, BookingConflict.OUTSIDE_HOURS):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_409_CONFLICT


@router.get('/{org_slug}/services', response_model=list[ServiceResponse])
def list_public_services(org_slug: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        organization = require_organization_by_slug(SqlAlchemyStorage(db), org_slug)

        services = db.query(Service).filter(
            Service.organization_id == organization.id,
            Service.is_active.is_(True),
        ).order_by(Service.name.asc()).all()

        return [
            ServiceResponse(id=service.id, name=service.name, duration_min=service.duration_min)
            for service in services
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{org_slug}/slots', response_model=list[TimeSlotResponse])
def list_public_slots(
    org_slug: str,
    service_id: int = Query(...),
    range_from: datetime = Query(..., alias='from'),
    range_to: datetime = Query(..., alias='to'),
    include_unavailable: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if to_utc(range_to) - to_utc(range_from) > timedelta(days=config.MAX_SLOT_RANGE_DAYS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Slots can be requested for at most {config.MAX_SLOT_RANGE_DAYS} days at a time.',
        )

    ensure_database_ready()

    try:
        storage = SqlAlchemyStorage(db)
        organization = require_organization_by_slug(storage, org_slug)
        service = require_bookable_service(storage, organization, service_id)

        slots = generate_slots(
            organization.id,
            service,
            range_from,
            range_to,
            organization.timezone,
            storage=storage,
            now=utc_now(),
        )
    except InvalidSlotQuery as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return [
        TimeSlotResponse(start=slot.start, end=slot.end, available=slot.available)
        for slot in slots
        if include_unavailable or slot.available
    ]


@router.post('/{org_slug}/bookings', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(org_slug: str, data: CreateBookingRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        storage = SqlAlchemyStorage(db)
        organization = require_organization_by_slug(storage, org_slug)
        service = require_bookable_service(storage, organization, data.service_id)

        starts_at = to_utc(data.starts_at).replace(second=0, microsecond=0)
        ends_at = starts_at + timedelta(minutes=service.duration_min)

        check_booking_admissible(
            starts_at,
            ends_at,
            templates=storage.get_availability_templates(organization.id),
            blackouts=storage.get_blackouts(organization.id),
            bookings=storage.get_bookings(organization.id, starts_at, ends_at),
            timezone=organization.timezone,
            now=utc_now(),
        )

        booking = Booking(
            organization_id=organization.id,
            service_id=service.id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            note=data.note,
            starts_at=to_naive_utc(starts_at),
            ends_at=to_naive_utc(ends_at),
            status=BookingStatus.PENDING.value,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)

        logger.info('Booking %s created for organization %s at %s', booking.id, organization.id, starts_at.isoformat())
        return booking_response(booking)
    except BookingConflict as exc:
        logger.info('Booking rejected for organization %s: %s', org_slug, exc.reason)
        raise HTTPException(status_code=conflict_status_code(exc), detail=exc.message) from exc
    except InvalidSlotQuery as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except IntegrityError as exc:
        # Another request committed the same interval after our check.
        db.rollback()
        logger.info('Booking rejected for organization %s: concurrent booking', org_slug)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This time is already booked.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
