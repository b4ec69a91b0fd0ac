import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.database import get_db
from booking_backend.models.booking import Booking
from booking_backend.routes.common import database_unavailable, ensure_database_ready, require_organization
from booking_backend.routes.public_routes import BookingResponse, booking_response, conflict_status_code
from booking_backend.scheduling.admission import check_booking_admissible
from booking_backend.scheduling.calendar import utc_now
from booking_backend.scheduling.errors import BookingConflict
from booking_backend.scheduling.storage import SqlAlchemyStorage, from_naive_utc, to_naive_utc
from booking_backend.scheduling.types import BookingStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=['bookings'])

REBOOKED_DETAIL = 'This time has been booked since the booking was cancelled.'


class UpdateBookingStatusRequest(BaseModel):
    status: BookingStatus


def require_booking(db: Session, organization_id: int, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.organization_id == organization_id,
    ).first()

    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Booking not found.',
        )

    return booking


def check_reopening(storage: SqlAlchemyStorage, booking: Booking) -> None:
    """Run the booking-time admission check again for a cancelled booking."""
    organization = require_organization(storage, booking.organization_id)
    starts_at = from_naive_utc(booking.starts_at)
    ends_at = from_naive_utc(booking.ends_at)

    check_booking_admissible(
        starts_at,
        ends_at,
        templates=storage.get_availability_templates(organization.id),
        blackouts=storage.get_blackouts(organization.id),
        bookings=storage.get_bookings(organization.id, starts_at, ends_at),
        timezone=organization.timezone,
        now=utc_now(),
        exclude_booking_id=booking.id,
    )


@router.get('/{organization_id}/bookings', response_model=list[BookingResponse])
def list_bookings(
    organization_id: int,
    range_from: datetime | None = Query(default=None, alias='from'),
    range_to: datetime | None = Query(default=None, alias='to'),
    service_id: int | None = Query(default=None),
    booking_status: BookingStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        require_organization(SqlAlchemyStorage(db), organization_id)

        query = db.query(Booking).filter(Booking.organization_id == organization_id)
        if range_to is not None:
            query = query.filter(Booking.starts_at < to_naive_utc(range_to))
        if range_from is not None:
            query = query.filter(Booking.ends_at > to_naive_utc(range_from))
        if service_id is not None:
            query = query.filter(Booking.service_id == service_id)
        if booking_status is not None:
            query = query.filter(Booking.status == booking_status.value)

        bookings = query.order_by(Booking.starts_at.asc(), Booking.id.asc()).all()
        return [booking_response(booking) for booking in bookings]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{organization_id}/bookings/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    organization_id: int,
    booking_id: int,
    data: UpdateBookingStatusRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking = require_booking(db, organization_id, booking_id)

        if BookingStatus(booking.status) == BookingStatus.CANCELLED and data.status != BookingStatus.CANCELLED:
            check_reopening(SqlAlchemyStorage(db), booking)

        booking.status = data.status.value
        db.commit()
        db.refresh(booking)

        logger.info('Booking %s of organization %s set to %s', booking.id, organization_id, booking.status)
        return booking_response(booking)
    except BookingConflict as exc:
        logger.info('Reopening booking %s rejected: %s', booking_id, exc.reason)
        detail = REBOOKED_DETAIL if exc.reason == BookingConflict.BOOKED else exc.message
        raise HTTPException(status_code=conflict_status_code(exc), detail=detail) from exc
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=REBOOKED_DETAIL,
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{organization_id}/bookings/{booking_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(organization_id: int, booking_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        booking = require_booking(db, organization_id, booking_id)

        db.delete(booking)
        db.commit()

        logger.info('Booking %s of organization %s deleted', booking_id, organization_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
