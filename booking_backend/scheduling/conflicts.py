"""Booking conflict detection.

The same predicate backs both the ``available`` flag of generated slots and
the authoritative check made before a booking is committed.
"""

from datetime import datetime
from typing import Iterable

from booking_backend.scheduling.calendar import intervals_overlap
from booking_backend.scheduling.types import BookingStatus, ExistingBooking


def is_blocking(booking: ExistingBooking) -> bool:
    return BookingStatus(booking.status) != BookingStatus.CANCELLED


def find_booking_conflicts(
    slot_start: datetime,
    slot_end: datetime,
    bookings: Iterable[ExistingBooking],
    exclude_booking_id: int | None = None,
) -> list[ExistingBooking]:
    return [
        booking
        for booking in bookings
        if is_blocking(booking)
        and (exclude_booking_id is None or booking.id != exclude_booking_id)
        and intervals_overlap(slot_start, slot_end, booking.starts_at, booking.ends_at)
    ]


def has_booking_conflict(slot_start: datetime, slot_end: datetime, bookings: Iterable[ExistingBooking]) -> bool:
    return bool(find_booking_conflicts(slot_start, slot_end, bookings))
