"""Final check before a booking is committed.

Uses the same window walk, blackout and overlap rules as slot generation.
A request that passes can still lose a race to a concurrent request for the
same interval; the unique (organization, starts_at, ends_at) index over
non-cancelled bookings catches that at commit time.
"""

from datetime import datetime, tzinfo
from typing import Iterable

from booking_backend.scheduling.availability import matches_open_slot, resolve_open_windows
from booking_backend.scheduling.blackouts import overlapping_blackouts
from booking_backend.scheduling.calendar import local_date, resolve_timezone, to_utc
from booking_backend.scheduling.conflicts import find_booking_conflicts
from booking_backend.scheduling.errors import BookingConflict, InvalidSlotQuery
from booking_backend.scheduling.types import BlackoutPeriod, ExistingBooking, WeeklyTemplate


def check_booking_admissible(
    starts_at: datetime,
    ends_at: datetime,
    *,
    templates: Iterable[WeeklyTemplate],
    blackouts: Iterable[BlackoutPeriod],
    bookings: Iterable[ExistingBooking],
    timezone: str | tzinfo,
    now: datetime,
    exclude_booking_id: int | None = None,
) -> None:
    """Raise ``BookingConflict`` unless ``[starts_at, ends_at)`` may be booked."""
    zone = resolve_timezone(timezone)
    starts_at = to_utc(starts_at)
    ends_at = to_utc(ends_at)

    if ends_at <= starts_at:
        raise InvalidSlotQuery('Booking must end after it starts.')

    if starts_at <= to_utc(now):
        raise BookingConflict(BookingConflict.PAST, 'Bookings must start in the future.')

    windows = resolve_open_windows(templates, local_date(starts_at, zone), zone)
    if not matches_open_slot(starts_at, ends_at, windows):
        raise BookingConflict(
            BookingConflict.OUTSIDE_HOURS,
            'The requested time is not one of the bookable slots.',
        )

    blocked_by = overlapping_blackouts(starts_at, ends_at, blackouts)
    if blocked_by:
        raise BookingConflict(BookingConflict.BLACKOUT, 'This time is blocked.', conflicts=blocked_by)

    conflicts = find_booking_conflicts(starts_at, ends_at, bookings, exclude_booking_id=exclude_booking_id)
    if conflicts:
        raise BookingConflict(BookingConflict.BOOKED, 'This time is already booked.', conflicts=conflicts)
