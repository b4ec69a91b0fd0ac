"""Slot generation for a service over a date range.

Candidates are walked out of each day's template windows, marked against
blackouts and the current time, then marked against existing bookings in a
second pass. Slots are rebuilt on every call and never stored.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable

from booking_backend.scheduling.availability import resolve_open_windows
from booking_backend.scheduling.blackouts import is_blacked_out
from booking_backend.scheduling.calendar import enumerate_days, local_midnight, resolve_timezone, to_utc, utc_now
from booking_backend.scheduling.conflicts import has_booking_conflict
from booking_backend.scheduling.errors import InvalidSlotQuery
from booking_backend.scheduling.storage import SchedulingStorage
from booking_backend.scheduling.types import BlackoutPeriod, ExistingBooking, TimeSlot, WeeklyTemplate

logger = logging.getLogger(__name__)

MIN_SERVICE_DURATION_MINUTES = 5
MAX_SERVICE_DURATION_MINUTES = 480


def resolve_range(
    from_value: date | datetime,
    to_value: date | datetime,
    timezone: str | tzinfo,
) -> tuple[datetime, datetime]:
    """Turn the requested bounds into a UTC instant range.

    Plain dates are whole local days, so ``to_value`` extends to the following
    local midnight. Datetimes are taken as instants.
    """
    if isinstance(from_value, datetime):
        range_start = to_utc(from_value)
    else:
        range_start = local_midnight(from_value, timezone)

    if isinstance(to_value, datetime):
        range_end = to_utc(to_value)
    else:
        range_end = local_midnight(to_value + timedelta(days=1), timezone)

    # A date ``to`` already covers its whole day, so an empty range means from > to.
    if range_start > range_end or (range_start == range_end and not isinstance(to_value, datetime)):
        raise InvalidSlotQuery('The start of the range must not be after its end.')

    return range_start, range_end


def validate_duration(duration_min: int) -> None:
    if isinstance(duration_min, bool) or not isinstance(duration_min, int):
        raise InvalidSlotQuery('Service duration must be a whole number of minutes.')
    if not MIN_SERVICE_DURATION_MINUTES <= duration_min <= MAX_SERVICE_DURATION_MINUTES:
        raise InvalidSlotQuery(
            f'Service duration must be between {MIN_SERVICE_DURATION_MINUTES} and '
            f'{MAX_SERVICE_DURATION_MINUTES} minutes, got {duration_min}.'
        )


def build_candidate_slots(
    duration_min: int,
    templates: Iterable[WeeklyTemplate],
    blackouts: Iterable[BlackoutPeriod],
    range_start: datetime,
    range_end: datetime,
    timezone: str | tzinfo,
    now: datetime,
) -> list[TimeSlot]:
    """Walk every open window in the range.

    A candidate is available when it does not touch a blackout and starts
    strictly after ``now``. Overlapping templates give overlapping slots;
    they are kept as they are.
    """
    validate_duration(duration_min)
    zone = resolve_timezone(timezone)
    templates = list(templates)
    blackouts = list(blackouts)
    now = to_utc(now)
    duration = timedelta(minutes=duration_min)

    candidates: list[TimeSlot] = []

    for day in enumerate_days(range_start, range_end, zone):
        for window in resolve_open_windows(templates, day, zone):
            step = timedelta(minutes=window.step_min)
            current_start = window.start

            while current_start + duration <= window.end:
                current_end = current_start + duration

                if current_start >= range_start and current_end <= range_end:
                    candidates.append(
                        TimeSlot(
                            start=current_start,
                            end=current_end,
                            available=(
                                not is_blacked_out(current_start, current_end, blackouts)
                                and current_start > now
                            ),
                        )
                    )

                current_start += step

    # Stable, so slots of overlapping windows keep their walk order on ties.
    candidates.sort(key=lambda slot: slot.start)
    return candidates


def apply_booking_conflicts(slots: Iterable[TimeSlot], bookings: Iterable[ExistingBooking]) -> list[TimeSlot]:
    bookings = list(bookings)
    return [
        replace(slot, available=slot.available and not has_booking_conflict(slot.start, slot.end, bookings))
        for slot in slots
    ]


def build_slots(
    duration_min: int,
    templates: Iterable[WeeklyTemplate],
    blackouts: Iterable[BlackoutPeriod],
    bookings: Iterable[ExistingBooking],
    range_start: datetime,
    range_end: datetime,
    timezone: str | tzinfo,
    now: datetime,
) -> list[TimeSlot]:
    candidates = build_candidate_slots(duration_min, templates, blackouts, range_start, range_end, timezone, now)
    return apply_booking_conflicts(candidates, bookings)


def generate_slots(
    organization_id: int,
    service,
    from_value: date | datetime,
    to_value: date | datetime,
    timezone: str | tzinfo,
    *,
    storage: SchedulingStorage,
    now: datetime | None = None,
) -> list[TimeSlot]:
    """Slots for ``service`` between ``from_value`` and ``to_value``.

    Arguments are checked before anything is read from ``storage``; storage
    errors propagate unchanged.
    """
    zone = resolve_timezone(timezone)
    range_start, range_end = resolve_range(from_value, to_value, zone)
    validate_duration(service.duration_min)
    now = to_utc(now) if now is not None else utc_now()

    templates = storage.get_availability_templates(organization_id)
    blackouts = storage.get_blackouts(organization_id)

    candidates = build_candidate_slots(
        service.duration_min,
        templates,
        blackouts,
        range_start,
        range_end,
        zone,
        now,
    )

    bookings = storage.get_bookings(organization_id, range_start, range_end)
    slots = apply_booking_conflicts(candidates, bookings)

    logger.debug(
        'Generated %d slots (%d available) for organization %s between %s and %s',
        len(slots),
        sum(1 for slot in slots if slot.available),
        organization_id,
        range_start.isoformat(),
        range_end.isoformat(),
    )

    return slots


def is_slot_available(
    slot: TimeSlot,
    bookings: Iterable[ExistingBooking],
    blackouts: Iterable[BlackoutPeriod],
) -> bool:
    return not has_booking_conflict(slot.start, slot.end, bookings) and not is_blacked_out(
        slot.start, slot.end, blackouts
    )


def format_time_slot(slot: TimeSlot, timezone: str | tzinfo) -> str:
    zone = resolve_timezone(timezone)
    start = to_utc(slot.start).astimezone(zone)
    end = to_utc(slot.end).astimezone(zone)
    return f"{start:%H:%M} - {end:%H:%M}"
