"""Timezone-aware calendar helpers.

Wall-clock values (a calendar day plus minutes since local midnight) are
turned into UTC instants through pytz, which owns the offset rules for every
zone. Weekdays follow the 0 = Sunday numbering of availability templates.
"""

from datetime import date, datetime, time, timedelta, tzinfo

import pytz

from booking_backend.scheduling.errors import InvalidSlotQuery

UTC = pytz.UTC
MINUTES_PER_DAY = 24 * 60


def resolve_timezone(timezone: str | tzinfo) -> tzinfo:
    if isinstance(timezone, tzinfo):
        return timezone
    if not timezone or not timezone.strip():
        raise InvalidSlotQuery('Timezone is required.')
    try:
        return pytz.timezone(timezone.strip())
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidSlotQuery(f"Unknown timezone '{timezone}'.") from exc


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _localize(zone: tzinfo, wall_clock: datetime) -> datetime:
    # pytz zones need localize(); assigning tzinfo directly would pick the LMT offset.
    if hasattr(zone, 'localize'):
        return zone.localize(wall_clock, is_dst=False)
    return wall_clock.replace(tzinfo=zone)


def local_midnight(day: date, timezone: str | tzinfo) -> datetime:
    return local_minutes_to_instant(day, 0, timezone)


def local_minutes_to_instant(day: date, minutes: int, timezone: str | tzinfo) -> datetime:
    """Instant of ``minutes`` past local midnight of ``day`` in ``timezone``, in UTC.

    ``minutes`` may be 1440, which is midnight at the start of the next day.
    Wall-clock times inside a DST gap or overlap resolve to the standard-time
    offset.
    """
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise InvalidSlotQuery(f'Minutes since midnight must be between 0 and {MINUTES_PER_DAY}, got {minutes}.')

    zone = resolve_timezone(timezone)
    wall_clock = datetime.combine(day, time.min) + timedelta(minutes=minutes)
    return _localize(zone, wall_clock).astimezone(UTC)


def local_date(instant: datetime, timezone: str | tzinfo) -> date:
    return to_utc(instant).astimezone(resolve_timezone(timezone)).date()


def enumerate_days(from_instant: datetime, to_instant: datetime, timezone: str | tzinfo) -> list[date]:
    """Calendar days touched by the range in ``timezone``, both ends included."""
    first_day = local_date(from_instant, timezone)
    last_day = local_date(to_instant, timezone)

    days: list[date] = []
    current_day = first_day
    while current_day <= last_day:
        days.append(current_day)
        current_day += timedelta(days=1)

    return days


def weekday_of(value: date, timezone: str | tzinfo | None = None) -> int:
    """Weekday of ``value`` with 0 = Sunday .. 6 = Saturday.

    Aware datetimes are first moved into ``timezone`` so the local day counts.
    """
    if isinstance(value, datetime) and timezone is not None:
        value = local_date(value, timezone)
    return value.isoweekday() % 7


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return a_start < b_end and a_end > b_start
