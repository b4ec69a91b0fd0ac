from datetime import date, datetime, timezone

import pytest
import pytz

from booking_backend.scheduling.calendar import (
    enumerate_days,
    intervals_overlap,
    local_date,
    local_minutes_to_instant,
    resolve_timezone,
    to_utc,
    weekday_of,
)
from booking_backend.scheduling.errors import InvalidSlotQuery


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_local_minutes_to_instant_applies_winter_offset() -> None:
    assert local_minutes_to_instant(date(2026, 1, 5), 540, 'Europe/Prague') == utc(2026, 1, 5, 8, 0)


def test_local_minutes_to_instant_applies_summer_offset() -> None:
    assert local_minutes_to_instant(date(2026, 7, 6), 540, 'Europe/Prague') == utc(2026, 7, 6, 7, 0)


def test_local_minutes_to_instant_accepts_end_of_day() -> None:
    assert local_minutes_to_instant(date(2026, 1, 5), 1440, 'Europe/Prague') == utc(2026, 1, 5, 23, 0)


def test_local_minutes_to_instant_keeps_wall_clock_after_dst_switch() -> None:
    # Europe/Prague moves to summer time on 2026-03-29 at 02:00.
    assert local_minutes_to_instant(date(2026, 3, 29), 600, 'Europe/Prague') == utc(2026, 3, 29, 8, 0)
    assert local_minutes_to_instant(date(2026, 3, 29), 60, 'Europe/Prague') == utc(2026, 3, 29, 0, 0)


def test_local_minutes_to_instant_accepts_tzinfo() -> None:
    zone = pytz.timezone('America/New_York')

    assert local_minutes_to_instant(date(2026, 1, 5), 540, zone) == utc(2026, 1, 5, 14, 0)


@pytest.mark.parametrize('minutes', [-1, 1441])
def test_local_minutes_to_instant_rejects_out_of_day_minutes(minutes: int) -> None:
    with pytest.raises(InvalidSlotQuery):
        local_minutes_to_instant(date(2026, 1, 5), minutes, 'Europe/Prague')


@pytest.mark.parametrize('name', ['Mars/Olympus_Mons', '', '   '])
def test_resolve_timezone_rejects_unknown_names(name: str) -> None:
    with pytest.raises(InvalidSlotQuery):
        resolve_timezone(name)


def test_to_utc_reads_naive_values_as_utc() -> None:
    assert to_utc(datetime(2026, 1, 5, 9, 0)) == utc(2026, 1, 5, 9, 0)
    assert to_utc(pytz.timezone('Europe/Prague').localize(datetime(2026, 1, 5, 9, 0))) == utc(2026, 1, 5, 8, 0)


def test_enumerate_days_includes_both_local_boundary_days() -> None:
    days = enumerate_days(utc(2026, 1, 4, 23, 30), utc(2026, 1, 6, 22, 59), 'Europe/Prague')

    assert days == [date(2026, 1, 5), date(2026, 1, 6)]


def test_enumerate_days_is_restartable() -> None:
    days = enumerate_days(utc(2026, 1, 5, 0, 0), utc(2026, 1, 7, 0, 0), 'UTC')

    assert list(days) == list(days) == [date(2026, 1, 5), date(2026, 1, 6), date(2026, 1, 7)]


def test_enumerate_days_returns_nothing_for_reversed_range() -> None:
    assert enumerate_days(utc(2026, 1, 7, 12, 0), utc(2026, 1, 5, 12, 0), 'UTC') == []


@pytest.mark.parametrize(
    ('day', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 9), 5),
        (date(2026, 1, 10), 6),
    ],
)
def test_weekday_of_counts_from_sunday(day: date, expected: int) -> None:
    assert weekday_of(day) == expected


def test_weekday_of_uses_local_day_of_instant() -> None:
    instant = utc(2026, 1, 4, 23, 30)

    assert weekday_of(instant, 'UTC') == 0
    assert weekday_of(instant, 'Europe/Prague') == 1


def test_local_date_moves_instant_into_zone() -> None:
    assert local_date(utc(2026, 1, 5, 23, 30), 'Europe/Prague') == date(2026, 1, 6)


@pytest.mark.parametrize(
    ('b_start', 'b_end', 'expected'),
    [
        (utc(2026, 1, 5, 9, 15), utc(2026, 1, 5, 9, 45), True),
        (utc(2026, 1, 5, 8, 0), utc(2026, 1, 5, 11, 0), True),
        (utc(2026, 1, 5, 9, 30), utc(2026, 1, 5, 10, 0), False),
        (utc(2026, 1, 5, 8, 30), utc(2026, 1, 5, 9, 0), False),
        (utc(2026, 1, 5, 11, 0), utc(2026, 1, 5, 12, 0), False),
    ],
)
def test_intervals_overlap_uses_half_open_intervals(b_start: datetime, b_end: datetime, expected: bool) -> None:
    assert intervals_overlap(utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 9, 30), b_start, b_end) is expected
