"""Expansion of weekly availability templates onto calendar days."""

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable

from booking_backend.scheduling.calendar import MINUTES_PER_DAY, local_minutes_to_instant, weekday_of
from booking_backend.scheduling.errors import InvalidSlotQuery
from booking_backend.scheduling.types import OpenWindow, WeeklyTemplate

MIN_SLOT_STEP_MINUTES = 5
MAX_SLOT_STEP_MINUTES = 60


def validate_template(template: WeeklyTemplate) -> None:
    if not 0 <= template.weekday <= 6:
        raise InvalidSlotQuery(f'Template weekday must be between 0 and 6, got {template.weekday}.')
    if not 0 <= template.start_minutes < template.end_minutes <= MINUTES_PER_DAY:
        raise InvalidSlotQuery(
            f'Template window {template.start_minutes}-{template.end_minutes} is not a valid range of the day.'
        )
    if not MIN_SLOT_STEP_MINUTES <= template.slot_step_min <= MAX_SLOT_STEP_MINUTES:
        raise InvalidSlotQuery(
            f'Template slot step must be between {MIN_SLOT_STEP_MINUTES} and {MAX_SLOT_STEP_MINUTES} '
            f'minutes, got {template.slot_step_min}.'
        )


def templates_for_weekday(templates: Iterable[WeeklyTemplate], weekday: int) -> list[WeeklyTemplate]:
    return [template for template in templates if template.weekday == weekday]


def resolve_open_windows(
    templates: Iterable[WeeklyTemplate],
    day: date,
    timezone: str | tzinfo,
) -> list[OpenWindow]:
    """Every template window that applies to ``day``, in template order.

    Templates configured for the same weekday are all returned, even when
    they overlap; they are walked independently by the slot generator.
    """
    windows: list[OpenWindow] = []

    for template in templates_for_weekday(templates, weekday_of(day)):
        validate_template(template)
        windows.append(
            OpenWindow(
                start=local_minutes_to_instant(day, template.start_minutes, timezone),
                end=local_minutes_to_instant(day, template.end_minutes, timezone),
                step_min=template.slot_step_min,
                template_id=template.id,
            )
        )

    return windows


def matches_open_slot(start: datetime, end: datetime, windows: Iterable[OpenWindow]) -> bool:
    """True when ``[start, end)`` is a slot some window's walk would produce."""
    for window in windows:
        if start < window.start or end > window.end:
            continue
        offset = start - window.start
        if offset % timedelta(minutes=window.step_min) == timedelta(0):
            return True
    return False
