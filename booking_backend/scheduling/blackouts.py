from datetime import datetime
from typing import Iterable

from booking_backend.scheduling.calendar import intervals_overlap
from booking_backend.scheduling.types import BlackoutPeriod


def overlapping_blackouts(
    slot_start: datetime,
    slot_end: datetime,
    blackouts: Iterable[BlackoutPeriod],
) -> list[BlackoutPeriod]:
    return [
        blackout
        for blackout in blackouts
        if intervals_overlap(slot_start, slot_end, blackout.starts_at, blackout.ends_at)
    ]


def is_blacked_out(slot_start: datetime, slot_end: datetime, blackouts: Iterable[BlackoutPeriod]) -> bool:
    return any(
        intervals_overlap(slot_start, slot_end, blackout.starts_at, blackout.ends_at)
        for blackout in blackouts
    )
