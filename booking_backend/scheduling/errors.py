class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""


class InvalidSlotQuery(SchedulingError, ValueError):
    """The caller passed arguments no slots can be computed for."""


class BookingConflict(SchedulingError):
    """A booking request was rejected by the admission check."""

    BOOKED = 'booked'
    BLACKOUT = 'blackout'
    PAST = 'past'
    OUTSIDE_HOURS = 'outside_hours'

    def __init__(self, reason: str, message: str, conflicts: tuple = ()) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.conflicts = tuple(conflicts)
