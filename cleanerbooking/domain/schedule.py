"""
Weekly availability checks against a cleaner's declared working hours.

Everything here fails closed: malformed or missing availability data is
never read as "available".
"""

import logging
import math
from datetime import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .conflict_checker import ConflictChecker
from .exceptions import BookingCheckError, ScheduleDataError
from .models import (
    WEEKDAY_NAMES,
    AvailabilityWindow,
    Booking,
    TimeRange,
    minutes_since_midnight,
    parse_clock,
    parse_date,
    weekday_name,
)

logger = logging.getLogger(__name__)

WindowInput = Union[AvailabilityWindow, Mapping[str, Any]]

# Calendar widgets index weekdays from Sunday
SUNDAY_FIRST_WEEKDAYS = WEEKDAY_NAMES[6:] + WEEKDAY_NAMES[:6]

# Anything a malformed availability record can raise while being read
SCHEDULE_PARSE_ERRORS = (BookingCheckError, ValueError, TypeError, KeyError, AttributeError)


def _duration_minutes(hours: Any) -> float:
    minutes = float(hours) * 60
    if not math.isfinite(minutes) or minutes <= 0:
        raise ScheduleDataError(f"Duration must be positive, got {hours!r} hours")
    return minutes


class ScheduleAvailabilityChecker:
    """
    Answers questions about a cleaner's recurring weekly availability.

    Availability may be given as ``AvailabilityWindow`` objects or as the raw
    per-weekday records stored on the cleaner profile.
    """

    def __init__(self, conflict_checker: Optional[ConflictChecker] = None):
        self.conflict_checker = conflict_checker or ConflictChecker()

    def is_within_schedule(
        self,
        availability: Sequence[WindowInput],
        date: Any,
        start_time: Any,
        hours: Any
    ) -> bool:
        """
        Check that a booking fits entirely inside the weekday's window.

        Args:
            availability: Per-weekday windows of the cleaner
            date: Booking date (YYYY-MM-DD or date)
            start_time: Start time (HH:MM or time)
            hours: Duration in hours

        Returns:
            True only if the whole booking lies inside declared hours
        """
        try:
            day = parse_date(date)
            requested_start = minutes_since_midnight(parse_clock(start_time))
            requested_end = requested_start + _duration_minutes(hours)

            window = self.window_for_day(availability, weekday_name(day))
            if window is None or not window.available:
                logger.debug("No availability on %s", weekday_name(day))
                return False

            window_start, window_end = window.minute_range()
        except SCHEDULE_PARSE_ERRORS as exc:
            logger.warning("Could not check schedule availability: %s", exc)
            return False

        return requested_start >= window_start and requested_end <= window_end

    def window_for_day(
        self,
        availability: Iterable[WindowInput],
        day_name: str
    ) -> Optional[AvailabilityWindow]:
        """
        Find and parse the entry for one weekday.

        Only the matching entry is parsed, so a broken record for another
        day does not affect the result.

        Raises:
            ValueError: If the matching entry is malformed
        """
        for entry in availability:
            if isinstance(entry, AvailabilityWindow):
                if entry.day == day_name:
                    return entry
            elif entry.get("day") == day_name:
                return AvailabilityWindow.from_record(entry)
        return None

    def unavailable_weekdays(self, availability: Sequence[WindowInput]) -> List[str]:
        """
        List the weekdays a cleaner does not work, Sunday first.

        Days with no entry, a closed entry or a malformed entry are included.
        """
        closed: List[str] = []

        for day_name in SUNDAY_FIRST_WEEKDAYS:
            try:
                window = self.window_for_day(availability or [], day_name)
            except SCHEDULE_PARSE_ERRORS as exc:
                logger.warning("Ignoring malformed availability for %s: %s", day_name, exc)
                window = None

            if window is None or not window.available:
                closed.append(day_name)

        return closed

    def open_start_times(
        self,
        availability: Sequence[WindowInput],
        bookings: Iterable[Booking],
        date: Any,
        hours: Any,
        step_minutes: int = 30
    ) -> List[time]:
        """
        Start times on ``date`` where a booking of ``hours`` can be placed.

        Candidates are stepped from the window start; each must end inside
        the window and clear every active booking including the buffer.
        """
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be positive, got {step_minutes}")

        try:
            day = parse_date(date)
            duration = _duration_minutes(hours)

            window = self.window_for_day(availability, weekday_name(day))
            if window is None or not window.available:
                return []

            window_start, window_end = window.minute_range()
        except SCHEDULE_PARSE_ERRORS as exc:
            logger.warning("Could not compute open start times: %s", exc)
            return []

        checker = self.conflict_checker
        busy: List[TimeRange] = [
            booking.time_range(checker.timezone)
            for booking in checker.relevant_bookings(bookings)
        ]

        open_times: List[time] = []
        minute = window_start

        while minute + duration <= window_end:
            start = time(hour=minute // 60, minute=minute % 60)
            candidate = TimeRange.from_wall_clock(day, start, duration / 60, checker.timezone)

            if not any(checker.conflicts_with(candidate, existing) for existing in busy):
                open_times.append(start)

            minute += step_minutes

        return open_times
