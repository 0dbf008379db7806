"""
Domain models for bookings, weekly availability and time range checks.
"""

import math
from dataclasses import dataclass, field
from datetime import date as _date
from datetime import time
from typing import Any, List, Mapping, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import ScheduleDataError

# Statuses that still occupy the cleaner's calendar
ACTIVE_STATUSES: Tuple[str, ...] = (
    "scheduled",
    "confirmed",
    "awaiting_cleaner",
    "cleaning_now",
)

# ISO order: index 0 is Monday
WEEKDAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

MINUTES_PER_DAY = 24 * 60

# Closing time of a window that runs to midnight ("24:00")
END_OF_DAY = time.max


def parse_date(value: Any) -> Date:
    """
    Parse an ISO calendar date (YYYY-MM-DD) into a pendulum Date.

    Accepts strings as well as ``date``/``datetime`` instances.

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    if isinstance(value, _date):
        return pendulum.date(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO date string, got {value!r}")
    return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()


def parse_clock(value: Any) -> time:
    """
    Parse a wall-clock time in HH:MM (optionally HH:MM:SS) format.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValueError(f"Expected a HH:MM time string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")

    return time(hour=int(parts[0]), minute=int(parts[1]))


def parse_window_end(value: Any) -> time:
    """
    Parse the closing time of an availability window.

    "24:00" closes the window at the end of the day.
    """
    if isinstance(value, str) and value.strip() in ("24:00", "24:00:00"):
        return END_OF_DAY
    return parse_clock(value)


def clock_label(value: time) -> str:
    """Format a window boundary as HH:MM, with END_OF_DAY shown as 24:00."""
    if value == END_OF_DAY:
        return "24:00"
    return value.strftime("%H:%M")


def weekday_name(day: _date) -> str:
    """Return the English weekday name for a date, independent of locale."""
    return WEEKDAY_NAMES[day.isoweekday() - 1]


def minutes_since_midnight(value: time) -> int:
    if value == END_OF_DAY:
        return MINUTES_PER_DAY
    return value.hour * 60 + value.minute


def _positive_hours(value: Any) -> float:
    hours = float(value)
    # Rejects NaN, infinity and durations that round to zero seconds
    if not math.isfinite(hours) or round(hours * 3600) <= 0:
        raise ValueError(f"Duration must be positive, got {value!r} hours")
    return hours


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_wall_clock(
        cls,
        day: Date,
        start_time: time,
        hours: float,
        timezone: str = "UTC"
    ) -> "TimeRange":
        """Build a range from a calendar date, a local start time and a duration."""
        start = pendulum.datetime(
            day.year,
            day.month,
            day.day,
            start_time.hour,
            start_time.minute,
            tz=timezone
        )
        return cls(start=start, end=start.add(seconds=int(round(hours * 3600))))

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant lies strictly inside the range."""
        return self.start < instant < self.end

    def expand(self, minutes: int) -> "TimeRange":
        """Return a copy padded by ``minutes`` on both ends."""
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes)
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class Booking:
    """
    A booking record as held by the entity store.

    Only the fields needed for calendar checks are kept.
    """
    id: str
    cleaner_email: str
    date: Date
    start_time: time
    hours: float
    status: str = "scheduled"
    address: str = ""

    def __post_init__(self):
        _positive_hours(self.hours)

    @property
    def is_active(self) -> bool:
        """True while the booking still occupies the cleaner's calendar."""
        return self.status in ACTIVE_STATUSES

    def time_range(self, timezone: str = "UTC") -> TimeRange:
        return TimeRange.from_wall_clock(self.date, self.start_time, self.hours, timezone)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Booking":
        """
        Build a Booking from a raw entity-store record.

        ``estimated_hours`` is used when ``hours`` is absent.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field cannot be parsed
        """
        hours = record.get("hours")
        if hours is None:
            hours = record["estimated_hours"]

        return cls(
            id=str(record["id"]),
            cleaner_email=str(record["cleaner_email"]).lower(),
            date=parse_date(record["date"]),
            start_time=parse_clock(record["start_time"]),
            hours=_positive_hours(hours),
            status=str(record.get("status", "scheduled")),
            address=str(record.get("address") or "")
        )


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    A cleaner's declared working hours for one weekday.

    Invariant: an available window with both times set must open before it closes.
    """
    day: str
    available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def __post_init__(self):
        if self.day not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday name: {self.day!r}")
        if (
            self.available
            and self.start_time is not None
            and self.end_time is not None
            and self.start_time >= self.end_time
        ):
            raise ValueError(
                f"{self.day}: start {self.start_time} must be before end {self.end_time}"
            )

    def minute_range(self) -> Tuple[int, int]:
        """
        Return the window as (start, end) minutes since midnight.

        Raises:
            ScheduleDataError: If the window has no explicit hours
        """
        if self.start_time is None or self.end_time is None:
            raise ScheduleDataError(f"{self.day}: availability window has no hours")
        return minutes_since_midnight(self.start_time), minutes_since_midnight(self.end_time)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AvailabilityWindow":
        start = record.get("start_time")
        end = record.get("end_time")
        return cls(
            day=str(record["day"]),
            available=bool(record.get("available")),
            start_time=parse_clock(start) if start else None,
            end_time=parse_window_end(end) if end else None
        )


@dataclass(frozen=True)
class ConflictCheckRequest:
    """
    A candidate booking window for one cleaner.

    ``exclude_booking_id`` lets a booking being rescheduled skip itself.
    """
    cleaner_email: str
    date: Date
    start_time: time
    hours: float
    exclude_booking_id: Optional[str] = None

    def __post_init__(self):
        _positive_hours(self.hours)

    @classmethod
    def build(
        cls,
        cleaner_email: str,
        date: Any,
        start_time: Any,
        hours: Any,
        exclude_booking_id: Optional[str] = None
    ) -> "ConflictCheckRequest":
        """
        Build a request from loosely typed caller input.

        Raises:
            ValueError: If the date, time or duration is invalid
        """
        return cls(
            cleaner_email=cleaner_email.strip().lower(),
            date=parse_date(date),
            start_time=parse_clock(start_time),
            hours=_positive_hours(hours),
            exclude_booking_id=exclude_booking_id or None
        )

    def time_range(self, timezone: str = "UTC") -> TimeRange:
        return TimeRange.from_wall_clock(self.date, self.start_time, self.hours, timezone)


@dataclass
class ConflictCheckResult:
    """Outcome of a conflict check; ``error`` is set when the lookup failed."""
    has_conflict: bool
    conflicting_bookings: List[Booking] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def lookup_failed(cls, message: str) -> "ConflictCheckResult":
        return cls(has_conflict=False, conflicting_bookings=[], error=message)


@dataclass
class AvailabilityDecision:
    """Combined verdict used before creating or moving a booking."""
    available: bool
    reason: str
    conflicts: List[Booking] = field(default_factory=list)
