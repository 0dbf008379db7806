"""
Application service for booking conflict and availability checks.

The service fetches a cleaner's bookings and weekly availability once via a
store adapter and delegates every decision to the domain checkers. Store
access is expressed as a protocol so the real entity-store client, the mock
store or a test stub can be plugged in.

Failure policy:
- conflict checks fail open (a lookup error never blocks a booking flow)
- schedule and enforcement checks fail closed

Any exception raised by the store counts as a failed lookup.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import Any, Dict, List, Protocol

from pendulum import Date

from ..domain.conflict_checker import ConflictChecker
from ..domain.models import (
    AvailabilityDecision,
    Booking,
    ConflictCheckRequest,
    ConflictCheckResult,
    clock_label,
    parse_date,
    weekday_name,
)
from ..domain.schedule import SCHEDULE_PARSE_ERRORS, ScheduleAvailabilityChecker

logger = logging.getLogger(__name__)

LOOKUP_FAILED_REASON = "Error checking availability. Please try again."


class BookingStoreProtocol(Protocol):
    """Protocol describing the store behaviour needed by the service."""

    async def list_active_bookings(self, cleaner_email: str, date: Date) -> List[Booking]:
        """Return the cleaner's active bookings on the given date."""

    async def get_cleaner_availability(self, cleaner_email: str) -> List[Dict[str, Any]]:
        """Return the raw per-weekday availability records of the cleaner."""


class BookingAvailabilityService:
    """
    Orchestrates store lookups and the domain checks.

    Only the lookup suspends; the checks themselves are synchronous. Nothing
    here is retried or locked, so two callers may both see a free slot.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        conflict_checker: ConflictChecker | None = None,
        schedule_checker: ScheduleAvailabilityChecker | None = None,
        slot_step_minutes: int = 30,
    ) -> None:
        self._store = store
        self._conflict_checker = conflict_checker or ConflictChecker()
        self._schedule_checker = schedule_checker or ScheduleAvailabilityChecker(
            conflict_checker=self._conflict_checker
        )
        self._slot_step_minutes = slot_step_minutes

    @property
    def buffer_minutes(self) -> int:
        """Minimum gap enforced between bookings."""
        return self._conflict_checker.buffer_minutes

    async def check_booking_conflict(self, request: ConflictCheckRequest) -> ConflictCheckResult:
        """
        Check whether the candidate window clashes with an active booking.

        A failed lookup is reported in ``error`` with ``has_conflict=False``;
        the caller decides whether to proceed.
        """
        try:
            bookings = await self._store.list_active_bookings(
                request.cleaner_email,
                request.date,
            )
        except Exception as exc:
            logger.warning(
                "Booking lookup failed for %s on %s, treating as no conflict: %s",
                request.cleaner_email,
                request.date,
                exc,
            )
            return ConflictCheckResult.lookup_failed(str(exc))

        conflicts = self._conflict_checker.find_conflicts(request, bookings)

        return ConflictCheckResult(
            has_conflict=bool(conflicts),
            conflicting_bookings=conflicts,
        )

    async def check_schedule_availability(
        self,
        cleaner_email: str,
        date: Any,
        start_time: Any,
        hours: Any,
    ) -> bool:
        """Check the candidate window against the cleaner's weekly hours."""
        try:
            availability = await self._store.get_cleaner_availability(cleaner_email)
        except Exception as exc:
            logger.warning("Availability lookup failed for %s: %s", cleaner_email, exc)
            return False

        return self._schedule_checker.is_within_schedule(availability, date, start_time, hours)

    async def check_cleaner_availability(self, request: ConflictCheckRequest) -> AvailabilityDecision:
        """
        Decide whether a booking may be created for the request.

        Existing bookings are checked first, then the weekly schedule. Any
        lookup failure yields an unavailable decision.
        """
        try:
            bookings = await self._store.list_active_bookings(
                request.cleaner_email,
                request.date,
            )
            availability = await self._store.get_cleaner_availability(request.cleaner_email)
        except Exception as exc:
            logger.warning("Availability enforcement lookup failed for %s: %s", request.cleaner_email, exc)
            return AvailabilityDecision(available=False, reason=LOOKUP_FAILED_REASON)

        conflicts = self._conflict_checker.find_conflicts(request, bookings)
        if conflicts:
            return AvailabilityDecision(
                available=False,
                reason=f"Cleaner has {len(conflicts)} conflicting booking(s) on this date/time",
                conflicts=conflicts,
            )

        day_name = weekday_name(request.date)
        if not self._schedule_checker.is_within_schedule(
            availability,
            request.date,
            request.start_time,
            request.hours,
        ):
            return AvailabilityDecision(
                available=False,
                reason=self._describe_schedule(availability, day_name),
            )

        return AvailabilityDecision(available=True, reason="Cleaner is available")

    async def find_open_slots(self, cleaner_email: str, date: Any, hours: Any) -> List[time]:
        """List start times on ``date`` where the cleaner can take a booking."""
        try:
            day = parse_date(date)
        except ValueError as exc:
            logger.warning("Invalid date for open slots: %s", exc)
            return []

        try:
            bookings = await self._store.list_active_bookings(cleaner_email, day)
            availability = await self._store.get_cleaner_availability(cleaner_email)
        except Exception as exc:
            logger.warning("Open slot lookup failed for %s on %s: %s", cleaner_email, day, exc)
            return []

        return self._schedule_checker.open_start_times(
            availability,
            bookings,
            day,
            hours,
            step_minutes=self._slot_step_minutes,
        )

    def _describe_schedule(self, availability: List[Dict[str, Any]], day_name: str) -> str:
        """Human-readable reason for a schedule mismatch."""
        try:
            window = self._schedule_checker.window_for_day(availability, day_name)
        except SCHEDULE_PARSE_ERRORS:
            window = None

        if window is None or not window.available:
            return f"Cleaner is not available on {day_name}s"

        if window.start_time is None or window.end_time is None:
            return f"Cleaner has no working hours set for {day_name}s"

        return (
            f"Cleaner is only available {clock_label(window.start_time)} - "
            f"{clock_label(window.end_time)} on {day_name}s"
        )
