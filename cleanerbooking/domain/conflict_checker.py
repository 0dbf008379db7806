"""
Core conflict detection between a candidate booking and a cleaner's calendar.

Pure domain logic: the bookings are handed in, nothing is fetched here.
"""

import logging
from typing import Iterable, List, Optional

from .models import Booking, ConflictCheckRequest, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MINUTES = 30


class ConflictChecker:
    """
    Finds existing bookings that clash with a candidate window.

    Algorithm:
    1. Drop inactive bookings and the booking being rescheduled
    2. Pad the candidate window by the buffer on both ends
    3. Flag every booking that passes any of the four boundary tests
    """

    def __init__(self, buffer_minutes: int = DEFAULT_BUFFER_MINUTES, timezone: str = "UTC"):
        if buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {buffer_minutes}")
        self.buffer_minutes = buffer_minutes
        self.timezone = timezone

    def find_conflicts(
        self,
        request: ConflictCheckRequest,
        bookings: Iterable[Booking]
    ) -> List[Booking]:
        """
        Return the bookings that conflict with the request, in input order.

        Args:
            request: Candidate window for the cleaner
            bookings: The cleaner's bookings on the candidate date

        Returns:
            List of conflicting bookings (empty when the slot is free)
        """
        relevant = self.relevant_bookings(bookings, request.exclude_booking_id)

        if not relevant:
            return []

        candidate = request.time_range(self.timezone)

        conflicts = [
            booking for booking in relevant
            if self.conflicts_with(candidate, booking.time_range(self.timezone))
        ]

        logger.debug(
            "%d of %d booking(s) conflict with %s for %s",
            len(conflicts),
            len(relevant),
            candidate,
            request.cleaner_email
        )
        return conflicts

    @staticmethod
    def relevant_bookings(
        bookings: Iterable[Booking],
        exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """Active bookings other than the excluded one."""
        return [
            booking for booking in bookings
            if booking.is_active and booking.id != exclude_booking_id
        ]

    def conflicts_with(self, candidate: TimeRange, existing: TimeRange) -> bool:
        """
        Four boundary tests against the buffered candidate.

        Buffered containment is strict, so a gap of exactly the buffer is
        allowed. Back-to-back ranges never conflict when the buffer is zero.
        """
        buffered = candidate.expand(self.buffer_minutes)

        return (
            buffered.contains(existing.start)
            or buffered.contains(existing.end)
            or existing.start <= candidate.start < existing.end
            or existing.start < candidate.end <= existing.end
        )
