"""
Domain-specific exception hierarchy for the booking checks.
"""


class BookingCheckError(Exception):
    """Base class for all application-level errors."""


class BookingStoreError(BookingCheckError):
    """Raised when booking or profile records cannot be fetched from the store."""


class ScheduleDataError(BookingCheckError):
    """Raised when availability or time data cannot be interpreted."""
