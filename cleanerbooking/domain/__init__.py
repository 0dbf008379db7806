"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflict_checker import ConflictChecker
from .models import (
    ACTIVE_STATUSES,
    AvailabilityDecision,
    AvailabilityWindow,
    Booking,
    ConflictCheckRequest,
    ConflictCheckResult,
    TimeRange,
)
from .schedule import ScheduleAvailabilityChecker

__all__ = [
    "ACTIVE_STATUSES",
    "AvailabilityDecision",
    "AvailabilityWindow",
    "Booking",
    "ConflictChecker",
    "ConflictCheckRequest",
    "ConflictCheckResult",
    "ScheduleAvailabilityChecker",
    "TimeRange",
]
