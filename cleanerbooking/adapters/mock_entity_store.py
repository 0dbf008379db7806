"""
Mock entity store for running the checks without the hosted backend.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import Date

from ..domain.exceptions import BookingStoreError
from ..domain.models import Booking

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_store_data.json"


class MockEntityStore:
    """
    Store that serves bookings and cleaner profiles from a JSON document.

    The document has two arrays, ``bookings`` and ``cleaner_profiles``, in
    the same shape the hosted store returns them.
    """

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        data_file: Optional[Path] = None,
        fail_with: Optional[str] = None
    ):
        """
        Initialize the mock store.

        Args:
            data: In-memory document; takes precedence over ``data_file``
            data_file: JSON file to load (defaults to the bundled sample data)
            fail_with: If set, every lookup raises BookingStoreError with this message
        """
        self.fail_with = fail_with
        if data is not None:
            self.data = data
        else:
            self.data = self._load_data(data_file or DEFAULT_DATA_FILE)

    @staticmethod
    def _load_data(data_file: Path) -> Dict[str, Any]:
        if not data_file.exists():
            logger.warning("Mock data file %s not found, starting empty", data_file)
            return {}

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _check_failure(self) -> None:
        if self.fail_with:
            raise BookingStoreError(self.fail_with)

    async def list_active_bookings(self, cleaner_email: str, date: Date) -> List[Booking]:
        """Active bookings of the cleaner on ``date`` from the mock document."""
        self._check_failure()

        bookings: List[Booking] = []
        for record in self.data.get("bookings", []):
            if str(record.get("cleaner_email", "")).lower() != cleaner_email.lower():
                continue

            try:
                booking = Booking.from_record(record)
            except (KeyError, ValueError, TypeError):
                # Skip invalid records
                continue

            if booking.date == date and booking.is_active:
                bookings.append(booking)

        return bookings

    async def get_cleaner_availability(self, cleaner_email: str) -> List[Dict[str, Any]]:
        self._check_failure()

        for profile in self.data.get("cleaner_profiles", []):
            if str(profile.get("user_email", "")).lower() == cleaner_email.lower():
                return list(profile.get("availability") or [])

        return []
