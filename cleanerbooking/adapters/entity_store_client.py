"""
Client for the hosted entity store's filter API.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping

import requests
from pendulum import Date

from ..domain.exceptions import BookingStoreError
from ..domain.models import ACTIVE_STATUSES, Booking

logger = logging.getLogger(__name__)


class EntityStoreClient:
    """
    Read-only client for the backend platform's named record types.

    Uses ``GET /apps/{app_id}/entities/{Entity}?q=<filter>`` which returns a
    JSON array of matching records.
    """

    def __init__(
        self,
        base_url: str,
        app_id: str,
        api_key: str = "",
        timeout_seconds: float = 30,
        session: requests.Session | None = None
    ):
        """
        Initialize the store client.

        Args:
            base_url: API root, e.g. https://app.example.com/api
            app_id: Application identifier on the platform
            api_key: Optional service key sent in the ``api_key`` header
            timeout_seconds: Per-request timeout
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.app_id = app_id
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["api_key"] = api_key

    def filter(self, entity: str, query: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        Fetch records of ``entity`` matching ``query``.

        Raises:
            BookingStoreError: If the call fails or the payload is not a list
        """
        url = f"{self.base_url}/apps/{self.app_id}/entities/{entity}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params={"q": json.dumps(dict(query))},
                timeout=self.timeout_seconds
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise BookingStoreError(f"Failed to fetch {entity} records: {e}") from e
        except ValueError as e:
            raise BookingStoreError(f"Invalid JSON in {entity} response: {e}") from e

        if not isinstance(data, list):
            raise BookingStoreError(
                f"Unexpected {entity} response: expected a list, got {type(data).__name__}"
            )

        return data

    def fetch_active_bookings(self, cleaner_email: str, date: Date) -> List[Booking]:
        """Blocking variant of ``list_active_bookings``."""
        records = self.filter(
            "Booking",
            {
                "cleaner_email": cleaner_email,
                "date": date.to_date_string(),
                "status": {"$in": list(ACTIVE_STATUSES)},
            }
        )
        return self._parse_bookings(records)

    def fetch_cleaner_availability(self, cleaner_email: str) -> List[Dict[str, Any]]:
        """Blocking variant of ``get_cleaner_availability``."""
        profiles = self.filter("CleanerProfile", {"user_email": cleaner_email})

        if not profiles:
            logger.warning("No cleaner profile found for %s", cleaner_email)
            return []

        availability = profiles[0].get("availability") or []
        if not isinstance(availability, list):
            raise BookingStoreError(f"Malformed availability on profile of {cleaner_email}")

        return availability

    async def list_active_bookings(self, cleaner_email: str, date: Date) -> List[Booking]:
        return await asyncio.to_thread(self.fetch_active_bookings, cleaner_email, date)

    async def get_cleaner_availability(self, cleaner_email: str) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.fetch_cleaner_availability, cleaner_email)

    @staticmethod
    def _parse_bookings(records: List[Dict[str, Any]]) -> List[Booking]:
        """Convert raw records, skipping any that cannot be parsed."""
        bookings: List[Booking] = []

        for record in records:
            try:
                bookings.append(Booking.from_record(record))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                record_id = record.get("id") if isinstance(record, dict) else record
                logger.warning("Skipping unparseable booking record %r: %s", record_id, e)
                continue

        return bookings
