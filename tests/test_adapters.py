"""
Tests for the entity store adapters.
"""

import asyncio
import json
from typing import Any, Dict, List

import pendulum
import pytest
import requests

from cleanerbooking.adapters.entity_store_client import EntityStoreClient
from cleanerbooking.adapters.mock_entity_store import MockEntityStore
from cleanerbooking.domain.exceptions import BookingStoreError
from cleanerbooking.domain.models import ConflictCheckRequest
from cleanerbooking.services.booking_availability import BookingAvailabilityService

MONDAY = pendulum.date(2026, 1, 5)


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self) -> Any:
        return self._payload


class FakeSession:
    """Records GET calls and replays queued responses per entity."""

    def __init__(self, responses: Dict[str, Any]):
        self._responses = responses
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        response = self._responses[url.rsplit("/", 1)[-1]]
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses: Dict[str, Any], api_key: str = "secret") -> EntityStoreClient:
    return EntityStoreClient(
        base_url="https://app.example.com/api/",
        app_id="app-1",
        api_key=api_key,
        timeout_seconds=5,
        session=FakeSession(responses),
    )


class TestEntityStoreClient:
    """Tests for EntityStoreClient."""

    def test_lists_active_bookings(self):
        client = _client({
            "Booking": FakeResponse([
                {
                    "id": "bk-1",
                    "cleaner_email": "anna@example.com",
                    "date": "2026-01-05",
                    "start_time": "10:00",
                    "hours": 2,
                    "status": "confirmed",
                },
            ])
        })

        bookings = asyncio.run(client.list_active_bookings("anna@example.com", MONDAY))

        assert [b.id for b in bookings] == ["bk-1"]
        call = client.session.calls[0]
        assert call["url"] == "https://app.example.com/api/apps/app-1/entities/Booking"
        assert call["headers"]["api_key"] == "secret"
        assert call["timeout"] == 5
        query = json.loads(call["params"]["q"])
        assert query["date"] == "2026-01-05"
        assert query["status"] == {"$in": ["scheduled", "confirmed", "awaiting_cleaner", "cleaning_now"]}

    def test_skips_unparseable_records(self, caplog):
        client = _client({
            "Booking": FakeResponse([
                {"id": "bk-bad", "cleaner_email": "anna@example.com", "date": "2026-01-05"},
                {
                    "id": "bk-2",
                    "cleaner_email": "anna@example.com",
                    "date": "2026-01-05",
                    "start_time": "14:00",
                    "hours": 1,
                },
            ])
        })

        bookings = client.fetch_active_bookings("anna@example.com", MONDAY)

        assert [b.id for b in bookings] == ["bk-2"]
        assert "bk-bad" in caplog.text

    def test_non_object_records_are_skipped(self, caplog):
        client = _client({"Booking": FakeResponse(["garbage"])})

        assert client.fetch_active_bookings("anna@example.com", MONDAY) == []
        assert "garbage" in caplog.text

    def test_non_object_records_do_not_break_conflict_check(self):
        service = BookingAvailabilityService(store=_client({"Booking": FakeResponse(["garbage"])}))
        request = ConflictCheckRequest.build("anna@example.com", "2026-01-05", "10:00", 2)

        result = asyncio.run(service.check_booking_conflict(request))

        assert not result.has_conflict
        assert result.conflicting_bookings == []
        assert result.error is None

    def test_no_api_key_header_when_unset(self):
        client = _client({"Booking": FakeResponse([])}, api_key="")

        client.fetch_active_bookings("anna@example.com", MONDAY)

        assert "api_key" not in client.session.calls[0]["headers"]

    def test_request_failure_raises_store_error(self):
        client = _client({"Booking": requests.ConnectionError("connection refused")})

        with pytest.raises(BookingStoreError, match="connection refused"):
            client.fetch_active_bookings("anna@example.com", MONDAY)

    def test_http_error_raises_store_error(self):
        client = _client({"Booking": FakeResponse({"message": "boom"}, status_code=500)})

        with pytest.raises(BookingStoreError, match="500"):
            client.fetch_active_bookings("anna@example.com", MONDAY)

    def test_non_list_payload_raises_store_error(self):
        client = _client({"Booking": FakeResponse({"items": []})})

        with pytest.raises(BookingStoreError, match="expected a list"):
            client.fetch_active_bookings("anna@example.com", MONDAY)

    def test_availability_from_first_profile(self):
        availability = [{"day": "Monday", "available": True, "start_time": "08:00", "end_time": "17:00"}]
        client = _client({
            "CleanerProfile": FakeResponse([
                {"user_email": "anna@example.com", "availability": availability},
                {"user_email": "anna@example.com", "availability": []},
            ])
        })

        result = asyncio.run(client.get_cleaner_availability("anna@example.com"))

        assert result == availability
        assert json.loads(client.session.calls[0]["params"]["q"]) == {"user_email": "anna@example.com"}

    def test_missing_profile_means_no_availability(self):
        client = _client({"CleanerProfile": FakeResponse([])})

        assert client.fetch_cleaner_availability("ghost@example.com") == []

    def test_malformed_availability_raises_store_error(self):
        client = _client({"CleanerProfile": FakeResponse([{"availability": "weekdays"}])})

        with pytest.raises(BookingStoreError):
            client.fetch_cleaner_availability("anna@example.com")


class TestMockEntityStore:
    """Tests for MockEntityStore with the bundled sample data."""

    def test_active_bookings_for_date(self):
        store = MockEntityStore()

        bookings = asyncio.run(store.list_active_bookings("anna@example.com", MONDAY))

        # bk-1002 on the same day is cancelled
        assert [b.id for b in bookings] == ["bk-1001"]

    def test_estimated_hours_records(self):
        store = MockEntityStore()

        bookings = asyncio.run(store.list_active_bookings("BEN@example.com", MONDAY))

        assert [(b.id, b.hours) for b in bookings] == [("bk-2001", 4)]

    def test_availability_lookup(self):
        store = MockEntityStore()

        availability = asyncio.run(store.get_cleaner_availability("anna@example.com"))

        assert [entry["day"] for entry in availability][:2] == ["Monday", "Tuesday"]
        assert asyncio.run(store.get_cleaner_availability("ghost@example.com")) == []

    def test_fail_with_raises(self):
        store = MockEntityStore(data={}, fail_with="backend offline")

        with pytest.raises(BookingStoreError, match="backend offline"):
            asyncio.run(store.list_active_bookings("anna@example.com", MONDAY))

    def test_missing_data_file_starts_empty(self, tmp_path):
        store = MockEntityStore(data_file=tmp_path / "missing.json")

        assert asyncio.run(store.list_active_bookings("anna@example.com", MONDAY)) == []

    def test_loads_custom_data_file(self, tmp_path):
        data_file = tmp_path / "store.json"
        data_file.write_text(json.dumps({
            "bookings": [
                {
                    "id": "x-1",
                    "cleaner_email": "cara@example.com",
                    "date": "2026-01-05",
                    "start_time": "08:00",
                    "hours": 1,
                    "status": "scheduled",
                },
                {"id": "x-2", "cleaner_email": "cara@example.com", "date": "garbage"},
            ]
        }), encoding="utf-8")

        store = MockEntityStore(data_file=data_file)

        bookings = asyncio.run(store.list_active_bookings("cara@example.com", MONDAY))
        assert [b.id for b in bookings] == ["x-1"]
