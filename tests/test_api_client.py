"""Tests for the HTTP booking page client against a mocked transport."""

import json

import httpx
import pytest

from booking_widget.api.client import BookingPageClient
from booking_widget.errors import (
    BookingDisabledError,
    MalformedResponseError,
    NetworkError,
    ResourceNotFoundError,
    SlotConflictError,
    TransientSubmissionError,
)
from booking_widget.schemas.booking_schema import BookingRequest

BASE_URL = "https://api.example.com/api/v1/public"

PAGE_BODY = {
    "host": {"name": "Jane Host", "username": "jane"},
    "call_type": {"name": "Intro Call", "duration_minutes": 30},
    "timezone": "America/New_York",
    "settings": {"min_notice_hours": 24, "max_days_ahead": 60},
}


def _client(handler) -> BookingPageClient:
    transport = httpx.MockTransport(handler)
    return BookingPageClient(base_url=BASE_URL, client=httpx.AsyncClient(transport=transport))


def _request() -> BookingRequest:
    return BookingRequest.for_host_slot(
        "2024-03-04", "20:00", "Asia/Tokyo", "Ana Lima", "ana@example.com"
    )


class TestGetCallTypePage:
    @pytest.mark.asyncio
    async def test_parses_page(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=PAGE_BODY)

        async with _client(handler) as client:
            page = await client.get_call_type_page("jane", "intro")

        assert seen[0].method == "GET"
        assert str(seen[0].url) == f"{BASE_URL}/book/jane/intro"
        assert page.timezone == "America/New_York"
        assert page.settings.min_notice_hours == 24
        assert page.call_type.name == "Intro Call"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        client = _client(lambda request: httpx.Response(404, json={"detail": "Booking page not found"}))
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await client.get_call_type_page("jane", "missing")
        assert exc_info.value.status_code == 404
        await client.aclose()

    @pytest.mark.asyncio
    async def test_403_is_booking_disabled(self):
        client = _client(lambda request: httpx.Response(403, json={"detail": "Bookings disabled"}))
        with pytest.raises(BookingDisabledError, match="Bookings disabled"):
            await client.get_call_type_page("jane", "intro")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(MalformedResponseError):
            await client.get_call_type_page("jane", "intro")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_timezone_is_malformed(self):
        body = {k: v for k, v in PAGE_BODY.items() if k != "timezone"}
        client = _client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(MalformedResponseError):
            await client.get_call_type_page("jane", "intro")
        await client.aclose()


class TestGetAvailableSlots:
    @pytest.mark.asyncio
    async def test_sends_range_and_normalizes_slot_variants(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"days": [
                {"date": "2024-03-04", "slots": ["09:30", {"time": "09:00"}, {"start_time": "20:00"}]},
                {"date": "2024-03-05", "slots": []},
            ]})

        async with _client(handler) as client:
            response = await client.get_available_slots("jane", "intro", "2024-03-01", "2024-03-31")

        assert seen[0].url.path.endswith("/book/jane/intro/slots")
        assert seen[0].url.params["start_date"] == "2024-03-01"
        assert seen[0].url.params["end_date"] == "2024-03-31"
        assert response.to_host_slot_map() == {"2024-03-04": ["09:00", "09:30", "20:00"]}

    @pytest.mark.asyncio
    async def test_bad_date_key_is_malformed(self):
        client = _client(lambda request: httpx.Response(200, json={"days": [
            {"date": "2024-03-04", "slots": ["09:00"]},
            {"date": "2024/03/06", "slots": ["10:00"]},
        ]}))
        with pytest.raises(MalformedResponseError):
            await client.get_available_slots("jane", "intro", "2024-03-01", "2024-03-31")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_short_times_are_padded(self):
        client = _client(lambda request: httpx.Response(200, json={"days": [
            {"date": "2024-03-04", "slots": ["9:30", "09:00:00"]},
        ]}))
        response = await client.get_available_slots("jane", "intro", "2024-03-01", "2024-03-31")
        assert response.to_host_slot_map() == {"2024-03-04": ["09:00", "09:30"]}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_network_error(self):
        client = _client(lambda request: httpx.Response(500, json={"message": "db down"}))
        with pytest.raises(NetworkError, match="db down"):
            await client.get_available_slots("jane", "intro", "2024-03-01", "2024-03-31")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(NetworkError):
            await client.get_available_slots("jane", "intro", "2024-03-01", "2024-03-31")
        await client.aclose()


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_posts_host_local_payload(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={
                "id": 42, "status": "confirmed",
                "meeting_link": "https://meet.example.com/42", "cancel_token": "tok",
            })

        async with _client(handler) as client:
            confirmation = await client.create_booking("jane", "intro", _request())

        body = json.loads(seen[0].content)
        assert seen[0].method == "POST"
        assert body["start_datetime"] == "2024-03-04T20:00:00"
        assert body["timezone"] == "Asia/Tokyo"
        assert confirmation.id == 42
        assert confirmation.meeting_link == "https://meet.example.com/42"

    @pytest.mark.asyncio
    async def test_409_is_slot_conflict(self):
        client = _client(lambda request: httpx.Response(409, json={"detail": "Slot taken"}))
        with pytest.raises(SlotConflictError):
            await client.create_booking("jane", "intro", _request())
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 422, 500, 503])
    async def test_other_errors_are_transient(self, status):
        client = _client(lambda request: httpx.Response(status, json={}))
        with pytest.raises(TransientSubmissionError) as exc_info:
            await client.create_booking("jane", "intro", _request())
        assert exc_info.value.status_code == status
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(handler)
        with pytest.raises(TransientSubmissionError):
            await client.create_booking("jane", "intro", _request())
        await client.aclose()
