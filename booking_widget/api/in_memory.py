"""
In-memory booking page.

Implements the same port as the HTTP client against a local slot table so the
console demo and tests can run the full flow without a server. Booking a slot
removes it; ``take_slot`` simulates another visitor winning the race.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from booking_widget.api.base import BookingPageAPI
from booking_widget.errors import (
    BookingDisabledError,
    NetworkError,
    ResourceNotFoundError,
    SlotConflictError,
    TransientSubmissionError,
    WidgetError,
)
from booking_widget.schemas.booking_schema import (
    BookingConfirmation,
    BookingRequest,
    CallTypePage,
    DaySlots,
    SlotsResponse,
    canonical_slot_time,
    sort_slot_times,
)
from booking_widget.utils import parse_iso_date

logger = logging.getLogger(__name__)


class InMemoryBookingPage(BookingPageAPI):
    """A single host's booking page held entirely in memory."""

    def __init__(
        self,
        page: CallTypePage,
        slots: dict[str, list[str]],
        username: str = "host",
        shortcode: str = "intro",
        booking_enabled: bool = True,
    ) -> None:
        self.page = page
        self.username = username
        self.shortcode = shortcode
        self.booking_enabled = booking_enabled
        self._slots: dict[str, list[str]] = {
            day: sort_slot_times([canonical_slot_time(t) for t in times])
            for day, times in slots.items()
        }
        self.bookings: dict[str, dict] = {}
        # (start_date, end_date) of every slots request, oldest first
        self.slot_requests: list[tuple[str, str]] = []
        self.booking_requests: list[BookingRequest] = []
        self._queued_failures: list[WidgetError] = []

    def _check_page(self, username: str, shortcode: str) -> None:
        if (username, shortcode) != (self.username, self.shortcode):
            raise ResourceNotFoundError("Booking page not found", status_code=404)
        if not self.booking_enabled:
            raise BookingDisabledError("Booking is not available", status_code=403)

    def _pop_failure(self) -> None:
        if self._queued_failures:
            raise self._queued_failures.pop(0)

    def fail_next(self, error: WidgetError) -> None:
        """Make the next API call raise ``error`` instead of answering."""
        self._queued_failures.append(error)

    def take_slot(self, host_date: str, host_time: str) -> None:
        """Remove a slot as if another visitor had just booked it."""
        times = self._slots.get(host_date, [])
        host_time = canonical_slot_time(host_time)
        if host_time in times:
            times.remove(host_time)
            logger.debug("Slot %s %s taken out of band", host_date, host_time)

    def add_slot(self, host_date: str, host_time: str) -> None:
        self._slots[host_date] = sort_slot_times(
            self._slots.get(host_date, []) + [canonical_slot_time(host_time)]
        )

    async def get_call_type_page(self, username: str, shortcode: str) -> CallTypePage:
        self._pop_failure()
        self._check_page(username, shortcode)
        return self.page.model_copy(deep=True)

    async def get_available_slots(
        self, username: str, shortcode: str, start_date: str, end_date: str
    ) -> SlotsResponse:
        self.slot_requests.append((start_date, end_date))
        self._pop_failure()
        self._check_page(username, shortcode)
        try:
            start, end = parse_iso_date(start_date), parse_iso_date(end_date)
        except ValueError as e:
            raise NetworkError(f"Invalid date range: {e}", status_code=422) from e

        days = [
            DaySlots(date=day, slots=list(times))
            for day, times in sorted(self._slots.items())
            if start <= parse_iso_date(day) <= end
        ]
        return SlotsResponse(days=days)

    async def create_booking(
        self, username: str, shortcode: str, request: BookingRequest
    ) -> BookingConfirmation:
        self.booking_requests.append(request)
        self._pop_failure()
        self._check_page(username, shortcode)

        host_date, _, clock = request.start_datetime.partition("T")
        host_time = clock[:5]
        times = self._slots.get(host_date, [])
        if host_time not in times:
            raise SlotConflictError(
                "This time slot is no longer available. Please select another time.",
                status_code=409,
            )
        if not request.name.strip() or not request.email.strip():
            raise TransientSubmissionError("Name and email are required.", status_code=422)

        times.remove(host_time)
        booking_id = f"BK-{uuid.uuid4().hex[:6].upper()}"
        record = {
            "id": booking_id,
            "status": "confirmed",
            "start_datetime": request.start_datetime,
            "timezone": request.timezone,
            "name": request.name,
            "email": request.email,
            "phone": request.phone,
            "notes": request.notes,
            "meeting_link": f"https://meet.example.com/{booking_id.lower()}",
            "cancel_token": uuid.uuid4().hex,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.bookings[booking_id] = record
        logger.info("Booking created: %s at %s for %s", booking_id, request.start_datetime, request.name)
        return BookingConfirmation.model_validate(record)

    def get_booking(self, booking_id: str) -> Optional[dict]:
        return self.bookings.get(booking_id)
