"""Shared test fixtures and helpers."""

import asyncio
from datetime import date
from typing import Optional

import pytest

from booking_widget.api.base import BookingPageAPI
from booking_widget.api.in_memory import InMemoryBookingPage
from booking_widget.schemas.booking_schema import (
    BookingPageSettings,
    CallType,
    CallTypePage,
    DaySlots,
    HostInfo,
    SlotsResponse,
)
from booking_widget.scheduling.availability_cache import AvailabilityCache
from booking_widget.scheduling.booking_flow import BookingStateMachine
from booking_widget.scheduling.bounds import BookingWindow
from booking_widget.scheduling.state_machine import BookingStepMachine

# Flow tests treat 2024-03-01 as today.
TODAY = date(2024, 3, 1)

VALID_CONTACT = {
    "name": "Ana Lima",
    "email": "ana@example.com",
    "phone": "+1 415 555 0100",
    "notes": "Talk about pricing",
}


def make_page(
    host_timezone: str = "America/New_York",
    min_notice_hours: int = 0,
    max_days_ahead: Optional[int] = 60,
) -> CallTypePage:
    """Helper to create a CallTypePage."""
    return CallTypePage(
        host=HostInfo(name="Jane Host", username="jane"),
        call_type=CallType(name="Intro Call", duration_minutes=30),
        timezone=host_timezone,
        settings=BookingPageSettings(
            min_notice_hours=min_notice_hours, max_days_ahead=max_days_ahead
        ),
    )


def make_booking_page(
    slots: Optional[dict[str, list[str]]] = None,
    host_timezone: str = "America/New_York",
    **page_kwargs,
) -> InMemoryBookingPage:
    """Helper to create an in-memory booking page for jane/intro."""
    if slots is None:
        slots = {
            "2024-03-04": ["09:00", "09:30", "20:00"],
            "2024-03-05": ["10:00"],
        }
    return InMemoryBookingPage(
        make_page(host_timezone=host_timezone, **page_kwargs),
        slots,
        username="jane",
        shortcode="intro",
    )


def make_machine(
    api: BookingPageAPI,
    host_timezone: str = "America/New_York",
    visitor_timezone: str = "America/New_York",
    window: Optional[BookingWindow] = None,
    time_format: str = "24h",
) -> BookingStateMachine:
    """Helper to wire a cache and a booking state machine over ``api``."""
    window = window or BookingWindow(TODAY, date(2024, 4, 30))
    cache = AvailabilityCache(api, "jane", "intro")
    return BookingStateMachine(
        cache=cache,
        api=api,
        username="jane",
        shortcode="intro",
        host_timezone=host_timezone,
        visitor_timezone=visitor_timezone,
        window_provider=lambda: window,
        time_format=time_format,
    )


class GatedBookingPage(InMemoryBookingPage):
    """In-memory page whose slot responses can be held back and released in any order."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.gates: dict[tuple[str, str], asyncio.Event] = {}
        self.overrides: dict[tuple[str, str], SlotsResponse] = {}

    def hold(self, start_date: str, end_date: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[(start_date, end_date)] = gate
        return gate

    def answer_with(self, start_date: str, end_date: str, days: dict[str, list[str]]) -> None:
        """Pin the response for a range, regardless of the current slot table."""
        self.overrides[(start_date, end_date)] = SlotsResponse(
            days=[DaySlots(date=day, slots=times) for day, times in days.items()]
        )

    async def get_available_slots(self, username, shortcode, start_date, end_date):
        key = (start_date, end_date)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.overrides:
            self.slot_requests.append(key)
            return self.overrides[key]
        return await super().get_available_slots(username, shortcode, start_date, end_date)


@pytest.fixture
def booking_page():
    return make_booking_page()


@pytest.fixture
def step_machine():
    return BookingStepMachine()

