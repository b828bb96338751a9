"""
Offline console demo: walks a visitor through a booking without a server.

Drives the real SchedulingWidget, availability cache, projector and booking
state machine against an in-memory booking page. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario timezone --visitor-timezone Asia/Tokyo
"""

import argparse
import asyncio
from datetime import date, datetime, timedelta, timezone

from booking_widget.api.in_memory import InMemoryBookingPage
from booking_widget.config import settings
from booking_widget.schemas.booking_schema import (
    BookingPageSettings,
    CallType,
    CallTypePage,
    HostInfo,
)
from booking_widget.scheduling.formatting import format_friendly_date
from booking_widget.scheduling.state_machine import BookingStep
from booking_widget.scheduling.timezones import timezone_label
from booking_widget.widget import SchedulingWidget, WidgetStatus

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

HOST_TIMEZONE = "America/New_York"
DEMO_CONTACT = {
    "name": "Ana Lima",
    "email": "ana@example.com",
    "phone": "+55 11 91234-5678",
    "notes": "Looking forward to it",
}


def _demo_page() -> CallTypePage:
    return CallTypePage(
        host=HostInfo(name="Jane Host", username="jane"),
        call_type=CallType(name="Intro Call", duration_minutes=30),
        timezone=HOST_TIMEZONE,
        settings=BookingPageSettings(min_notice_hours=24, max_days_ahead=30),
    )


def _demo_slots(today: date) -> dict[str, list[str]]:
    """Weekday slots for the next three weeks, including one late evening slot."""
    slots: dict[str, list[str]] = {}
    for offset in range(1, 22):
        day = today + timedelta(days=offset)
        if day.weekday() < 5:
            slots[day.isoformat()] = ["09:00", "09:30", "14:00", "20:00"]
    return slots


class ConsoleSession:
    """Plays one visitor's booking through the widget in the terminal."""

    SCENARIOS = ("booking", "conflict", "timezone")

    def __init__(self, visitor_timezone: str) -> None:
        self.today = datetime.now(timezone.utc).date()
        self.page = InMemoryBookingPage(
            _demo_page(), _demo_slots(self.today), username="jane", shortcode="intro-call"
        )
        self.widget = SchedulingWidget(
            self.page, "jane", "intro-call", visitor_timezone=visitor_timezone
        )
        # labels use the visitor's calendar day
        self.today = self.widget.today()

    def widget_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Widget]{RESET} {GREEN}{text}{RESET}")

    def visitor_do(self, text: str) -> None:
        print(f"\n{BLUE}[Visitor] {RESET}{text}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BOOKING WIDGET - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Widget: {settings.widget_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        status = await self.widget.mount()
        if status != WidgetStatus.READY:
            print(f"{RED}Widget failed to mount: {status.value}{RESET}")
            return
        self.system_log(
            f"Host timezone {timezone_label(HOST_TIMEZONE)}, "
            f"visitor timezone {timezone_label(self.widget.visitor_timezone)}"
        )

        await self.widget.show_month(self.today.year, self.today.month)
        await self._load_next_month_if_empty()
        self._show_dates()

        if scenario == "timezone":
            await self._play_timezone_change()
        elif scenario == "conflict":
            await self._play_conflict()
        else:
            await self._play_booking()

        booking = self.widget.booking
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Step trace: {' -> '.join(booking.steps.get_step_trace())}{RESET}")
        print(f"{DIM}  Slot requests: {self.page.slot_requests}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        self.widget.unmount()

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    async def _play_booking(self) -> None:
        self._pick_first_slot()
        await self._submit()

    async def _play_conflict(self) -> None:
        slot = self._pick_first_slot()
        self.system_log(f"Someone else books {slot.host_date} {slot.host_time} first")
        self.page.take_slot(slot.host_date, slot.host_time)
        await self._submit()

        booking = self.widget.booking
        if booking.step == BookingStep.SELECTING_DATE:
            self.widget_say(booking.message)
            self._show_dates()
            self._pick_first_slot()
            await self._submit()

    async def _play_timezone_change(self) -> None:
        slot = self._pick_first_slot()
        new_zone = "Asia/Tokyo" if self.widget.visitor_timezone != "Asia/Tokyo" else "Europe/London"
        self.visitor_do(f"Switches timezone to {timezone_label(new_zone)}")
        self.widget.booking.change_visitor_timezone(new_zone)
        relabelled = self.widget.booking.selected_slot
        self.widget_say(
            f"Your {slot.visitor_time_display} slot is {relabelled.visitor_time_display} "
            f"on {format_friendly_date(self.widget.booking.selected_visitor_date, self.today)} "
            f"in {timezone_label(new_zone)}."
        )
        await self._submit()

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    async def _load_next_month_if_empty(self) -> None:
        if self.widget.booking.available_dates:
            return
        year, month = (self.today.year + 1, 1) if self.today.month == 12 else (self.today.year, self.today.month + 1)
        self.system_log("Nothing bookable this month, paging forward")
        await self.widget.show_month(year, month)

    def _show_dates(self) -> None:
        booking = self.widget.booking
        dates = booking.available_dates
        if not dates:
            self.widget_say("No available times in this range.")
            return
        labels = ", ".join(format_friendly_date(day, self.today) for day in dates[:5])
        self.widget_say(f"Available dates: {labels}{' ...' if len(dates) > 5 else ''}")

    def _pick_first_slot(self):
        booking = self.widget.booking
        if booking.step == BookingStep.SELECTING_DATE:
            day = booking.available_dates[0]
            self.visitor_do(f"Picks {format_friendly_date(day, self.today)}")
            booking.select_date(day)
        else:
            self.system_log(f"Auto-selected {booking.selected_visitor_date}")

        times = ", ".join(slot.visitor_time_display for slot in booking.current_slots)
        self.widget_say(f"Times on {booking.selected_visitor_date}: {times}")

        slot = booking.current_slots[0]
        self.visitor_do(f"Picks {slot.visitor_time_display}")
        booking.select_slot(slot)
        self.system_log(f"Draft holds host-local {booking.draft.start_datetime} ({HOST_TIMEZONE})")
        return slot

    async def _submit(self) -> None:
        booking = self.widget.booking
        self.visitor_do(f"Submits the form as {DEMO_CONTACT['name']}")
        step = await booking.submit(DEMO_CONTACT)
        if step == BookingStep.CONFIRMED:
            summary = self.widget.confirmation_summary()
            self.widget_say(
                f"Booked! {summary['call_type']} on {summary['date']} at "
                f"{summary['time']} ({summary['timezone']})."
            )
            self.system_log(f"Meeting link: {summary['meeting_link']}")
        elif step == BookingStep.SELECTING_DATE:
            print(f"{YELLOW}  Slot conflict, back to date selection{RESET}")
        else:
            print(f"{RED}  Submission failed: {booking.message}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking widget demo")
    parser.add_argument(
        "--scenario",
        choices=list(ConsoleSession.SCENARIOS),
        default="booking",
        help="Pre-scripted scenario to play",
    )
    parser.add_argument(
        "--visitor-timezone",
        default="Europe/Berlin",
        help="IANA timezone the visitor browses from",
    )
    args = parser.parse_args()

    session = ConsoleSession(args.visitor_timezone)
    asyncio.run(session.run_scenario(args.scenario))


if __name__ == "__main__":
    main()
