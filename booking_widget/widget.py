"""
Composition root for one mounted scheduling widget.

Fetches the booking page metadata, then wires the availability cache and
the booking state machine together. The visitor timezone and the clock are
injected here and passed down, never read from the runtime by deeper code.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Optional

from booking_widget.api.base import BookingPageAPI
from booking_widget.config import AppConfig, settings
from booking_widget.errors import (
    BookingDisabledError,
    InvalidTransitionError,
    ResourceNotFoundError,
    WidgetError,
)
from booking_widget.logging_context import get_session_logger, new_session_id, set_session_id
from booking_widget.schemas.booking_schema import CallTypePage
from booking_widget.scheduling.availability_cache import AvailabilityCache
from booking_widget.scheduling.booking_flow import BookingStateMachine
from booking_widget.scheduling.bounds import BookingWindow, compute_bounds
from booking_widget.scheduling.calendar_grid import month_grid_range
from booking_widget.scheduling.formatting import format_display_date
from booking_widget.scheduling.projector import resolve_timezone
from booking_widget.scheduling.state_machine import BookingStep
from booking_widget.scheduling.timezones import timezone_label

logger = get_session_logger(__name__)


class WidgetStatus(str, Enum):
    """Lifecycle of the widget itself, independent of the booking step."""
    LOADING = "loading"
    READY = "ready"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    ERROR = "error"
    UNMOUNTED = "unmounted"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SchedulingWidget:
    """Public booking widget for one host call type."""

    def __init__(
        self,
        api: BookingPageAPI,
        username: str,
        shortcode: str,
        visitor_timezone: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._config = config or settings
        self._api = api
        self.username = username
        self.shortcode = shortcode
        self._initial_timezone = visitor_timezone or self._config.default_timezone
        resolve_timezone(self._initial_timezone)
        self._clock = clock or _utc_now
        self.session_id = new_session_id()

        self.status = WidgetStatus.LOADING
        self.error: Optional[WidgetError] = None
        self.page: Optional[CallTypePage] = None
        self.cache: Optional[AvailabilityCache] = None
        self.booking: Optional[BookingStateMachine] = None

    @property
    def visitor_timezone(self) -> str:
        if self.booking is not None:
            return self.booking.visitor_timezone
        return self._initial_timezone

    def today(self) -> date:
        """Today's date as the visitor sees it."""
        return self._clock().astimezone(resolve_timezone(self.visitor_timezone)).date()

    def booking_window(self) -> BookingWindow:
        if self.page is None:
            raise InvalidTransitionError("Booking window is unknown until the widget is mounted")
        return compute_bounds(
            self.today(),
            self.page.settings.min_notice_hours,
            self.page.settings.max_days_ahead,
            self._config.booking.default_max_days_ahead,
        )

    async def mount(self) -> WidgetStatus:
        """
        Load the booking page and build the booking core.

        404 and 403 are terminal; any other failure leaves the widget in
        ERROR so ``mount()`` can simply be called again.
        """
        if self.status in (WidgetStatus.UNMOUNTED, WidgetStatus.NOT_FOUND, WidgetStatus.UNAVAILABLE):
            return self.status
        set_session_id(self.session_id)
        self.status = WidgetStatus.LOADING

        try:
            page = await self._api.get_call_type_page(self.username, self.shortcode)
            resolve_timezone(page.timezone)
        except ResourceNotFoundError as exc:
            return self._fail(WidgetStatus.NOT_FOUND, exc)
        except BookingDisabledError as exc:
            return self._fail(WidgetStatus.UNAVAILABLE, exc)
        except WidgetError as exc:
            return self._fail(WidgetStatus.ERROR, exc)

        if self.status == WidgetStatus.UNMOUNTED:
            return self.status

        self.page = page
        self.error = None
        self.cache = AvailabilityCache(self._api, self.username, self.shortcode)
        self.booking = BookingStateMachine(
            cache=self.cache,
            api=self._api,
            username=self.username,
            shortcode=self.shortcode,
            host_timezone=page.timezone,
            visitor_timezone=self._initial_timezone,
            window_provider=self.booking_window,
            time_format=self._config.booking.time_format,
        )
        self.status = WidgetStatus.READY
        logger.info(
            "Widget mounted for %s/%s (host %s, visitor %s)",
            self.username, self.shortcode, page.timezone, self._initial_timezone,
        )
        return self.status

    async def on_visible_range_change(self, start_date: str, end_date: str) -> bool:
        """Forward a calendar range change to the booking core."""
        if self.status != WidgetStatus.READY or self.booking is None:
            return False
        return await self.booking.on_visible_range_change(start_date, end_date)

    async def show_month(self, year: int, month: int) -> bool:
        """Report the full week-aligned grid of ``year``/``month`` as visible."""
        start, end = month_grid_range(year, month)
        return await self.on_visible_range_change(start.isoformat(), end.isoformat())

    def unmount(self) -> None:
        """Tear down; anything still in flight is discarded when it lands."""
        if self.booking is not None:
            self.booking.close()
        elif self.cache is not None:
            self.cache.close()
        self.status = WidgetStatus.UNMOUNTED
        logger.debug("Widget %s unmounted", self.session_id)

    def confirmation_summary(self) -> Optional[dict]:
        """Fields shown on the confirmation screen, or None before confirmation."""
        if self.booking is None or self.booking.step != BookingStep.CONFIRMED:
            return None
        slot = self.booking.selected_slot
        result = self.booking.result
        return {
            "call_type": self.page.call_type.name if self.page else "",
            "date": format_display_date(self.booking.selected_visitor_date),
            "time": slot.visitor_time_display if slot else self.booking.draft.selected_time,
            "timezone": timezone_label(self.visitor_timezone),
            "meeting_link": result.meeting_link if result else None,
            "cancel_token": result.cancel_token if result else None,
        }

    def _fail(self, status: WidgetStatus, exc: WidgetError) -> WidgetStatus:
        if self.status == WidgetStatus.UNMOUNTED:
            return self.status
        logger.warning("Widget mount failed (%s): %s", status.value, exc)
        self.status = status
        self.error = exc
        return status
