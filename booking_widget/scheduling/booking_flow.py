"""
Booking state machine: date -> time -> contact form -> submission -> confirmation.

Consumes visitor-local projections of the cached host availability, records
the HOST-local date and time of the chosen slot in the draft, and submits
exactly those values. A 409 on submission sends the visitor back to date
selection with a fresh copy of that one host date; any other failure keeps
the form intact for a retry.

Usage:
    machine = BookingStateMachine(cache, api, "jane", "intro-call",
                                  host_timezone="America/New_York",
                                  visitor_timezone="Asia/Tokyo",
                                  window_provider=lambda: window)
    await machine.on_visible_range_change("2024-02-25", "2024-04-06")
    machine.select_slot(machine.current_slots[0])
    await machine.submit({"name": "Ana", "email": "ana@example.com"})
"""

import logging
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from booking_widget.api.base import BookingPageAPI
from booking_widget.errors import (
    DateOutOfRangeError,
    InvalidTransitionError,
    NoAvailabilityError,
    SlotConflictError,
    SubmissionInProgressError,
    WidgetError,
)
from booking_widget.logging_context import get_session_logger
from booking_widget.schemas.booking_schema import BookingConfirmation, BookingRequest
from booking_widget.schemas.visitor_schema import BookingDraft, VisitorContact
from booking_widget.scheduling.availability_cache import AvailabilityCache
from booking_widget.scheduling.bounds import BookingWindow
from booking_widget.scheduling.projector import (
    ProjectedSlot,
    ProjectionResult,
    project,
    resolve_timezone,
)
from booking_widget.scheduling.state_machine import (
    BookingStep,
    BookingStepMachine,
    TransitionTrigger,
)

logger = get_session_logger(__name__)

CONFLICT_MESSAGE = "This time slot is no longer available. Please select another time."
SUBMISSION_FAILED_MESSAGE = "Failed to create booking. Please try again."
AVAILABILITY_FAILED_MESSAGE = "Couldn't load available times. Please try again."
INVALID_CONTACT_MESSAGE = "Please check the highlighted fields."


class BookingStateMachine:
    """
    Owns one BookingDraft and walks it through the booking steps.

    Only this class mutates the draft. Host availability is read from the
    cache through ``get_slot_map()`` and re-projected after every change.
    """

    def __init__(
        self,
        cache: AvailabilityCache,
        api: BookingPageAPI,
        username: str,
        shortcode: str,
        host_timezone: str,
        visitor_timezone: str,
        window_provider: Callable[[], BookingWindow],
        time_format: Optional[str] = None,
    ) -> None:
        resolve_timezone(visitor_timezone)
        self._cache = cache
        self._api = api
        self._username = username
        self._shortcode = shortcode
        self._host_timezone = host_timezone
        self._window_provider = window_provider
        self._time_format = time_format

        self._steps = BookingStepMachine()
        self._draft = BookingDraft(visitor_timezone=visitor_timezone)
        self._projection = ProjectionResult()
        self._selected_visitor_date: Optional[str] = None
        self._selected_slot: Optional[ProjectedSlot] = None
        self._result: Optional[BookingConfirmation] = None
        self._submitting = False
        self._submission_id = 0
        self._auto_advance_done = False
        self._visitor_interacted = False
        self._closed = False

        self.message: Optional[str] = None
        self.contact_errors: dict[str, str] = {}

    # --- Read-only views -------------------------------------------------

    @property
    def step(self) -> BookingStep:
        return self._steps.current_step

    @property
    def steps(self) -> BookingStepMachine:
        return self._steps

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def visitor_timezone(self) -> str:
        return self._draft.visitor_timezone

    @property
    def projection(self) -> ProjectionResult:
        return self._projection

    @property
    def window(self) -> BookingWindow:
        return self._window_provider()

    @property
    def available_dates(self) -> list[str]:
        """Visitor-local dates with slots that fall inside the booking window."""
        window = self.window
        return [day for day in self._projection.available_dates if window.contains(day)]

    @property
    def selected_visitor_date(self) -> Optional[str]:
        return self._selected_visitor_date

    @property
    def selected_slot(self) -> Optional[ProjectedSlot]:
        return self._selected_slot

    @property
    def current_slots(self) -> list[ProjectedSlot]:
        if self._selected_visitor_date is None:
            return []
        return self._projection.slots_for(self._selected_visitor_date)

    @property
    def result(self) -> Optional[BookingConfirmation]:
        return self._result

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Availability ------------------------------------------------------

    def refresh_projection(self) -> ProjectionResult:
        """Re-project the cached host slots into the visitor's timezone."""
        self._projection = project(
            self._cache.get_slot_map(),
            self._host_timezone,
            self._draft.visitor_timezone,
            self._time_format,
        )
        return self._projection

    async def on_visible_range_change(self, start_date: str, end_date: str) -> bool:
        """
        Handle the calendar reporting a new visible range.

        Returns to date selection (a no-op if already there), keeps the
        selected date highlighted, drops any chosen time and refreshes the
        cache. While a submission is in flight or after confirmation the
        step is left alone and only the cache is refreshed.
        """
        if self._closed:
            return False

        if self._steps.can_transition(TransitionTrigger.RANGE_CHANGED):
            self._steps.transition(TransitionTrigger.RANGE_CHANGED)
            self._clear_time_selection()

        merged = await self._cache.on_visible_range_change(start_date, end_date)
        if self._closed:
            return False

        if merged:
            if self.message == AVAILABILITY_FAILED_MESSAGE:
                self.message = None
            self.refresh_projection()
            self._maybe_auto_advance()
        elif self._cache.last_error is not None and self._cache.visible_range == (start_date, end_date):
            self.message = AVAILABILITY_FAILED_MESSAGE
        return merged

    def _maybe_auto_advance(self) -> None:
        if self._auto_advance_done:
            return
        dates = self.available_dates
        if not dates:
            return

        self._auto_advance_done = True
        if (
            self._visitor_interacted
            or self.step != BookingStep.SELECTING_DATE
            or self._selected_visitor_date is not None
        ):
            return

        logger.debug("Auto-selecting earliest available date %s", dates[0])
        self._selected_visitor_date = dates[0]
        self._steps.transition(TransitionTrigger.DATE_SELECTED)

    # --- Visitor actions ---------------------------------------------------

    def select_date(self, visitor_date: str) -> BookingStep:
        """Pick a visitor-local date and show its times."""
        if not self._steps.can_transition(TransitionTrigger.DATE_SELECTED):
            return self._steps.transition(TransitionTrigger.DATE_SELECTED)
        if not self.window.contains(visitor_date):
            raise DateOutOfRangeError(f"{visitor_date} is outside the booking window")
        if not self._projection.slots_for(visitor_date):
            raise NoAvailabilityError(f"No available times on {visitor_date}")

        self._visitor_interacted = True
        self._selected_visitor_date = visitor_date
        self._draft.selected_date = None
        self._draft.selected_time = None
        self._selected_slot = None
        self.message = None
        return self._steps.transition(TransitionTrigger.DATE_SELECTED)

    def select_slot(self, slot: ProjectedSlot) -> BookingStep:
        """Pick one of the current date's slots and move on to the form."""
        if not self._steps.can_transition(TransitionTrigger.SLOT_SELECTED):
            return self._steps.transition(TransitionTrigger.SLOT_SELECTED)
        if not any(
            s.host_date == slot.host_date and s.host_time == slot.host_time
            for s in self.current_slots
        ):
            raise NoAvailabilityError(
                f"Slot {slot.host_date} {slot.host_time} is not offered on {self._selected_visitor_date}"
            )

        self._visitor_interacted = True
        self._selected_slot = slot
        self._draft.selected_date = slot.host_date
        self._draft.selected_time = slot.host_time
        self.message = None
        return self._steps.transition(TransitionTrigger.SLOT_SELECTED)

    def go_back(self) -> BookingStep:
        """Step back one screen, dropping the chosen time."""
        step = self._steps.transition(TransitionTrigger.BACK)
        self._visitor_interacted = True
        self._clear_time_selection()
        if step == BookingStep.SELECTING_DATE:
            self._selected_visitor_date = None
            self._draft.selected_date = None
        return step

    def change_visitor_timezone(self, timezone_id: str) -> BookingStep:
        """
        Show availability in a different visitor timezone.

        A chosen slot keeps its host date and time and is only relabelled;
        a date picked but not yet narrowed to a time is dropped, because
        the visitor-local date buckets move.
        """
        resolve_timezone(timezone_id)
        step = self._steps.transition(TransitionTrigger.TIMEZONE_CHANGED)
        self._visitor_interacted = True
        self._draft.visitor_timezone = timezone_id
        self.refresh_projection()

        if step == BookingStep.FILLING_FORM and self._selected_slot is not None:
            relabelled = self._projection.find(self._draft.selected_date, self._draft.selected_time)
            if relabelled is not None:
                self._selected_slot = relabelled
                self._selected_visitor_date = self._visitor_date_of(relabelled)
        else:
            self._selected_visitor_date = None
            self._clear_time_selection()
        logger.info("Visitor timezone changed to %s", timezone_id)
        return step

    async def submit(self, contact: Union[VisitorContact, dict[str, Any]]) -> BookingStep:
        """
        Submit the draft for the selected host slot.

        Invalid contact fields keep the form open with ``contact_errors`` set.
        A slot conflict returns to date selection after refetching the one
        affected host date; any other failure returns to the form.

        Raises:
            SubmissionInProgressError: A submission is already in flight.
            InvalidTransitionError: Not on the contact form step.
            DateOutOfRangeError: The selected date left the booking window.
        """
        if self._submitting:
            raise SubmissionInProgressError("A booking request is already in progress")
        if not self._steps.can_transition(TransitionTrigger.FORM_SUBMITTED):
            return self._steps.transition(TransitionTrigger.FORM_SUBMITTED)

        try:
            if not isinstance(contact, VisitorContact):
                contact = VisitorContact.model_validate(contact)
        except ValidationError as exc:
            self.contact_errors = {
                ".".join(str(part) for part in error["loc"]): error["msg"]
                for error in exc.errors()
            }
            self.message = INVALID_CONTACT_MESSAGE
            return self.step

        if self._selected_visitor_date is None or not self.window.contains(self._selected_visitor_date):
            self.message = "That date can no longer be booked. Please pick another date."
            raise DateOutOfRangeError(f"{self._selected_visitor_date} is outside the booking window")

        self.contact_errors = {}
        self._draft.contact_fields = contact
        request = BookingRequest.for_host_slot(
            host_date=self._draft.selected_date,
            host_time=self._draft.selected_time,
            visitor_timezone=self._draft.visitor_timezone,
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            notes=contact.notes,
        )

        self._submission_id += 1
        submission_id = self._submission_id
        self._submitting = True
        self._steps.transition(TransitionTrigger.FORM_SUBMITTED)
        self.message = None
        logger.info("Submitting booking for %s", request.start_datetime)
        try:
            try:
                confirmation = await self._api.create_booking(
                    self._username, self._shortcode, request
                )
            except SlotConflictError as exc:
                if self._closed:
                    return self.step
                return await self._recover_from_conflict(exc)
            except WidgetError as exc:
                return self._fail_submission(exc.message)
            except Exception:
                logger.exception("Unexpected error while creating booking")
                return self._fail_submission(SUBMISSION_FAILED_MESSAGE)
        finally:
            if self._submission_id == submission_id:
                self._submitting = False

        if self._closed:
            logger.debug("Discarding booking confirmation after close")
            return self.step
        self._result = confirmation
        logger.info("Booking confirmed: %s", confirmation.id)
        return self._steps.transition(TransitionTrigger.BOOKING_SUCCEEDED)

    def start_new_booking(self) -> BookingStep:
        """Discard the confirmed draft and begin a fresh one."""
        if not self._steps.is_terminal():
            raise InvalidTransitionError("A new booking can only start after confirmation")
        self._steps = BookingStepMachine()
        self._draft = BookingDraft(visitor_timezone=self._draft.visitor_timezone)
        self._selected_visitor_date = None
        self._selected_slot = None
        self._result = None
        self.message = None
        self.contact_errors = {}
        return self.step

    def close(self) -> None:
        """Abandon everything in flight; late results are ignored."""
        self._closed = True
        self._cache.close()

    # --- Internals ---------------------------------------------------------

    async def _recover_from_conflict(self, exc: SlotConflictError) -> BookingStep:
        host_date = self._draft.selected_date
        logger.warning(
            "Slot %s %s was taken (%s); refetching that date",
            host_date, self._draft.selected_time, exc.message,
        )
        self._steps.transition(TransitionTrigger.SLOT_CONFLICT)
        # The step has left SUBMITTING; a new submit may start during the refetch.
        self._submitting = False
        self._clear_time_selection()
        self.message = CONFLICT_MESSAGE

        await self._cache.refresh_date(host_date)
        if not self._closed:
            self.refresh_projection()
        return self.step

    def _fail_submission(self, message: str) -> BookingStep:
        if self._closed:
            return self.step
        logger.warning("Booking submission failed: %s", message)
        self.message = message or SUBMISSION_FAILED_MESSAGE
        return self._steps.transition(TransitionTrigger.SUBMISSION_FAILED)

    def _clear_time_selection(self) -> None:
        self._draft.selected_time = None
        self._selected_slot = None

    def _visitor_date_of(self, slot: ProjectedSlot) -> str:
        zone = resolve_timezone(self._draft.visitor_timezone)
        return slot.visitor_instant.astimezone(zone).date().isoformat()
