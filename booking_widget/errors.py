"""Error taxonomy for the booking widget core.

Every network boundary maps its failure into one of these before any
state is updated, so callers only ever see a ``WidgetError`` subclass.
"""

from typing import Optional


class WidgetError(Exception):
    """Base class for all booking widget errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ResourceNotFoundError(WidgetError):
    """Booking page or call type does not exist (HTTP 404). Terminal."""


class BookingDisabledError(WidgetError):
    """Host has disabled bookings for this page (HTTP 403). Terminal."""


class SlotConflictError(WidgetError):
    """The chosen host-local slot was taken by someone else (HTTP 409)."""


class TransientSubmissionError(WidgetError):
    """Any other failure while submitting a booking. Retryable."""


class NetworkError(WidgetError):
    """Metadata or availability fetch failed. Retryable, cache untouched."""


class MalformedResponseError(NetworkError):
    """The server answered but the body did not match the expected shape."""


class UnknownTimezoneError(WidgetError):
    """A timezone identifier could not be resolved."""


class DateOutOfRangeError(WidgetError):
    """A date outside the booking window was selected or submitted."""


class NoAvailabilityError(WidgetError):
    """A date or slot was picked that has nothing bookable for the visitor."""


class SubmissionInProgressError(WidgetError):
    """A second submit was attempted while one is already in flight."""


class InvalidTransitionError(WidgetError):
    """Raised when a transition is not valid from the current step."""
