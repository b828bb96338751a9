from abc import ABC, abstractmethod

from booking_widget.schemas.booking_schema import (
    BookingConfirmation,
    BookingRequest,
    CallTypePage,
    SlotsResponse,
)


class BookingPageAPI(ABC):
    """Port for the public booking page endpoints.

    Implementations raise only ``booking_widget.errors`` types.
    """

    @abstractmethod
    async def get_call_type_page(self, username: str, shortcode: str) -> CallTypePage:
        """Fetch call-type metadata, host timezone and booking settings."""
        raise NotImplementedError

    @abstractmethod
    async def get_available_slots(
        self, username: str, shortcode: str, start_date: str, end_date: str
    ) -> SlotsResponse:
        """Fetch host-local slots for an inclusive date range."""
        raise NotImplementedError

    @abstractmethod
    async def create_booking(
        self, username: str, shortcode: str, request: BookingRequest
    ) -> BookingConfirmation:
        """Book a host-local slot. Raises SlotConflictError on HTTP 409."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release any underlying resources."""
