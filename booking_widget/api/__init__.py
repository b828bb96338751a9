from booking_widget.api.base import BookingPageAPI
from booking_widget.api.client import BookingPageClient
from booking_widget.api.in_memory import InMemoryBookingPage

__all__ = ["BookingPageAPI", "BookingPageClient", "InMemoryBookingPage"]
