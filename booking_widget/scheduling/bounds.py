"""Selectable date window derived from the host's notice and lookahead settings."""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Union

from booking_widget.config import settings
from booking_widget.utils import parse_iso_date


@dataclass(frozen=True)
class BookingWindow:
    """Inclusive range of dates a visitor may book."""
    min_date: date
    max_date: date

    def contains(self, value: Union[str, date]) -> bool:
        if isinstance(value, str):
            value = parse_iso_date(value)
        return self.min_date <= value <= self.max_date


def compute_bounds(
    today: date,
    min_notice_hours: Optional[int],
    max_days_ahead: Optional[int],
    fallback_max_days_ahead: Optional[int] = None,
) -> BookingWindow:
    """
    Compute the inclusive booking window relative to ``today``.

    ``min_date`` moves forward by whole days of notice, rounded up, so 1 to 24
    hours of notice rule out today and 25 hours rule out tomorrow too.
    A missing or zero lookahead falls back to the configured default.
    """
    notice_days = math.ceil(min_notice_hours / 24) if min_notice_hours and min_notice_hours > 0 else 0
    if not max_days_ahead or max_days_ahead < 0:
        max_days_ahead = fallback_max_days_ahead or settings.booking.default_max_days_ahead
    return BookingWindow(
        min_date=today + timedelta(days=notice_days),
        max_date=today + timedelta(days=max_days_ahead),
    )
