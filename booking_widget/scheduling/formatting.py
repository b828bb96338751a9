"""Human-readable labels for slot times and calendar dates."""

from datetime import date, datetime, time, timedelta
from typing import Union

from booking_widget.utils import parse_iso_date, parse_wall_clock


def format_time_12h(value: Union[str, time, datetime]) -> str:
    """Format a wall-clock value as ``h:mm AM/PM``.

    Examples:
        >>> format_time_12h("13:05")
        '1:05 PM'
        >>> format_time_12h("00:30")
        '12:30 AM'
    """
    if isinstance(value, str):
        value = parse_wall_clock(value)
    period = "PM" if value.hour >= 12 else "AM"
    hour12 = value.hour % 12 or 12
    return f"{hour12}:{value.minute:02d} {period}"


def format_time_24h(value: Union[str, time, datetime]) -> str:
    if isinstance(value, str):
        value = parse_wall_clock(value)
    return f"{value.hour:02d}:{value.minute:02d}"


def format_clock(value: Union[str, time, datetime], time_format: str) -> str:
    """Format a wall-clock value in the configured ``12h`` or ``24h`` style."""
    if time_format == "24h":
        return format_time_24h(value)
    return format_time_12h(value)


def _ordinal_suffix(day: int) -> str:
    if day % 10 == 1 and day != 11:
        return "st"
    if day % 10 == 2 and day != 12:
        return "nd"
    if day % 10 == 3 and day != 13:
        return "rd"
    return "th"


def format_display_date(value: Union[str, date]) -> str:
    """Long form used on the confirmation screen, e.g. ``Wednesday, January 10, 2024``."""
    if isinstance(value, str):
        value = parse_iso_date(value)
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_friendly_date(value: Union[str, date], today: date) -> str:
    """Short label with Today/Tomorrow prefixes, e.g. ``Tomorrow (2nd Mar 2024)``.

    ``today`` is the visitor's current date, supplied by the caller.
    """
    if isinstance(value, str):
        value = parse_iso_date(value)
    label = f"{value.day}{_ordinal_suffix(value.day)} {value:%b} {value.year}"
    if value == today:
        return f"Today ({label})"
    if value == today + timedelta(days=1):
        return f"Tomorrow ({label})"
    return label
