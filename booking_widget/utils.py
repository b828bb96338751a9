"""Shared utilities used across the booking widget core."""

import re
from datetime import date, time

_WALL_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+1 (415) 555-0100")
        '+14155550100'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_wall_clock(value: str) -> time:
    """Parse an ``HH:MM`` (optionally ``HH:MM:SS``) 24-hour string.

    Raises ValueError for anything else, including out-of-range fields.
    """
    match = _WALL_CLOCK_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Time string {value!r} is not in HH:MM format")
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    return time(hour, minute, second)


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, raising ValueError when malformed."""
    if not isinstance(value, str):
        raise ValueError(f"Date value {value!r} is not a string")
    return date.fromisoformat(value.strip())


def normalize_wall_clock(value: str) -> str:
    """Canonical zero-padded ``HH:MM`` for a slot time.

    Raises ValueError when the value does not parse or carries non-zero seconds,
    since a booking can only be placed on a whole minute.

    Examples:
        >>> normalize_wall_clock("9:30")
        '09:30'
        >>> normalize_wall_clock("09:00:00")
        '09:00'
    """
    parsed = parse_wall_clock(value)
    if parsed.second:
        raise ValueError(f"Time string {value!r} is not on a whole minute")
    return f"{parsed.hour:02d}:{parsed.minute:02d}"
