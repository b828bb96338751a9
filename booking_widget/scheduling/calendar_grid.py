"""Month grid arithmetic for the date picker.

The picker shows whole weeks, Sunday first, so the range it reports on
a month change runs from the Sunday on or before the 1st to the Saturday
on or after the last day of the month.
"""

import calendar
from datetime import date, timedelta


def _days_since_sunday(value: date) -> int:
    return (value.weekday() + 1) % 7


def month_grid_range(year: int, month: int) -> tuple[date, date]:
    """Return the first and last date shown in the grid for ``year``/``month``."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    start = first - timedelta(days=_days_since_sunday(first))
    end = last + timedelta(days=6 - _days_since_sunday(last))
    return start, end


def month_grid_days(year: int, month: int) -> list[date]:
    """Every date in the grid, including leading and trailing days of adjacent months."""
    start, end = month_grid_range(year, month)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def can_navigate_to_previous_month(year: int, month: int, min_date: date) -> bool:
    """The previous month is reachable only if its last day is still bookable."""
    last_of_previous = date(year, month, 1) - timedelta(days=1)
    return last_of_previous >= min_date


def can_navigate_to_next_month(year: int, month: int, max_date: date) -> bool:
    next_year, next_month = shift_month(year, month, 1)
    return date(next_year, next_month, 1) <= max_date
