"""Tests for booking window computation and month grid navigation."""

from datetime import date

import pytest

from booking_widget.config import settings
from booking_widget.scheduling.bounds import BookingWindow, compute_bounds
from booking_widget.scheduling.calendar_grid import (
    can_navigate_to_next_month,
    can_navigate_to_previous_month,
    month_grid_days,
    month_grid_range,
    shift_month,
)


class TestComputeBounds:
    def test_one_day_of_notice(self):
        window = compute_bounds(date(2024, 3, 1), 24, 60)
        assert window.min_date == date(2024, 3, 2)
        assert window.max_date == date(2024, 4, 30)

    def test_no_notice_allows_today(self):
        window = compute_bounds(date(2024, 3, 1), 0, 14)
        assert window.min_date == date(2024, 3, 1)
        assert window.max_date == date(2024, 3, 15)

    @pytest.mark.parametrize("hours,expected_day", [(1, 2), (23, 2), (24, 2), (25, 3), (48, 3), (49, 4)])
    def test_partial_days_of_notice_round_up(self, hours, expected_day):
        assert compute_bounds(date(2024, 3, 1), hours, 60).min_date == date(2024, 3, expected_day)

    def test_missing_notice_is_zero(self):
        assert compute_bounds(date(2024, 3, 1), None, 60).min_date == date(2024, 3, 1)

    @pytest.mark.parametrize("max_days", [None, 0, -5])
    def test_missing_lookahead_uses_fallback(self, max_days):
        window = compute_bounds(date(2024, 3, 1), 0, max_days, fallback_max_days_ahead=10)
        assert window.max_date == date(2024, 3, 11)

    def test_missing_lookahead_uses_configured_default(self):
        window = compute_bounds(date(2024, 3, 1), 0, None)
        expected = date.fromordinal(date(2024, 3, 1).toordinal() + settings.booking.default_max_days_ahead)
        assert window.max_date == expected


class TestBookingWindow:
    def test_contains_is_inclusive(self):
        window = BookingWindow(date(2024, 3, 2), date(2024, 4, 30))
        assert window.contains("2024-03-02")
        assert window.contains(date(2024, 4, 30))
        assert not window.contains("2024-03-01")
        assert not window.contains("2024-05-01")


class TestMonthGrid:
    def test_march_2024_grid_is_week_aligned(self):
        # 2024-03-01 is a Friday, 2024-03-31 a Sunday
        start, end = month_grid_range(2024, 3)
        assert start == date(2024, 2, 25)
        assert end == date(2024, 4, 6)
        assert start.weekday() == 6
        assert end.weekday() == 5

    def test_month_starting_on_sunday(self):
        # 2024-09-01 is a Sunday
        start, _ = month_grid_range(2024, 9)
        assert start == date(2024, 9, 1)

    def test_grid_days_are_whole_weeks(self):
        days = month_grid_days(2024, 3)
        assert len(days) % 7 == 0
        assert days[0] == date(2024, 2, 25)
        assert days[-1] == date(2024, 4, 6)

    @pytest.mark.parametrize(
        "year,month,delta,expected",
        [(2024, 12, 1, (2025, 1)), (2024, 1, -1, (2023, 12)), (2024, 3, 0, (2024, 3))],
    )
    def test_shift_month(self, year, month, delta, expected):
        assert shift_month(year, month, delta) == expected


class TestMonthNavigation:
    def test_previous_month_blocked_before_min_date(self):
        assert not can_navigate_to_previous_month(2024, 3, date(2024, 3, 2))

    def test_previous_month_allowed_when_still_bookable(self):
        assert can_navigate_to_previous_month(2024, 4, date(2024, 3, 2))

    def test_next_month_allowed_within_lookahead(self):
        assert can_navigate_to_next_month(2024, 3, date(2024, 4, 30))

    def test_next_month_blocked_past_lookahead(self):
        assert not can_navigate_to_next_month(2024, 4, date(2024, 4, 30))
