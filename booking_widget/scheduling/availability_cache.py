"""
Host-local availability for the calendar's visible range.

The cache is the only writer of the HostSlotMap. Range fetches merge into
what is already cached, so paging back to a month seen earlier does not
need a refetch. Responses are tagged with a monotonic request token:

- a range response older than the most recently requested range is dropped
  (last-requested-range-wins);
- a date written by a newer request, e.g. a single-date refetch after a
  booking conflict, is never overwritten by an older in-flight response.

Usage:
    cache = AvailabilityCache(api, "jane", "intro-call")
    await cache.on_visible_range_change("2024-02-25", "2024-04-06")
    cache.get_slot_map()  # {"2024-03-04": ["09:00", "09:30"], ...}
"""

import itertools
import logging
from datetime import date
from typing import Optional

from booking_widget.api.base import BookingPageAPI
from booking_widget.errors import MalformedResponseError, WidgetError
from booking_widget.scheduling.projector import HostSlotMap
from booking_widget.utils import parse_iso_date

logger = logging.getLogger(__name__)


class AvailabilityCache:
    """Fetches, merges and hands out copies of the host-local slot map."""

    def __init__(self, api: BookingPageAPI, username: str, shortcode: str) -> None:
        self._api = api
        self._username = username
        self._shortcode = shortcode
        self._slot_map: HostSlotMap = {}
        self._tokens = itertools.count(1)
        self._latest_range_token = 0
        self._written_at: dict[str, int] = {}
        self._in_flight = 0
        self._closed = False
        self.visible_range: Optional[tuple[str, str]] = None
        self.last_error: Optional[WidgetError] = None

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def get_slot_map(self) -> HostSlotMap:
        """Return a copy of the cached HostSlotMap."""
        return {day: list(times) for day, times in self._slot_map.items()}

    async def on_visible_range_change(self, start_date: str, end_date: str) -> bool:
        """
        Refresh the cache for an inclusive host-local date range.

        Returns:
            True if the response was merged; False if it failed, was superseded
            by a newer range request, or arrived after ``close()``.
        """
        start, end = parse_iso_date(start_date), parse_iso_date(end_date)
        if end < start:
            raise ValueError(f"Range end {end_date} is before start {start_date}")

        token = next(self._tokens)
        self._latest_range_token = token
        self.visible_range = (start_date, end_date)

        self._in_flight += 1
        try:
            response = await self._api.get_available_slots(
                self._username, self._shortcode, start_date, end_date
            )
        except WidgetError as exc:
            logger.warning("Availability fetch for %s..%s failed: %s", start_date, end_date, exc)
            if not self._closed and token == self._latest_range_token:
                self.last_error = exc
            return False
        finally:
            self._in_flight -= 1

        if self._closed or token != self._latest_range_token:
            logger.debug("Discarding superseded availability for %s..%s", start_date, end_date)
            return False

        try:
            incoming = _parse_days(response.to_host_slot_map())
        except ValueError as exc:
            logger.warning("Malformed availability for %s..%s: %s", start_date, end_date, exc)
            self.last_error = MalformedResponseError(
                f"Malformed availability for {start_date}..{end_date}: {exc}"
            )
            return False

        self._merge_range(start, end, incoming, token)
        self.last_error = None
        logger.debug(
            "Availability for %s..%s merged (%d dates cached)",
            start_date, end_date, len(self._slot_map),
        )
        return True

    async def refresh_date(self, host_date: str) -> bool:
        """Refetch one host-local date and overwrite only that entry."""
        host_date = parse_iso_date(host_date).isoformat()
        token = next(self._tokens)

        self._in_flight += 1
        try:
            response = await self._api.get_available_slots(
                self._username, self._shortcode, host_date, host_date
            )
        except WidgetError as exc:
            logger.warning("Refetch of %s failed: %s", host_date, exc)
            if not self._closed:
                self.last_error = exc
            return False
        finally:
            self._in_flight -= 1

        if self._closed or token < self._written_at.get(host_date, 0):
            logger.debug("Discarding superseded refetch of %s", host_date)
            return False

        times = response.to_host_slot_map().get(host_date, [])
        self._write_date(host_date, times, token)
        logger.debug("Refetched %s: %d slots", host_date, len(times))
        return True

    def invalidate(self, host_date: Optional[str] = None) -> None:
        """Forget one date, or everything when no date is given."""
        if host_date is None:
            self._slot_map.clear()
            self._written_at.clear()
            return
        self._slot_map.pop(host_date, None)
        self._written_at.pop(host_date, None)

    def close(self) -> None:
        """Abandon in-flight fetches; their results are dropped on arrival."""
        self._closed = True

    def _merge_range(
        self, start: date, end: date, incoming: dict[date, tuple[str, list[str]]], token: int
    ) -> None:
        for day in list(self._slot_map):
            if start <= parse_iso_date(day) <= end and self._written_at.get(day, 0) <= token:
                self._write_date(day, [], token)
        for day, (key, times) in incoming.items():
            if not start <= day <= end:
                logger.debug("Ignoring out-of-range day %s in response", key)
                continue
            if self._written_at.get(key, 0) > token:
                continue
            self._write_date(key, times, token)

    def _write_date(self, host_date: str, times: list[str], token: int) -> None:
        if times:
            self._slot_map[host_date] = list(times)
        else:
            self._slot_map.pop(host_date, None)
        self._written_at[host_date] = token


def _parse_days(slot_map: HostSlotMap) -> dict[date, tuple[str, list[str]]]:
    """Parse every date key up front; raises ValueError before anything is merged."""
    parsed: dict[date, tuple[str, list[str]]] = {}
    for day, times in slot_map.items():
        value = parse_iso_date(day)
        parsed[value] = (value.isoformat(), times)
    return parsed
