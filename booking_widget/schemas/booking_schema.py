"""Wire models for the public booking page API.

The slots endpoint is loosely typed: a slot is sometimes a bare ``"HH:MM"``
string and sometimes an object carrying a ``time`` field. Both shapes are
normalized here so nothing past this module sees the variants. Dates are
checked and slot times rewritten as zero-padded ``HH:MM`` at the same edge;
a time that cannot be normalized is passed through unchanged so the
projector can report it.
"""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from booking_widget.utils import normalize_wall_clock, parse_iso_date, parse_wall_clock

logger = logging.getLogger(__name__)


def _time_sort_key(value: str) -> tuple:
    try:
        return (0, parse_wall_clock(value), value)
    except ValueError:
        return (1, None, value)


def canonical_slot_time(value: str) -> str:
    """Zero-padded ``HH:MM`` when the value parses, otherwise the value unchanged."""
    try:
        return normalize_wall_clock(value)
    except ValueError:
        return value


def sort_slot_times(times: list[str]) -> list[str]:
    """De-duplicate and order wall-clock strings; unparseable ones go last."""
    return sorted(set(times), key=_time_sort_key)


class HostInfo(BaseModel):
    """Public profile of the host who owns the booking page."""
    model_config = ConfigDict(extra="allow")

    name: str = ""
    username: Optional[str] = None
    avatar_url: Optional[str] = None


class CallType(BaseModel):
    """Bookable call type shown on the page."""
    model_config = ConfigDict(extra="allow")

    name: str = ""
    duration_minutes: int = 30
    description: Optional[str] = None
    color: Optional[str] = None


class BookingPageSettings(BaseModel):
    """Host-configured notice and lookahead windows."""
    min_notice_hours: Optional[int] = 0
    max_days_ahead: Optional[int] = None


class CallTypePage(BaseModel):
    """Response of ``GET /book/{username}/{shortcode}``."""
    host: HostInfo = Field(default_factory=HostInfo)
    call_type: CallType = Field(default_factory=CallType)
    timezone: str
    settings: BookingPageSettings = Field(default_factory=BookingPageSettings)


class DaySlots(BaseModel):
    """One host-local day in a slots response."""
    date: str
    slots: list[str] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return parse_iso_date(value).isoformat()

    @field_validator("slots", mode="before")
    @classmethod
    def _normalize_slot_variants(cls, value: Any) -> list[str]:
        if value is None:
            return []
        normalized: list[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("time") or item.get("start_time")
            if isinstance(item, str):
                normalized.append(canonical_slot_time(item))
            else:
                logger.debug("Skipping unrecognised slot entry: %r", item)
        return normalized


class SlotsResponse(BaseModel):
    """Response of ``GET /book/{username}/{shortcode}/slots``."""
    days: list[DaySlots] = Field(default_factory=list)

    def to_host_slot_map(self) -> dict[str, list[str]]:
        """Collapse the day list into a HostSlotMap, dropping empty days."""
        merged: dict[str, list[str]] = {}
        for day in self.days:
            if day.slots:
                merged.setdefault(day.date, []).extend(day.slots)
        return {day: sort_slot_times(times) for day, times in merged.items()}


class BookingRequest(BaseModel):
    """Body of ``POST /book/{username}/{shortcode}``.

    ``start_datetime`` is host-local wall-clock time with no offset suffix;
    ``timezone`` is the visitor's zone, for record-keeping only.
    """
    start_datetime: str
    timezone: str
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def for_host_slot(
        cls,
        host_date: str,
        host_time: str,
        visitor_timezone: str,
        name: str,
        email: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "BookingRequest":
        start = parse_iso_date(host_date).isoformat()
        clock = normalize_wall_clock(host_time)
        return cls(
            start_datetime=f"{start}T{clock}:00",
            timezone=visitor_timezone,
            name=name,
            email=email,
            phone=phone,
            notes=notes,
        )


class BookingConfirmation(BaseModel):
    """Server confirmation record. Only a few fields matter for display."""
    model_config = ConfigDict(extra="allow")

    id: Optional[Union[int, str]] = None
    status: Optional[str] = None
    meeting_link: Optional[str] = None
    cancel_token: Optional[str] = None
