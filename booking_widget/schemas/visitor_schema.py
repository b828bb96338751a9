"""Visitor contact details and the per-attempt booking draft."""

import re
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, field_validator

from booking_widget.utils import normalize_phone

MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class VisitorContact(BaseModel):
    """Contact fields entered on the booking form."""
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_NAME_LENGTH:
            raise ValueError(f"name must be at least {MIN_NAME_LENGTH} characters")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if not _EMAIL_RE.match(value):
            raise ValueError("email address is not valid")
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        normalized = normalize_phone(value)
        digits = normalized.lstrip("+")
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValueError("phone number doesn't look right")
        return normalized

    @field_validator("notes")
    @classmethod
    def _blank_notes_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


@dataclass
class BookingDraft:
    """
    Everything one booking attempt has collected so far.

    ``selected_date`` and ``selected_time`` are HOST-local values copied from
    the chosen ProjectedSlot; they are what gets submitted. Owned by a single
    BookingStateMachine and replaced, never reused, after confirmation.
    """
    visitor_timezone: str
    selected_date: Optional[str] = None
    selected_time: Optional[str] = None
    contact_fields: Optional[VisitorContact] = None

    @property
    def start_datetime(self) -> Optional[str]:
        if self.selected_date is None or self.selected_time is None:
            return None
        return f"{self.selected_date}T{self.selected_time}:00"
