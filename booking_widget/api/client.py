"""httpx-backed implementation of the booking page port."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from booking_widget.api.base import BookingPageAPI
from booking_widget.config import settings
from booking_widget.errors import (
    BookingDisabledError,
    MalformedResponseError,
    NetworkError,
    ResourceNotFoundError,
    SlotConflictError,
    TransientSubmissionError,
)
from booking_widget.schemas.booking_schema import (
    BookingConfirmation,
    BookingRequest,
    CallTypePage,
    SlotsResponse,
)


def _error_detail(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str) and detail:
            return detail
    return fallback


class BookingPageClient(BookingPageAPI):
    """HTTP adapter for the public booking page API.

    Every failure leaves here as a ``booking_widget.errors`` type; a client
    passed in by the caller is closed by ``aclose()`` as well.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = (base_url or settings.api.base_url).rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.api.timeout_sec,
        )
        self._logger = logging.getLogger(__name__)

    def _page_url(self, username: str, shortcode: str) -> str:
        return f"{self._base_url}/book/{username}/{shortcode}"

    def _raise_for_status(self, response: httpx.Response, *, submitting: bool) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise ResourceNotFoundError(
                _error_detail(response, "Booking page not found"), status_code=status
            )
        if status == 403:
            raise BookingDisabledError(
                _error_detail(response, "Booking is not available"), status_code=status
            )
        if status == 409 and submitting:
            raise SlotConflictError(
                _error_detail(
                    response,
                    "This time slot is no longer available. Please select another time.",
                ),
                status_code=status,
            )
        if submitting:
            raise TransientSubmissionError(
                _error_detail(response, "Failed to create booking. Please try again."),
                status_code=status,
            )
        raise NetworkError(
            _error_detail(response, f"Request failed with status {status}"), status_code=status
        )

    async def _request(
        self, method: str, url: str, *, submitting: bool = False, **kwargs: Any
    ) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error("Booking API unreachable", extra={"url": url, "error": str(e)})
            if submitting:
                raise TransientSubmissionError(
                    "Could not reach the booking service. Please try again."
                ) from e
            raise NetworkError("Could not reach the booking service.") from e

        self._raise_for_status(response, submitting=submitting)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Booking service returned a non-JSON response", status_code=response.status_code
            ) from e

    async def get_call_type_page(self, username: str, shortcode: str) -> CallTypePage:
        data = await self._request("GET", self._page_url(username, shortcode))
        try:
            return CallTypePage.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError("Unexpected booking page payload") from e

    async def get_available_slots(
        self, username: str, shortcode: str, start_date: str, end_date: str
    ) -> SlotsResponse:
        data = await self._request(
            "GET",
            f"{self._page_url(username, shortcode)}/slots",
            params={"start_date": start_date, "end_date": end_date},
        )
        try:
            return SlotsResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError("Unexpected slots payload") from e

    async def create_booking(
        self, username: str, shortcode: str, request: BookingRequest
    ) -> BookingConfirmation:
        data = await self._request(
            "POST",
            self._page_url(username, shortcode),
            submitting=True,
            json=request.model_dump(),
        )
        try:
            confirmation = BookingConfirmation.model_validate(data)
        except ValidationError as e:
            raise TransientSubmissionError("Unexpected booking confirmation payload") from e

        self._logger.info(
            "Booking created",
            extra={"booking_id": confirmation.id, "start_datetime": request.start_datetime},
        )
        return confirmation

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BookingPageClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
