"""REST backend: talks to the hosted Postgres API (PostgREST conventions).

Lowest level of the flow. Sends requests, maps HTTP failures onto the
booking error taxonomy, and parses rows into schema objects. No retries.
"""

import logging
from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError

from slotbook.config import BackendConfig, settings
from slotbook.errors import (
    BookingError,
    NotAuthenticated,
    SlotConflict,
    TransientError,
    ValidationError,
)
from slotbook.schemas.booking_schema import AnnotatedSlot
from slotbook.utils import normalize_hhmm

logger = logging.getLogger(__name__)

# Postgres unique_violation, raised by the booking transaction's slot index.
PG_UNIQUE_VIOLATION = "23505"
CONFLICT_HINTS = ("already booked", "slot is not available", "slot unavailable")


def _error_detail(response: httpx.Response) -> tuple[str, str]:
    """Return (code, message) from a PostgREST error body, tolerating non-JSON."""
    try:
        body = response.json()
    except ValueError:
        return "", (response.text[:500] if response.text else "")
    if not isinstance(body, dict):
        return "", str(body)[:500]
    return str(body.get("code") or ""), str(body.get("message") or body.get("error") or "")


def error_for_response(response: httpx.Response) -> BookingError:
    """Map a failed response onto the booking error taxonomy."""
    code, message = _error_detail(response)
    status = response.status_code
    lower = message.lower()

    if status in (401, 403):
        return NotAuthenticated()
    if status == 409 or code == PG_UNIQUE_VIOLATION or any(h in lower for h in CONFLICT_HINTS):
        return SlotConflict()
    if status in (400, 404, 422):
        return ValidationError(message or f"Request rejected ({status}).")
    return TransientError(f"Backend error: {status}")


class RestBookingBackend:
    """Booking backend over ``httpx.AsyncClient``.

    Pass ``client`` to share a connection pool or to inject a mock
    transport in tests; otherwise one is created per instance and closed
    by ``aclose`` / the async context manager.
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or settings.backend
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._config.url, timeout=self._config.timeout_sec
        )

    async def __aenter__(self) -> "RestBookingBackend":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
        token = access_token or self._config.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, headers=self._headers(access_token), **kwargs
            )
        except httpx.HTTPError as e:
            # Includes DecodingError and TooManyRedirects.
            raise TransientError(f"Backend request failed: {e}") from e

        if not response.is_success:
            err = error_for_response(response)
            logger.warning("%s %s failed: %s (%s)", method, path, response.status_code, err)
            raise err
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransientError("Backend returned a non-JSON body.") from e

    async def _rpc(
        self, function: str, params: dict[str, Any], access_token: Optional[str] = None
    ) -> Any:
        return await self._request(
            "POST", f"/rest/v1/rpc/{function}", json=params, access_token=access_token
        )

    async def get_available_slots(
        self, product_id: str, booking_date: date
    ) -> list[AnnotatedSlot]:
        rows = await self._rpc(
            "get_available_slots",
            {"p_product_id": product_id, "p_date": booking_date.isoformat()},
        )
        try:
            return [AnnotatedSlot.model_validate(row) for row in rows or []]
        except (SchemaValidationError, TypeError) as e:
            raise TransientError("Malformed slot rows from get_available_slots.") from e

    async def get_booked_start_times(
        self, product_id: str, booking_date: date
    ) -> list[str]:
        rows = await self._request(
            "GET",
            f"/rest/v1/{self._config.bookings_table}",
            params={
                "select": "start_time",
                "product_id": f"eq.{product_id}",
                "booking_date": f"eq.{booking_date.isoformat()}",
                "status": "neq.cancelled",
            },
        )
        try:
            return [normalize_hhmm(row["start_time"]) for row in rows or []]
        except (KeyError, TypeError, ValueError) as e:
            raise TransientError("Malformed rows from bookings query.") from e

    async def create_booking(
        self,
        product_id: str,
        booking_date: date,
        start_time: str,
        notes: str,
        *,
        customer_id: str,
        idempotency_key: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> str:
        # customer_id is derived server-side from the bearer token.
        data = await self._rpc(
            "create_booking",
            {
                "p_product_id": product_id,
                "p_booking_date": booking_date.isoformat(),
                "p_start_time": start_time,
                "p_notes": notes,
                "p_idempotency_key": idempotency_key,
            },
            access_token=access_token,
        )
        if isinstance(data, dict):
            data = data.get("id") or data.get("booking_id")
        if not data:
            raise TransientError("create_booking returned no reservation id.")
        logger.info("Reservation created via backend: %s (customer %s)", data, customer_id)
        return str(data)
