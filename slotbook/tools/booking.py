"""
Reservation committer: submits a chosen slot as one atomic booking request.

The backend transaction is the only place the one-reservation-per-slot
rule is enforced; availability shown to the customer is advisory. Errors
come back as a ``CommitResult`` for the caller to show verbatim. Nothing
here retries automatically.
"""

import uuid
from datetime import date
from typing import Optional

from slotbook.config import settings
from slotbook.errors import (
    BookingError,
    NotAuthenticated,
    ParseError,
    SlotConflict,
    TransientError,
    ValidationError,
)
from slotbook.logging_context import get_session_logger
from slotbook.schemas.booking_schema import CommitErrorKind, CommitResult
from slotbook.schemas.customer_schema import AuthSession
from slotbook.tools.backend import BookingBackend
from slotbook.utils import normalize_hhmm

logger = get_session_logger(__name__)

_ERROR_KINDS: dict[type[BookingError], CommitErrorKind] = {
    NotAuthenticated: CommitErrorKind.NOT_AUTHENTICATED,
    SlotConflict: CommitErrorKind.SLOT_CONFLICT,
    ValidationError: CommitErrorKind.VALIDATION_ERROR,
    ParseError: CommitErrorKind.VALIDATION_ERROR,
    TransientError: CommitErrorKind.TRANSIENT_ERROR,
}


def new_idempotency_key() -> str:
    """Client-generated key so a retried commit cannot create a duplicate."""
    return str(uuid.uuid4())


def _failure(error: BookingError) -> CommitResult:
    kind = next(
        (k for cls, k in _ERROR_KINDS.items() if isinstance(error, cls)),
        CommitErrorKind.TRANSIENT_ERROR,
    )
    return CommitResult(
        success=False,
        error=kind,
        message=error.message,
        retryable=error.retryable,
    )


class ReservationCommitter:
    """Commit (product, date, slot, notes) for an authenticated customer."""

    def __init__(self, backend: BookingBackend) -> None:
        self._backend = backend

    async def commit(
        self,
        product_id: str,
        customer_id: Optional[str],
        booking_date: Optional[date],
        start_time: Optional[str],
        notes: str = "",
        auth: Optional[AuthSession] = None,
        idempotency_key: Optional[str] = None,
    ) -> CommitResult:
        """Create a reservation and return its id, or a typed failure."""
        if auth is None or auth.is_expired():
            return _failure(NotAuthenticated())

        missing = [
            name
            for name, value in [
                ("product", product_id),
                ("date", booking_date),
                ("time slot", start_time),
            ]
            if not value
        ]
        if missing:
            return _failure(ValidationError(
                f"Please select a date and time slot. Missing: {', '.join(missing)}."
            ))

        try:
            start_time = normalize_hhmm(start_time)
        except ParseError as e:
            return _failure(ValidationError(str(e)))

        notes = (notes or "").strip()
        if len(notes) > settings.booking.max_notes_length:
            return _failure(ValidationError(
                f"Notes must be at most {settings.booking.max_notes_length} characters."
            ))

        key = idempotency_key or new_idempotency_key()
        try:
            reservation_id = await self._backend.create_booking(
                product_id,
                booking_date,
                start_time,
                notes,
                customer_id=customer_id or auth.user_id,
                idempotency_key=key,
                access_token=auth.access_token,
            )
        except BookingError as e:
            logger.error(
                "Error creating booking for %s on %s at %s: %s",
                product_id, booking_date, start_time, e,
            )
            return _failure(e)

        logger.info("Booking committed: %s (key %s)", reservation_id, key)
        return CommitResult(
            success=True,
            reservation_id=reservation_id,
            message="Your booking has been confirmed! Please check your email for details.",
        )
