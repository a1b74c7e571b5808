"""Customer auth session and per-calendar booking session state."""

from pydantic import BaseModel
from typing import Optional
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from slotbook.schemas.booking_schema import AvailabilityPattern


class AuthSession(BaseModel):
    """Session issued by the external auth service."""
    user_id: str
    access_token: str
    email: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


@dataclass
class BookingSession:
    """
    Explicit state for one customer's pass through a product calendar.

    Owned by the calendar presenter.
    """
    product_id: str
    pattern: AvailabilityPattern
    auth: Optional[AuthSession] = None
    shown_month: Optional[date] = None
    selected_date: Optional[date] = None
    selected_slot: Optional[str] = None
    notes: str = ""
    idempotency_key: Optional[str] = None
    last_reservation_id: Optional[str] = None
    session_id: str = ""
    booked: list[str] = field(default_factory=list)

    @property
    def customer_id(self) -> Optional[str]:
        return self.auth.user_id if self.auth else None
