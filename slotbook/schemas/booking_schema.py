"""Availability, slot, and reservation data models."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slotbook.errors import ParseError
from slotbook.utils import WEEKDAY_NAMES, normalize_hhmm


class ReservationStatus(str, Enum):
    """Lifecycle status of a reservation. Cancelled never blocks a slot."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class SlotSource(str, Enum):
    """Which resolver path produced an availability result."""
    SERVER = "server"
    FALLBACK = "fallback"
    FAIL_OPEN = "fail_open"


class CommitErrorKind(str, Enum):
    """Failure taxonomy surfaced by the reservation committer."""
    NOT_AUTHENTICATED = "not_authenticated"
    SLOT_CONFLICT = "slot_conflict"
    VALIDATION_ERROR = "validation_error"
    TRANSIENT_ERROR = "transient_error"


class AvailabilityPattern(BaseModel):
    """Recurring weekly template for a 1:1 call product.

    Time strings are kept as given; malformed values are reported by the
    slot generator, not here.
    """
    model_config = ConfigDict(frozen=True)

    available_weekdays: frozenset[str]
    time_slot_starts: tuple[str, ...]
    call_duration_minutes: int = Field(gt=0)

    @field_validator("available_weekdays", mode="before")
    @classmethod
    def _normalize_weekdays(cls, value: Any) -> frozenset[str]:
        names = {str(v).strip().capitalize() for v in value}
        unknown = sorted(names - set(WEEKDAY_NAMES))
        if unknown:
            raise ValueError(f"Unknown weekday names: {unknown}")
        return frozenset(names)

    @field_validator("time_slot_starts")
    @classmethod
    def _unique_starts(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        seen: set[str] = set()
        for start in value:
            try:
                key = normalize_hhmm(start)
            except ParseError:
                key = start.strip()
            if key in seen:
                raise ValueError(f"Duplicate slot start time: {start!r}")
            seen.add(key)
        return value

    @classmethod
    def from_product(cls, product: dict[str, Any]) -> "AvailabilityPattern":
        """Build a pattern from a 1:1 call product row.

        Accepts the backend column names (``call_duration``,
        ``available_days``, ``call_time_slots``) as well as the camelCase
        keys used by frontend product payloads.
        """
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if product.get(key) is not None:
                    return product[key]
            return default

        return cls(
            available_weekdays=pick("available_days", "availableDays", default=[]),
            time_slot_starts=tuple(pick("call_time_slots", "callTimeSlots", default=[])),
            call_duration_minutes=pick("call_duration", "callDuration", default=0),
        )


class CandidateSlot(BaseModel):
    """A generated slot with no date component."""
    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _canonical_time(cls, value: str) -> str:
        return normalize_hhmm(value)


class AnnotatedSlot(CandidateSlot):
    """Candidate slot annotated with availability for a specific date."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_available: bool = Field(alias="isAvailable")


class Reservation(BaseModel):
    """A persisted claim of one slot on one date by one customer."""
    id: str
    product_id: str
    customer_id: str
    booking_date: date
    start_time: str
    status: ReservationStatus = ReservationStatus.PENDING
    notes: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: datetime

    def blocks_slot(self) -> bool:
        return self.status != ReservationStatus.CANCELLED


class AvailabilityResult(BaseModel):
    """Annotated slots for one (product, date) plus how they were obtained."""
    slots: list[AnnotatedSlot] = Field(default_factory=list)
    source: SlotSource = SlotSource.SERVER
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.source != SlotSource.SERVER

    def available_starts(self) -> list[str]:
        return [s.start for s in self.slots if s.is_available]

    def find(self, start: str) -> Optional[AnnotatedSlot]:
        for slot in self.slots:
            if slot.start == start:
                return slot
        return None


class CommitResult(BaseModel):
    """Outcome of a reservation commit attempt."""
    success: bool
    reservation_id: Optional[str] = None
    error: Optional[CommitErrorKind] = None
    message: str = ""
    retryable: bool = False
