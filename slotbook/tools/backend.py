"""
Booking backend interface and the mock in-memory implementation.

In production the persistence/query service is a hosted Postgres with
server-side functions (see ``rest_backend.py``). The in-memory backend
mirrors those functions closely enough to drive tests and the console
demo without network calls.
"""

import asyncio
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional, Protocol

from slotbook.config import settings
from slotbook.errors import (
    NotAuthenticated,
    SlotConflict,
    TransientError,
    ValidationError,
)
from slotbook.schemas.booking_schema import (
    AnnotatedSlot,
    AvailabilityPattern,
    Reservation,
    ReservationStatus,
)
from slotbook.tools.slots import generate_slots
from slotbook.utils import normalize_hhmm, weekday_name

logger = logging.getLogger(__name__)


class BookingBackend(Protocol):
    """Remote operations the booking flow consumes."""

    async def get_available_slots(
        self, product_id: str, booking_date: date
    ) -> list[AnnotatedSlot]:
        """Server-side generation and conflict check for one (product, date)."""
        ...

    async def get_booked_start_times(
        self, product_id: str, booking_date: date
    ) -> list[str]:
        """Start times of non-cancelled reservations for one (product, date)."""
        ...

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
        """Atomically re-validate and insert a reservation; return its id."""
        ...


class InMemoryBookingBackend:
    """Mock backend holding products and reservations in process memory.

    ``create_booking`` runs its check-then-insert under a lock, so it is
    the single arbiter of the one-reservation-per-slot rule, exactly as
    the server-side transaction is in production.
    """

    def __init__(self, initial_status: Optional[str] = None) -> None:
        self._patterns: dict[str, AvailabilityPattern] = {}
        self._reservations: dict[str, Reservation] = {}
        self._by_key: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self.initial_status = ReservationStatus(
            initial_status or settings.booking.default_reservation_status
        )
        self.fail_slots_rpc = False
        self.fail_reservations_query = False
        self.fail_create_booking = False
        self.valid_tokens: Optional[set[str]] = None
        self.latency_sec = 0.0
        self.date_latency: dict[date, float] = {}
        self.calls: list[str] = []

    # ------------------------------------------------------------------ #
    # Fixture helpers
    # ------------------------------------------------------------------ #

    def add_product(self, product_id: str, pattern: AvailabilityPattern) -> None:
        self._patterns[product_id] = pattern

    def add_reservation(
        self,
        product_id: str,
        booking_date: date,
        start_time: str,
        customer_id: str = "seed-customer",
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        notes: str = "",
    ) -> Reservation:
        """Seed a reservation directly, bypassing availability checks."""
        reservation = Reservation(
            id=str(uuid.uuid4()),
            product_id=product_id,
            customer_id=customer_id,
            booking_date=booking_date,
            start_time=normalize_hhmm(start_time),
            status=status,
            notes=notes or None,
            created_at=datetime.now(timezone.utc),
        )
        self._reservations[reservation.id] = reservation
        return reservation

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        """Simulate the external cancellation workflow (status change only)."""
        if reservation_id not in self._reservations:
            raise KeyError(f"Reservation {reservation_id} not found.")
        reservation = self._reservations[reservation_id].model_copy(
            update={"status": ReservationStatus.CANCELLED}
        )
        self._reservations[reservation_id] = reservation
        logger.info("Reservation cancelled: %s", reservation_id)
        return reservation

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self._reservations.get(reservation_id)

    def reservations_for(self, product_id: str, booking_date: date) -> list[Reservation]:
        return [
            r for r in self._reservations.values()
            if r.product_id == product_id and r.booking_date == booking_date
        ]

    def reset(self) -> None:
        """Clear all reservations and failure switches. Used by test fixtures."""
        self._reservations.clear()
        self._by_key.clear()
        self.fail_slots_rpc = False
        self.fail_reservations_query = False
        self.fail_create_booking = False
        self.latency_sec = 0.0
        self.date_latency.clear()
        self.calls.clear()

    # ------------------------------------------------------------------ #
    # BookingBackend
    # ------------------------------------------------------------------ #

    async def get_available_slots(
        self, product_id: str, booking_date: date
    ) -> list[AnnotatedSlot]:
        self.calls.append("get_available_slots")
        await self._simulate_latency(booking_date)
        if self.fail_slots_rpc:
            raise TransientError("get_available_slots unavailable")

        pattern = self._patterns.get(product_id)
        if pattern is None or weekday_name(booking_date) not in pattern.available_weekdays:
            return []

        booked = self._booked(product_id, booking_date)
        return [
            AnnotatedSlot(start=s.start, end=s.end, is_available=s.start not in booked)
            for s in generate_slots(pattern)
        ]

    async def get_booked_start_times(
        self, product_id: str, booking_date: date
    ) -> list[str]:
        self.calls.append("get_booked_start_times")
        await self._simulate_latency(booking_date)
        if self.fail_reservations_query:
            raise TransientError("bookings query unavailable")
        return sorted(self._booked(product_id, booking_date))

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
        self.calls.append("create_booking")
        if self.valid_tokens is not None and access_token not in self.valid_tokens:
            raise NotAuthenticated()
        await self._simulate_latency(booking_date)
        if self.fail_create_booking:
            raise TransientError()

        start_time = normalize_hhmm(start_time)
        async with self._lock:
            if idempotency_key and idempotency_key in self._by_key:
                existing = self._by_key[idempotency_key]
                logger.info("Duplicate commit for key %s -> %s", idempotency_key, existing)
                return existing

            pattern = self._patterns.get(product_id)
            if pattern is None:
                raise ValidationError(f"Unknown product {product_id}.")
            if weekday_name(booking_date) not in pattern.available_weekdays:
                raise ValidationError(f"Bookings are not available on {booking_date}.")
            if start_time not in {s.start for s in generate_slots(pattern)}:
                raise ValidationError(f"{start_time} is not a bookable time slot.")
            if start_time in self._booked(product_id, booking_date):
                raise SlotConflict()

            reservation = Reservation(
                id=str(uuid.uuid4()),
                product_id=product_id,
                customer_id=customer_id,
                booking_date=booking_date,
                start_time=start_time,
                status=self.initial_status,
                notes=notes or None,
                idempotency_key=idempotency_key,
                created_at=datetime.now(timezone.utc),
            )
            self._reservations[reservation.id] = reservation
            if idempotency_key:
                self._by_key[idempotency_key] = reservation.id

        logger.info(
            "Reservation created: %s for %s on %s at %s",
            reservation.id, product_id, booking_date, start_time,
        )
        return reservation.id

    def _booked(self, product_id: str, booking_date: date) -> set[str]:
        return {
            r.start_time
            for r in self.reservations_for(product_id, booking_date)
            if r.blocks_slot()
        }

    async def _simulate_latency(self, booking_date: date) -> None:
        # Yield even with no latency so concurrent callers interleave.
        await asyncio.sleep(self.date_latency.get(booking_date, self.latency_sec))
