"""
Availability resolver: annotates a date's candidate slots with whether
each one can still be booked.

Prefers the server-side ``get_available_slots`` function, which generates
and conflict-checks in one query. If that fails, slots are generated
locally and checked against the raw reservations query. If both fail,
every slot is shown as available (fail-open) with a warning, so a
transient outage never blocks a legitimate booking; the commit step
still re-validates on the server.
"""

from datetime import date

from slotbook.errors import BookingError
from slotbook.logging_context import get_session_logger
from slotbook.schemas.booking_schema import (
    AnnotatedSlot,
    AvailabilityPattern,
    AvailabilityResult,
    SlotSource,
)
from slotbook.tools.backend import BookingBackend
from slotbook.tools.slots import generate_slots

logger = get_session_logger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load available time slots. Please try again."


class AvailabilityResolver:
    """Resolve annotated slots for a (product, date) pair."""

    def __init__(self, backend: BookingBackend) -> None:
        self._backend = backend

    async def resolve(
        self, product_id: str, booking_date: date, pattern: AvailabilityPattern
    ) -> AvailabilityResult:
        """
        Return annotated slots for ``booking_date``.

        The result reflects reservations at query time only; another
        client may commit a slot right after this returns.
        """
        try:
            slots = await self._backend.get_available_slots(product_id, booking_date)
            return AvailabilityResult(slots=slots, source=SlotSource.SERVER)
        except BookingError as e:
            logger.error(
                "Error fetching available slots for %s on %s: %s",
                product_id, booking_date, e,
            )

        # Generator errors are programmer errors and propagate from here.
        candidates = generate_slots(pattern)

        try:
            booked = set(
                await self._backend.get_booked_start_times(product_id, booking_date)
            )
        except BookingError as e:
            logger.error(
                "Error checking slot availability for %s on %s: %s",
                product_id, booking_date, e,
            )
            return AvailabilityResult(
                slots=[
                    AnnotatedSlot(start=s.start, end=s.end, is_available=True)
                    for s in candidates
                ],
                source=SlotSource.FAIL_OPEN,
                warning=LOAD_FAILED_MESSAGE,
            )

        return AvailabilityResult(
            slots=[
                AnnotatedSlot(start=s.start, end=s.end, is_available=s.start not in booked)
                for s in candidates
            ],
            source=SlotSource.FALLBACK,
            warning=LOAD_FAILED_MESSAGE,
        )


async def resolve_availability(
    backend: BookingBackend,
    product_id: str,
    booking_date: date,
    pattern: AvailabilityPattern,
) -> AvailabilityResult:
    """One-shot helper around :class:`AvailabilityResolver`."""
    return await AvailabilityResolver(backend).resolve(product_id, booking_date, pattern)
