"""
Slot generator: expands a weekly availability pattern into candidate slots.

Pure and synchronous. The same pattern always yields the same slots in
the same order as ``time_slot_starts``.
"""

import logging
from typing import Optional

from slotbook.config import settings
from slotbook.errors import ValidationError
from slotbook.schemas.booking_schema import AvailabilityPattern, CandidateSlot
from slotbook.utils import MINUTES_PER_DAY, format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)


def calculate_end_time(start: str, duration_minutes: int, allow_overnight: bool = False) -> str:
    """Return the ``HH:MM`` end of a slot starting at ``start``.

    An end of exactly midnight stays within the day and renders as
    ``00:00``. Anything later is rejected unless ``allow_overnight`` is set,
    in which case it wraps onto the next day's clock.

    Raises:
        ParseError: If ``start`` is not ``HH:MM``.
        ValidationError: If the slot runs past midnight and overnight
            slots are not allowed.
    """
    end = parse_hhmm(start) + duration_minutes
    if end > MINUTES_PER_DAY and not allow_overnight:
        raise ValidationError(
            f"Slot starting at {start} with {duration_minutes} minute duration "
            "runs past midnight."
        )
    return format_hhmm(end)


def generate_slots(
    pattern: AvailabilityPattern, allow_overnight: Optional[bool] = None
) -> list[CandidateSlot]:
    """Enumerate candidate slots for any eligible date of ``pattern``."""
    if allow_overnight is None:
        allow_overnight = settings.booking.allow_overnight_slots

    return [
        CandidateSlot(
            start=start,
            end=calculate_end_time(start, pattern.call_duration_minutes, allow_overnight),
        )
        for start in pattern.time_slot_starts
    ]
