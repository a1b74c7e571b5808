"""
slotbook entry point.

Resolves live availability against the configured backend, or launches
the offline console demo for development.

Usage:
    Live slots:   python main.py slots PRODUCT_ID YYYY-MM-DD [--pattern-json FILE]
    Console mode: python main.py console
"""

import argparse
import asyncio
import json
import logging
from datetime import date

from slotbook.config import settings
from slotbook.schemas.booking_schema import AvailabilityPattern
from slotbook.tools.availability import resolve_availability
from slotbook.tools.rest_backend import RestBookingBackend
from slotbook.utils import format_time_slot

logger = logging.getLogger(__name__)


async def _print_slots(product_id: str, booking_date: date, pattern: AvailabilityPattern) -> None:
    """Resolve one date against the REST backend and print the annotated slots."""
    async with RestBookingBackend(settings.backend) as backend:
        result = await resolve_availability(backend, product_id, booking_date, pattern)

    print(f"{booking_date:%A, %B %d, %Y} ({result.source.value})")
    for slot in result.slots:
        status = "available" if slot.is_available else "booked"
        print(f"  {format_time_slot(slot.start)} - {format_time_slot(slot.end)}  {status}")
    if result.warning:
        print(f"Warning: {result.warning}")


def _run_slots_mode(args: argparse.Namespace) -> None:
    """Query availability for one product and date (requires BACKEND_URL)."""
    if args.pattern_json:
        with open(args.pattern_json, encoding="utf-8") as fh:
            pattern = AvailabilityPattern.from_product(json.load(fh))
    else:
        # Only used by the fallback path when the server function is down.
        pattern = AvailabilityPattern(
            available_weekdays=frozenset(), time_slot_starts=(), call_duration_minutes=30
        )
    asyncio.run(_print_slots(args.product_id, args.date, pattern))


def _run_console_mode() -> None:
    """Start the offline console demo (no backend required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    asyncio.run(session.run())


def main() -> None:
    parser = argparse.ArgumentParser(description="Booking slot availability")
    sub = parser.add_subparsers(dest="mode", required=True)

    slots = sub.add_parser("slots", help="Show availability for a product and date")
    slots.add_argument("product_id")
    slots.add_argument("date", type=date.fromisoformat)
    slots.add_argument(
        "--pattern-json",
        default=None,
        help="Product row (call_duration, available_days, call_time_slots) for local fallback",
    )

    sub.add_parser("console", help="Run the offline console demo")

    args = parser.parse_args()
    if args.mode == "console":
        _run_console_mode()
    else:
        _run_slots_mode(args)


if __name__ == "__main__":
    main()
