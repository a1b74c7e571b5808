"""
Offline console demo: drives a full calendar booking without any backend.

Uses the real presenter, resolver, committer and state machine against
the in-memory mock backend. No network calls. Designed for live demo
walkthroughs and for poking at edge cases (outages, double bookings).

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario conflict
    python console_demo.py --scenario outage
"""

import argparse
import asyncio
from datetime import date, timedelta
from typing import Optional

from slotbook.config import settings
from slotbook.errors import ParseError
from slotbook.presenter.calendar import CalendarPresenter
from slotbook.presenter.state_machine import BookingState
from slotbook.schemas.booking_schema import AvailabilityPattern
from slotbook.schemas.customer_schema import AuthSession, BookingSession
from slotbook.tools.availability import AvailabilityResolver
from slotbook.tools.backend import InMemoryBookingBackend
from slotbook.tools.booking import ReservationCommitter
from slotbook.utils import format_time_slot

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_PRODUCT_ID = "demo-1on1-call"
DEMO_PRODUCT = {
    "id": DEMO_PRODUCT_ID,
    "title": "30 minute strategy call",
    "call_duration": 30,
    "call_platform": "Zoom",
    "available_days": ["Monday", "Wednesday", "Friday"],
    "call_time_slots": ["09:00", "10:00", "11:00", "14:00", "16:30"],
}
DEMO_CUSTOMER = AuthSession(user_id="customer-42", access_token="demo-token")

HELP_TEXT = """Commands:
  show                 redraw the calendar and slots
  prev | next          change the shown month
  date YYYY-MM-DD      select a date
  slot HH:MM           select a time slot
  notes TEXT           set notes for the creator
  book                 open the confirmation step
  confirm              submit the booking
  cancel               close the confirmation step
  login | logout       toggle the customer session
  taken HH:MM          simulate another customer booking a slot
  outage rpc|all|off   simulate backend failures
  quit"""


class ConsoleSession:
    """Renders the presenter in the terminal and maps commands onto it."""

    def __init__(self, today: Optional[date] = None) -> None:
        self.backend = InMemoryBookingBackend()
        self.pattern = AvailabilityPattern.from_product(DEMO_PRODUCT)
        self.backend.add_product(DEMO_PRODUCT_ID, self.pattern)
        self.session = BookingSession(
            product_id=DEMO_PRODUCT_ID, pattern=self.pattern, auth=DEMO_CUSTOMER
        )
        self.presenter = CalendarPresenter(
            self.session,
            AvailabilityResolver(self.backend),
            ReservationCommitter(self.backend),
            today=today,
            on_booking_complete=lambda rid: self.system_log(f"Booking complete: {rid}"),
        )

    def say(self, text: str, color: str = GREEN) -> None:
        print(f"{color}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def next_bookable_date(self) -> date:
        day = self.presenter.today
        while not self.presenter.is_selectable(day):
            day += timedelta(days=1)
        return day

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render(self) -> None:
        p = self.presenter
        print()
        print(f"{BOLD}{p.month_title:^28}{RESET}")
        print(" ".join(f"{d:>3}" for d in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")))
        row: list[str] = []
        for cell in p.month_grid():
            if cell is None:
                row.append("   ")
            elif cell.is_selected:
                row.append(f"{BOLD}{BLUE}[{cell.day.day:>2}{RESET}")
            elif cell.is_selectable:
                row.append(f"{cell.day.day:>3}")
            else:
                row.append(f"{DIM}{cell.day.day:>3}{RESET}")
            if len(row) == 7:
                print(" ".join(row))
                row = []
        if row:
            print(" ".join(row))
        print(f"{DIM}Available days: {', '.join(sorted(self.pattern.available_weekdays))}")
        print(f"Call duration: {self.pattern.call_duration_minutes} minutes{RESET}")

        if self.session.selected_date is None:
            self.say("Please select a date to view available time slots.", DIM)
        else:
            self.say(f"Selected Date: {self.session.selected_date:%A, %B %d, %Y}", BOLD)
            if not p.available_slots:
                self.say("No available time slots for this day.", DIM)
            for slot in p.available_slots:
                label = f"{format_time_slot(slot.start)} - {format_time_slot(slot.end)}"
                if slot.start == self.session.selected_slot:
                    self.say(f"  * {label}", BLUE)
                elif slot.is_available:
                    self.say(f"    {label}", RESET)
                else:
                    self.say(f"    {label} (booked)", DIM)

        if p.warning:
            self.say(p.warning, YELLOW)
        if p.error:
            self.say(p.error, RED)
        if p.success:
            self.say(p.success, GREEN)
        self.system_log(f"State: {p.state.value}")

    # ------------------------------------------------------------------ #
    # Command handling
    # ------------------------------------------------------------------ #

    async def handle(self, line: str) -> bool:
        """Apply one command. Returns False when the session should end."""
        cmd, _, arg = line.strip().partition(" ")
        cmd = cmd.lower()
        p = self.presenter

        if cmd in ("quit", "exit", "q"):
            return False
        if cmd == "help":
            print(HELP_TEXT)
            return True
        if cmd == "prev":
            p.prev_month()
        elif cmd == "next":
            p.next_month()
        elif cmd == "date":
            try:
                day = date.fromisoformat(arg.strip())
            except ValueError:
                self.say("Dates look like 2025-03-17.", RED)
                return True
            if not await p.select_date(day):
                self.say("That date is not available for booking.", RED)
        elif cmd == "slot":
            if not p.select_slot(arg.strip()):
                self.say("That time slot is not available.", RED)
        elif cmd == "notes":
            p.set_notes(arg)
        elif cmd == "book":
            p.request_confirmation()
        elif cmd == "confirm":
            if p.state != BookingState.CONFIRMING:
                self.say("Use 'book' to review your booking first.", RED)
                return True
            await p.submit()
        elif cmd == "cancel":
            p.cancel_confirmation()
        elif cmd == "login":
            self.session.auth = DEMO_CUSTOMER
        elif cmd == "logout":
            self.session.auth = None
        elif cmd == "taken":
            if self.session.selected_date is None:
                self.say("Select a date first.", RED)
                return True
            try:
                self.backend.add_reservation(
                    DEMO_PRODUCT_ID, self.session.selected_date, arg.strip()
                )
            except ParseError as e:
                self.say(str(e), RED)
                return True
            self.system_log(f"Another customer booked {arg.strip()}")
            return True
        elif cmd == "outage":
            mode = arg.strip().lower()
            self.backend.fail_slots_rpc = mode in ("rpc", "all")
            self.backend.fail_reservations_query = mode == "all"
            self.system_log(f"Outage mode: {mode or 'off'}")
            return True
        elif cmd != "show":
            self.say(f"Unknown command: {cmd}. Type 'help'.", RED)
            return True

        self.render()
        return True

    def scenarios(self) -> dict[str, list[str]]:
        day = self.next_bookable_date().isoformat()
        return {
            "booking": [
                f"date {day}",
                "slot 09:00",
                "notes Looking forward to it",
                "book",
                "confirm",
            ],
            "conflict": [
                f"date {day}",
                "slot 10:00",
                "book",
                "taken 10:00",
                "confirm",
                "slot 11:00",
                "book",
                "confirm",
            ],
            "outage": [
                "outage rpc",
                f"date {day}",
                "outage all",
                f"date {day}",
                "outage off",
                f"date {day}",
            ],
        }

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.scenarios().get(scenario)
        if not steps:
            self.say(f"Unknown scenario: {scenario}", RED)
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            print(f"\n{BLUE}> {RESET}{step}")
            await self.handle(step)

        self._summary()

    async def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - Console Demo{RESET}")
        print(f"{BOLD}  Type 'help' for commands, 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        self.render()

        loop = asyncio.get_running_loop()
        while True:
            line = (await loop.run_in_executor(None, input, f"\n{BLUE}> {RESET}")).strip()
            if not line:
                continue
            if not await self.handle(line):
                break

        self._summary()

    def _summary(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{DIM}  State trace: {' -> '.join(self.presenter.state_machine.get_state_trace())}{RESET}")
        print(f"{DIM}  Reservations made: {self.session.booked}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=["booking", "conflict", "outage"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
