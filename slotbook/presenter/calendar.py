"""
Calendar presenter: month navigation, date and slot selection, and the
confirm/submit flow for one product's booking calendar.

UI-agnostic. A front end renders ``month_grid()`` and
``available_slots``, forwards clicks to the async methods, and shows
``loading``, ``error``, ``warning`` and ``success`` as they change.

Usage:
    presenter = CalendarPresenter(session, resolver, committer)
    await presenter.select_date(date(2025, 3, 17))
    presenter.select_slot("09:00")
    presenter.request_confirmation()
    result = await presenter.submit()
"""

from __future__ import annotations

import asyncio
import calendar
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from slotbook.config import settings
from slotbook.errors import ParseError, TransientError
from slotbook.logging_context import get_session_logger, set_session_id
from slotbook.presenter.state_machine import (
    BookingState,
    BookingStateMachine,
    BookingTrigger,
)
from slotbook.schemas.booking_schema import (
    AnnotatedSlot,
    AvailabilityResult,
    CommitErrorKind,
    CommitResult,
)
from slotbook.schemas.customer_schema import BookingSession
from slotbook.tools.availability import AvailabilityResolver
from slotbook.tools.booking import ReservationCommitter, new_idempotency_key
from slotbook.utils import normalize_hhmm, weekday_name

logger = get_session_logger(__name__)

SELECT_FIRST_MESSAGE = "Please select a date and time slot before booking."
LOGIN_REQUIRED_MESSAGE = "Please log in to book this call."
SLOT_TAKEN_MESSAGE = "This time slot is no longer available. Please choose another time."


@dataclass(frozen=True)
class DayCell:
    """One day button in the month grid."""
    day: date
    is_past: bool
    is_available_weekday: bool
    is_selected: bool

    @property
    def is_selectable(self) -> bool:
        return not self.is_past and self.is_available_weekday


def _first_of_month(day: date) -> date:
    return day.replace(day=1)


def _shift_month(month: date, delta: int) -> date:
    index = month.year * 12 + (month.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


class CalendarPresenter:
    """Drives one customer's pass through a product calendar."""

    def __init__(
        self,
        session: BookingSession,
        resolver: AvailabilityResolver,
        committer: ReservationCommitter,
        today: Optional[date] = None,
        on_booking_complete: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.session = session
        self._resolver = resolver
        self._committer = committer
        self._today = today
        self._on_booking_complete = on_booking_complete
        self._sm = BookingStateMachine()
        self._generation = 0
        self._inflight: dict[date, asyncio.Task[AvailabilityResult]] = {}

        self.slots_by_date: dict[date, AvailabilityResult] = {}
        self.loading = False
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self.success: Optional[str] = None

        if not session.session_id:
            session.session_id = f"BS-{uuid.uuid4().hex[:8]}"
        if session.shown_month is None:
            session.shown_month = _first_of_month(self.today)

    # ------------------------------------------------------------------ #
    # Read-only view state
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> BookingState:
        return self._sm.current_state

    @property
    def state_machine(self) -> BookingStateMachine:
        return self._sm

    @property
    def today(self) -> date:
        """Today in the store's timezone; slot times are store-local."""
        if self._today is not None:
            return self._today
        return datetime.now(ZoneInfo(settings.booking.store_timezone)).date()

    @property
    def month_title(self) -> str:
        return self.session.shown_month.strftime("%B %Y")

    @property
    def available_slots(self) -> list[AnnotatedSlot]:
        """Annotated slots for the selected date, or empty if none loaded."""
        if self.session.selected_date is None:
            return []
        result = self.slots_by_date.get(self.session.selected_date)
        return list(result.slots) if result else []

    def is_past(self, day: date) -> bool:
        return day < self.today

    def is_available_weekday(self, day: date) -> bool:
        return weekday_name(day) in self.session.pattern.available_weekdays

    def is_selectable(self, day: date) -> bool:
        return not self.is_past(day) and self.is_available_weekday(day)

    def month_grid(self) -> list[Optional[DayCell]]:
        """Sunday-first cells for the shown month; ``None`` pads the first week."""
        month = self.session.shown_month
        leading_blanks = (month.weekday() + 1) % 7
        days_in_month = calendar.monthrange(month.year, month.month)[1]

        cells: list[Optional[DayCell]] = [None] * leading_blanks
        for offset in range(days_in_month):
            day = month + timedelta(days=offset)
            cells.append(DayCell(
                day=day,
                is_past=self.is_past(day),
                is_available_weekday=self.is_available_weekday(day),
                is_selected=day == self.session.selected_date,
            ))
        return cells

    # ------------------------------------------------------------------ #
    # Month navigation (never touches the selection)
    # ------------------------------------------------------------------ #

    def prev_month(self) -> date:
        self.session.shown_month = _shift_month(self.session.shown_month, -1)
        return self.session.shown_month

    def next_month(self) -> date:
        self.session.shown_month = _shift_month(self.session.shown_month, 1)
        return self.session.shown_month

    # ------------------------------------------------------------------ #
    # Date and slot selection
    # ------------------------------------------------------------------ #

    async def select_date(self, day: date) -> bool:
        """Select ``day`` and load its slots.

        Ineligible days, and any pick while a commit is in flight, are a no-op.
        """
        if not self.is_selectable(day):
            logger.debug("Ignoring ineligible date %s", day)
            return False
        if not self._sm.can(BookingTrigger.DATE_PICKED):
            logger.debug("Ignoring date %s while %s", day, self.state.value)
            return False

        set_session_id(self.session.session_id)
        self._sm.transition(BookingTrigger.DATE_PICKED)
        self.session.selected_date = day
        self.session.selected_slot = None
        self.session.idempotency_key = None
        self.error = None
        self.success = None
        await self.refresh()
        return True

    async def refresh(self) -> Optional[AvailabilityResult]:
        """Re-resolve the selected date.

        Returns ``None`` when the response was superseded by a later
        refresh; the later one owns ``loading`` and ``warning``.
        """
        day = self.session.selected_date
        if day is None:
            return None

        self._generation += 1
        generation = self._generation
        self.loading = True

        task = self._inflight.get(day)
        if task is None:
            task = asyncio.ensure_future(
                self._resolver.resolve(self.session.product_id, day, self.session.pattern)
            )
            self._inflight[day] = task

        try:
            result = await task
        finally:
            if self._inflight.get(day) is task:
                del self._inflight[day]
            if generation == self._generation:
                self.loading = False

        self.slots_by_date[day] = result
        if generation != self._generation:
            logger.debug("Discarding stale availability for %s (gen %d)", day, generation)
            return None

        self.warning = result.warning
        return result

    def select_slot(self, start: str) -> bool:
        """Select an available slot on the current date; anything else is a no-op."""
        if self.session.selected_date is None or not self._sm.can(BookingTrigger.SLOT_PICKED):
            return False
        try:
            start = normalize_hhmm(start)
        except ParseError:
            return False

        result = self.slots_by_date.get(self.session.selected_date)
        slot = result.find(start) if result else None
        if slot is None or not slot.is_available:
            return False

        self._sm.transition(BookingTrigger.SLOT_PICKED)
        if start != self.session.selected_slot:
            self.session.idempotency_key = None
        self.session.selected_slot = start
        self.error = None
        return True

    def set_notes(self, notes: str) -> None:
        self.session.notes = notes

    # ------------------------------------------------------------------ #
    # Confirmation and commit
    # ------------------------------------------------------------------ #

    def request_confirmation(self) -> bool:
        """Open the confirmation step. Requires a selection and a login."""
        if self.session.selected_date is None or self.session.selected_slot is None:
            self.error = SELECT_FIRST_MESSAGE
            return False
        auth = self.session.auth
        if auth is None or auth.is_expired():
            self.error = LOGIN_REQUIRED_MESSAGE
            return False
        result = self.slots_by_date.get(self.session.selected_date)
        slot = result.find(self.session.selected_slot) if result else None
        if slot is None or not slot.is_available:
            self.error = SLOT_TAKEN_MESSAGE
            return False

        trigger = (
            BookingTrigger.RETRY if self.state == BookingState.ERROR
            else BookingTrigger.CONFIRM_REQUESTED
        )
        if not self._sm.can(trigger):
            return False
        self._sm.transition(trigger)
        self.error = None
        return True

    def cancel_confirmation(self) -> None:
        if self.state == BookingState.CONFIRMING:
            self._sm.transition(BookingTrigger.CONFIRMATION_CANCELLED)

    def reselect(self) -> None:
        """Leave the error state keeping the chosen slot for editing."""
        if self.state == BookingState.ERROR:
            self._sm.transition(BookingTrigger.RESELECT)

    async def submit(self) -> CommitResult:
        """Commit the confirmed selection.

        Raises:
            InvalidTransitionError: If called outside the confirmation step.
        """
        self._sm.transition(BookingTrigger.SUBMITTED)
        set_session_id(self.session.session_id)
        if self.session.idempotency_key is None:
            self.session.idempotency_key = new_idempotency_key()

        self.loading = True
        self.error = None
        try:
            result = await self._committer.commit(
                self.session.product_id,
                self.session.customer_id,
                self.session.selected_date,
                self.session.selected_slot,
                self.session.notes,
                auth=self.session.auth,
                idempotency_key=self.session.idempotency_key,
            )
        except Exception as e:
            logger.exception("Unexpected error committing booking: %s", e)
            error = TransientError()
            result = CommitResult(
                success=False,
                error=CommitErrorKind.TRANSIENT_ERROR,
                message=error.message,
                retryable=error.retryable,
            )
        finally:
            self.loading = False

        if result.success:
            await self._on_success(result)
        else:
            await self._on_failure(result)
        return result

    async def _on_success(self, result: CommitResult) -> None:
        self._sm.transition(BookingTrigger.COMMIT_SUCCEEDED)
        self.success = result.message
        self.session.last_reservation_id = result.reservation_id
        self.session.booked.append(result.reservation_id)
        self.session.selected_slot = None
        self.session.notes = ""
        self.session.idempotency_key = None

        await self.refresh()

        if self._on_booking_complete and result.reservation_id:
            self._on_booking_complete(result.reservation_id)

    async def _on_failure(self, result: CommitResult) -> None:
        self._sm.transition(BookingTrigger.COMMIT_FAILED)
        self.error = result.message
        # Only a transient failure may have reached the server; keep its key.
        if result.error != CommitErrorKind.TRANSIENT_ERROR:
            self.session.idempotency_key = None
        if result.error == CommitErrorKind.SLOT_CONFLICT:
            await self.refresh()
