"""
Finite state machine for the booking calendar flow.

Defines the seven calendar states and explicit transitions with triggers.
The presenter only changes state through this table, so a UI cannot, say,
submit a booking that was never confirmed or confirm without a slot.

Usage:
    sm = BookingStateMachine()
    sm.transition(BookingTrigger.DATE_PICKED)
    assert sm.current_state == BookingState.DATE_SELECTED
"""

import logging
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All possible states of a calendar booking session."""
    IDLE = "idle"
    DATE_SELECTED = "date_selected"
    SLOT_SELECTED = "slot_selected"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class BookingTrigger(str, Enum):
    """Events that cause state transitions."""
    DATE_PICKED = "date_picked"
    SLOT_PICKED = "slot_picked"
    CONFIRM_REQUESTED = "confirm_requested"
    CONFIRMATION_CANCELLED = "confirmation_cancelled"
    SUBMITTED = "submitted"
    COMMIT_SUCCEEDED = "commit_succeeded"
    COMMIT_FAILED = "commit_failed"
    RETRY = "retry"
    RESELECT = "reselect"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: BookingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingStateMachine:
    """
    Deterministic state machine controlling the calendar flow.

    Every transition must be explicitly defined. Anything else is rejected
    with an error listing the triggers allowed from the current state.
    """

    TRANSITIONS: list[Transition] = [
        # --- Date selection (re-entrant; picking a new date drops the slot) ---
        Transition(BookingState.IDLE, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),
        Transition(BookingState.DATE_SELECTED, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),
        Transition(BookingState.SLOT_SELECTED, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),
        Transition(BookingState.CONFIRMING, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),
        Transition(BookingState.SUCCESS, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),
        Transition(BookingState.ERROR, BookingState.DATE_SELECTED,
                   BookingTrigger.DATE_PICKED),

        # --- Slot selection ---
        Transition(BookingState.DATE_SELECTED, BookingState.SLOT_SELECTED,
                   BookingTrigger.SLOT_PICKED),
        Transition(BookingState.SLOT_SELECTED, BookingState.SLOT_SELECTED,
                   BookingTrigger.SLOT_PICKED),
        Transition(BookingState.SUCCESS, BookingState.SLOT_SELECTED,
                   BookingTrigger.SLOT_PICKED),
        Transition(BookingState.ERROR, BookingState.SLOT_SELECTED,
                   BookingTrigger.SLOT_PICKED),

        # --- Confirmation gate ---
        Transition(BookingState.SLOT_SELECTED, BookingState.CONFIRMING,
                   BookingTrigger.CONFIRM_REQUESTED),
        Transition(BookingState.CONFIRMING, BookingState.SLOT_SELECTED,
                   BookingTrigger.CONFIRMATION_CANCELLED),

        # --- Commit ---
        Transition(BookingState.CONFIRMING, BookingState.SUBMITTING,
                   BookingTrigger.SUBMITTED),
        Transition(BookingState.SUBMITTING, BookingState.SUCCESS,
                   BookingTrigger.COMMIT_SUCCEEDED),
        Transition(BookingState.SUBMITTING, BookingState.ERROR,
                   BookingTrigger.COMMIT_FAILED),

        # --- Error recovery keeps the customer's selections ---
        Transition(BookingState.ERROR, BookingState.CONFIRMING,
                   BookingTrigger.RETRY),
        Transition(BookingState.ERROR, BookingState.SLOT_SELECTED,
                   BookingTrigger.RESELECT),
    ]

    def __init__(self) -> None:
        self._current_state = BookingState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.IDLE, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    def transition(self, trigger: BookingTrigger) -> BookingState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new booking state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can(self, trigger: BookingTrigger) -> bool:
        """Check whether ``trigger`` is valid from the current state."""
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]
