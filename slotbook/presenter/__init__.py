from slotbook.presenter.calendar import CalendarPresenter, DayCell
from slotbook.presenter.state_machine import (
    BookingState,
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)

__all__ = [
    "CalendarPresenter",
    "DayCell",
    "BookingStateMachine",
    "BookingState",
    "BookingTrigger",
    "InvalidTransitionError",
]
