"""
Error taxonomy for the availability and reservation flow.

Each error carries whether it is retryable and whether its message is
meant for the customer. Generator errors are programmer errors; resolver
errors are recovered locally; committer errors are shown verbatim.
"""


class BookingError(Exception):
    """Base class for all booking-flow errors."""

    retryable: bool = False
    user_facing: bool = True
    default_message = "Booking failed. Please try again."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ParseError(BookingError, ValueError):
    """Malformed HH:MM time string. A caller precondition violation."""

    user_facing = False
    default_message = "Invalid time format, expected HH:MM."


class ValidationError(BookingError):
    """Input is missing or malformed; must be corrected before retrying."""

    default_message = "Please select a date and time slot."


class NotAuthenticated(BookingError):
    """No valid session; the customer has to log in first."""

    default_message = "You must be logged in to book a call."


class SlotConflict(BookingError):
    """The slot was reserved by someone else between resolve and commit."""

    retryable = True
    default_message = (
        "This time slot was just booked by someone else. Please choose another time."
    )


class TransientError(BookingError):
    """Network or server failure. Safe to retry as-is."""

    retryable = True
    default_message = "Failed to create booking. Please try again."


NetworkError = TransientError
