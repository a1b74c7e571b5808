"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_booking_schema(self):
        from slotbook.schemas.booking_schema import (
            AvailabilityPattern, AnnotatedSlot, ReservationStatus, CommitErrorKind,
        )
        assert ReservationStatus.CANCELLED == "cancelled"
        assert CommitErrorKind.SLOT_CONFLICT == "slot_conflict"
        assert AvailabilityPattern is not None
        assert AnnotatedSlot is not None

    def test_import_customer_schema(self):
        from slotbook.schemas.customer_schema import AuthSession, BookingSession
        from slotbook.schemas.booking_schema import AvailabilityPattern

        pattern = AvailabilityPattern(
            available_weekdays=["Monday"], time_slot_starts=("09:00",), call_duration_minutes=30
        )
        session = BookingSession(product_id="p", pattern=pattern)
        assert session.selected_date is None
        assert session.customer_id is None
        session.auth = AuthSession(user_id="u", access_token="t")
        assert session.customer_id == "u"


class TestPresenterImports:
    def test_package_reexports(self):
        from slotbook.presenter import (
            BookingState, BookingStateMachine, BookingTrigger, CalendarPresenter,
        )
        assert BookingStateMachine().current_state == BookingState.IDLE
        assert BookingTrigger.DATE_PICKED == "date_picked"
        assert CalendarPresenter is not None


class TestToolImports:
    def test_import_tools(self):
        from slotbook.tools.availability import AvailabilityResolver, resolve_availability
        from slotbook.tools.backend import InMemoryBookingBackend
        from slotbook.tools.booking import ReservationCommitter
        from slotbook.tools.rest_backend import RestBookingBackend
        from slotbook.tools.slots import generate_slots

        assert callable(generate_slots)
        assert callable(resolve_availability)
        assert AvailabilityResolver(InMemoryBookingBackend()) is not None
        assert ReservationCommitter is not None
        assert RestBookingBackend is not None


class TestErrorTaxonomy:
    def test_retryable_flags(self):
        from slotbook.errors import (
            NetworkError, NotAuthenticated, ParseError, SlotConflict,
            TransientError, ValidationError,
        )
        assert NetworkError is TransientError
        assert TransientError.retryable and SlotConflict.retryable
        assert not NotAuthenticated.retryable and not ValidationError.retryable
        assert issubclass(ParseError, ValueError)
        assert not ParseError.user_facing

    def test_default_messages(self):
        from slotbook.errors import NotAuthenticated, ValidationError

        assert str(NotAuthenticated()) == "You must be logged in to book a call."
        assert ValidationError("custom").message == "custom"


class TestLoggingContext:
    def test_session_id_injected(self):
        import logging

        from slotbook.logging_context import (
            SessionIdFilter, get_session_id, get_session_logger, set_session_id,
        )

        set_session_id("BS-test")
        assert get_session_id() == "BS-test"
        logger = get_session_logger("slotbook.test")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1
        get_session_logger("slotbook.test")
        assert sum(isinstance(f, SessionIdFilter) for f in logger.filters) == 1

        record = logging.LogRecord("slotbook.test", logging.INFO, __file__, 1, "msg", None, None)
        assert logger.filters[0].filter(record)
        assert record.session_id == "BS-test"
