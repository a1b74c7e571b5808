"""Shared test fixtures and helpers."""

from datetime import date
from typing import Optional

import pytest

from slotbook.presenter.calendar import CalendarPresenter
from slotbook.presenter.state_machine import BookingStateMachine
from slotbook.schemas.booking_schema import AvailabilityPattern
from slotbook.schemas.customer_schema import AuthSession, BookingSession
from slotbook.tools.availability import AvailabilityResolver
from slotbook.tools.backend import InMemoryBookingBackend
from slotbook.tools.booking import ReservationCommitter

PRODUCT_ID = "prod-call-1"

# 2025-03-17 is a Monday; "today" is the Wednesday before it.
MONDAY = date(2025, 3, 17)
TUESDAY = date(2025, 3, 18)
NEXT_MONDAY = date(2025, 3, 24)
TODAY = date(2025, 3, 12)


def make_pattern(
    weekdays: Optional[list[str]] = None,
    starts: Optional[list[str]] = None,
    duration: int = 30,
) -> AvailabilityPattern:
    """Helper to create an AvailabilityPattern with scenario-A defaults."""
    return AvailabilityPattern(
        available_weekdays=weekdays or ["Monday"],
        time_slot_starts=tuple(starts or ["09:00", "10:00"]),
        call_duration_minutes=duration,
    )


@pytest.fixture
def pattern():
    return make_pattern()


@pytest.fixture
def auth():
    return AuthSession(user_id="customer-1", access_token="token-1")


@pytest.fixture
def backend(pattern):
    backend = InMemoryBookingBackend(initial_status="pending")
    backend.add_product(PRODUCT_ID, pattern)
    return backend


@pytest.fixture
def resolver(backend):
    return AvailabilityResolver(backend)


@pytest.fixture
def committer(backend):
    return ReservationCommitter(backend)


@pytest.fixture
def state_machine():
    return BookingStateMachine()


@pytest.fixture
def session(pattern, auth):
    return BookingSession(product_id=PRODUCT_ID, pattern=pattern, auth=auth)


@pytest.fixture
def presenter(session, resolver, committer):
    return CalendarPresenter(session, resolver, committer, today=TODAY)
