"""Tests for the slot generator and availability pattern model."""

import pytest
from pydantic import ValidationError as SchemaValidationError

from slotbook.errors import ParseError, ValidationError
from slotbook.schemas.booking_schema import AvailabilityPattern, CandidateSlot
from slotbook.tools.slots import calculate_end_time, generate_slots
from slotbook.utils import parse_hhmm

from tests.conftest import make_pattern


class TestGenerateSlots:
    def test_scenario_a(self):
        pattern = make_pattern(["Monday"], ["09:00", "10:00"], 30)
        assert generate_slots(pattern) == [
            CandidateSlot(start="09:00", end="09:30"),
            CandidateSlot(start="10:00", end="10:30"),
        ]

    def test_one_slot_per_start(self):
        pattern = make_pattern(starts=["08:00", "08:45", "13:15", "17:00"], duration=45)
        assert len(generate_slots(pattern)) == 4

    def test_duration_is_respected(self):
        pattern = make_pattern(starts=["08:10", "11:55", "16:20"], duration=50)
        for slot in generate_slots(pattern):
            assert (parse_hhmm(slot.end) - parse_hhmm(slot.start)) % (24 * 60) == 50

    def test_order_is_preserved_not_sorted(self):
        pattern = make_pattern(starts=["15:00", "09:00", "12:00"])
        assert [s.start for s in generate_slots(pattern)] == ["15:00", "09:00", "12:00"]

    def test_minutes_carry_into_hours(self):
        pattern = make_pattern(starts=["09:45"], duration=90)
        assert generate_slots(pattern)[0].end == "11:15"

    def test_deterministic(self):
        pattern = make_pattern(starts=["09:00", "10:00", "11:00"])
        assert generate_slots(pattern) == generate_slots(pattern)

    def test_starts_are_normalized(self):
        pattern = make_pattern(starts=["9:00"])
        assert generate_slots(pattern)[0].start == "09:00"

    def test_empty_pattern(self):
        pattern = AvailabilityPattern(
            available_weekdays=["Monday"], time_slot_starts=(), call_duration_minutes=30
        )
        assert generate_slots(pattern) == []

    def test_malformed_start_raises_parse_error(self):
        pattern = make_pattern(starts=["09:00", "nine"])
        with pytest.raises(ParseError):
            generate_slots(pattern)


class TestMidnightOverflow:
    def test_crossing_midnight_rejected_by_default(self):
        pattern = make_pattern(starts=["23:45"], duration=30)
        with pytest.raises(ValidationError, match="past midnight"):
            generate_slots(pattern, allow_overnight=False)

    def test_crossing_midnight_wraps_when_allowed(self):
        pattern = make_pattern(starts=["23:45"], duration=30)
        assert generate_slots(pattern, allow_overnight=True)[0].end == "00:15"

    def test_ending_exactly_at_midnight_is_allowed(self):
        assert calculate_end_time("23:30", 30) == "00:00"


class TestAvailabilityPattern:
    def test_weekday_names_are_normalized(self):
        pattern = make_pattern(weekdays=["monday", " WEDNESDAY "])
        assert pattern.available_weekdays == frozenset({"Monday", "Wednesday"})

    def test_unknown_weekday_rejected(self):
        with pytest.raises(SchemaValidationError):
            make_pattern(weekdays=["Funday"])

    def test_duplicate_starts_rejected(self):
        with pytest.raises(SchemaValidationError, match="Duplicate"):
            make_pattern(starts=["09:00", "9:00"])

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(SchemaValidationError):
            make_pattern(duration=duration)

    def test_from_product_row(self):
        pattern = AvailabilityPattern.from_product({
            "call_duration": 45,
            "call_platform": "Zoom",
            "available_days": ["Tuesday", "Thursday"],
            "call_time_slots": ["10:00", "14:00"],
        })
        assert pattern.call_duration_minutes == 45
        assert pattern.available_weekdays == frozenset({"Tuesday", "Thursday"})
        assert pattern.time_slot_starts == ("10:00", "14:00")

    def test_from_product_camel_case(self):
        pattern = AvailabilityPattern.from_product({
            "callDuration": 60,
            "availableDays": ["Friday"],
            "callTimeSlots": ["16:00"],
        })
        assert generate_slots(pattern) == [CandidateSlot(start="16:00", end="17:00")]
