"""Tests for shared time and date helpers."""

from datetime import date

import pytest

from slotbook.errors import ParseError
from slotbook.utils import (
    format_hhmm,
    format_time_slot,
    normalize_hhmm,
    parse_hhmm,
    weekday_name,
)


class TestParseHHMM:
    def test_parses_minutes_since_midnight(self):
        assert parse_hhmm("09:30") == 570

    def test_accepts_seconds_suffix(self):
        assert parse_hhmm("10:00:00") == 600

    def test_accepts_single_digit_hour(self):
        assert parse_hhmm("9:05") == 545

    def test_strips_whitespace(self):
        assert parse_hhmm("  14:00 ") == 840

    @pytest.mark.parametrize("value", ["", "24:00", "9am", "12:60", "1200", "ab:cd"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ParseError):
            parse_hhmm(value)

    def test_rejects_non_string(self):
        with pytest.raises(ParseError):
            parse_hhmm(900)  # type: ignore[arg-type]

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_hhmm("nope")


class TestFormatting:
    def test_format_pads(self):
        assert format_hhmm(65) == "01:05"

    def test_format_wraps_at_midnight(self):
        assert format_hhmm(24 * 60 + 15) == "00:15"

    def test_normalize(self):
        assert normalize_hhmm("7:00:00") == "07:00"

    def test_weekday_name(self):
        assert weekday_name(date(2025, 3, 17)) == "Monday"
        assert weekday_name(date(2025, 3, 16)) == "Sunday"


class TestFormatTimeSlot:
    def test_afternoon(self):
        assert format_time_slot("13:30") == "01:30 PM"

    def test_noon(self):
        assert format_time_slot("12:00") == "12:00 PM"

    def test_midnight(self):
        assert format_time_slot("00:15") == "12:15 AM"

    def test_unparseable_returned_unchanged(self):
        assert format_time_slot("later") == "later"
