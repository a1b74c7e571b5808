"""Shared time and date helpers used across the booking flow."""

import re
from datetime import date

from slotbook.errors import ParseError

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Backends with a SQL ``time`` column return seconds as well.
_HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def parse_hhmm(value: str) -> int:
    """Parse a wall-clock ``HH:MM`` string into minutes since midnight.

    Examples:
        >>> parse_hhmm("09:30")
        570
        >>> parse_hhmm("10:00:00")
        600

    Raises:
        ParseError: If the value is not a valid 24-hour time.
    """
    if not isinstance(value, str):
        raise ParseError(f"Invalid time {value!r}, expected HH:MM.")
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ParseError(f"Invalid time {value!r}, expected HH:MM.")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``, wrapping at 24h."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_hhmm(value: str) -> str:
    """Return the canonical zero-padded ``HH:MM`` form of a time string.

    Examples:
        >>> normalize_hhmm("9:05")
        '09:05'
        >>> normalize_hhmm("14:00:00")
        '14:00'
    """
    return format_hhmm(parse_hhmm(value))


def weekday_name(day: date) -> str:
    """English weekday name for a calendar date."""
    return WEEKDAY_NAMES[day.weekday()]


def format_time_slot(value: str) -> str:
    """Render ``HH:MM`` as a 12-hour display string.

    Unparseable values are returned unchanged so a bad row never breaks
    a rendered slot list.

    Examples:
        >>> format_time_slot("13:30")
        '01:30 PM'
        >>> format_time_slot("00:15")
        '12:15 AM'
    """
    try:
        minutes = parse_hhmm(value)
    except ParseError:
        return value
    hours, mins = divmod(minutes, 60)
    suffix = "AM" if hours < 12 else "PM"
    hours12 = hours % 12 or 12
    return f"{hours12:02d}:{mins:02d} {suffix}"
