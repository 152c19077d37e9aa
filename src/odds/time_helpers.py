"""Time handling utilities for the Odds Relay.

Upstream kick-off times arrive as 12-hour clock strings and are shifted back
by a fixed offset before they are shown to clients.
"""

import re

MINUTES_PER_DAY = 1440
KICKOFF_OFFSET_MINUTES = 90

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)


class InvalidTimeFormat(ValueError):
    """Raised when a 12-hour time string cannot be parsed."""


def parse_12_hour_time(time_str: str) -> int:
    """Parse a 12-hour time string into minutes since midnight.

    Args:
        time_str: Time such as "10:30AM" or "02:15 PM"

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        InvalidTimeFormat: If the string is not a valid 12-hour time
    """
    if not isinstance(time_str, str):
        raise InvalidTimeFormat(f"Expected a time string, got {type(time_str).__name__}")

    match = _TIME_PATTERN.match(time_str)
    if not match:
        raise InvalidTimeFormat(f"Invalid 12-hour time: {time_str!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = match.group(3).upper()

    if not 1 <= hour <= 12:
        raise InvalidTimeFormat(f"Hour out of range in {time_str!r}")
    if not 0 <= minute <= 59:
        raise InvalidTimeFormat(f"Minute out of range in {time_str!r}")

    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0

    return hour * 60 + minute


def format_12_hour_time(total_minutes: int) -> str:
    """Format minutes since midnight as "H:MMAM" / "H:MMPM"."""
    hour, minute = divmod(total_minutes % MINUTES_PER_DAY, 60)
    period = "PM" if hour >= 12 else "AM"
    hour = hour % 12
    if hour == 0:
        hour = 12
    return f"{hour}:{minute:02d}{period}"


def subtract_90_minutes(time_str: str) -> str:
    """Shift a 12-hour time string back by 90 minutes.

    Wraps around midnight; the day itself is not tracked.

    Args:
        time_str: Time such as "10:30AM" or "02:15 PM"

    Returns:
        Adjusted time, e.g. "9:00AM"

    Raises:
        InvalidTimeFormat: If the input is malformed
    """
    total_minutes = parse_12_hour_time(time_str) - KICKOFF_OFFSET_MINUTES
    if total_minutes < 0:
        total_minutes += MINUTES_PER_DAY
    return format_12_hour_time(total_minutes)
