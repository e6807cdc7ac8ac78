"""
Datetime utility functions.
Provides replacements for deprecated datetime functions and the
human-readable formats used in outbound SMS.
"""

from datetime import date, datetime, time, timedelta
from typing import Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def _coerce_date(date_input: Union[str, date, datetime]) -> date:
    if isinstance(date_input, datetime):
        return date_input.date()
    if isinstance(date_input, date):
        return date_input
    if not isinstance(date_input, str):
        raise ValueError(f"Expected string, date or datetime, got {type(date_input)}")
    return datetime.strptime(date_input.strip()[:10], "%Y-%m-%d").date()


def _coerce_time(time_input: Union[str, time]) -> time:
    if isinstance(time_input, time):
        return time_input
    if not isinstance(time_input, str):
        raise ValueError(f"Expected string or time, got {type(time_input)}")
    value = time_input.strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized time format: {time_input}")


def format_event_date(date_input: Union[str, date, datetime]) -> str:
    """
    Format an event date as a long US date without leading zeros.

    Examples:
        >>> format_event_date("2024-06-01")
        "Saturday, June 1, 2024"
    """
    d = _coerce_date(date_input)
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def format_tee_time(time_input: Union[str, time]) -> str:
    """
    Format a tee time on a 12-hour clock.

    Examples:
        >>> format_tee_time("08:00:00")
        "8:00 AM"
        >>> format_tee_time("12:30")
        "12:30 PM"
    """
    t = _coerce_time(time_input)
    hour = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour}:{t.minute:02d} {suffix}"


def add_minutes(start: time, minutes: int) -> time:
    """Offset a wall-clock time by a number of minutes (wraps at midnight)."""
    anchor = datetime.combine(date(2000, 1, 1), start)
    return (anchor + timedelta(minutes=minutes)).time()
