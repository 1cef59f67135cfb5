"""Shared utilities used across the booking engine."""

import re
from datetime import date, datetime


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(555) 123-4567")
        '5551234567'
        >>> normalize_phone("+44 20 7946 0958")
        '+442079460958'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def format_spoken_date(day: date) -> str:
    """Render a date the way it should be read out on a call.

    >>> format_spoken_date(date(2026, 10, 20))
    'Tuesday, October 20, 2026'
    """
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


def format_spoken_time(value: str) -> str:
    """Render an ``HH:MM`` slot as a 12-hour clock time.

    >>> format_spoken_time("14:30")
    '2:30 PM'
    >>> format_spoken_time("09:00")
    '9:00 AM'
    """
    parsed = datetime.strptime(value, "%H:%M")
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{hour}:{parsed.minute:02d} {suffix}"


def minutes_since_midnight(value: str) -> int:
    """Convert an ``HH:MM`` slot into minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)
