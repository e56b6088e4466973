"""
Civil date and base-timezone helpers.

Every conversion from a wall-clock time in the host's base timezone to an
absolute instant goes through ``to_instant`` so that slot generation and
date-window checks agree on DST handling.
"""

import re
from datetime import date, time

import pendulum
from pendulum import DateTime

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_instant(civil_date: date, time_of_day: time, timezone: str) -> DateTime:
    """Anchor a wall-clock time on a civil date to the given timezone."""
    return pendulum.datetime(
        civil_date.year,
        civil_date.month,
        civil_date.day,
        time_of_day.hour,
        time_of_day.minute,
        tz=timezone,
    )


def day_bounds(civil_date: date, timezone: str) -> tuple[DateTime, DateTime]:
    """Return the first and last instant (in UTC) of a civil date in ``timezone``."""
    start = to_instant(civil_date, time(0, 0), timezone)
    return start.in_timezone("UTC"), start.end_of("day").in_timezone("UTC")


def day_of_week(civil_date: date) -> int:
    """Day of week with Sunday=0 through Saturday=6."""
    return civil_date.isoweekday() % 7


def parse_civil_date(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the string is not in that format or is not a real date
    """
    if not DATE_PATTERN.match(value or ""):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    year, month, day = (int(part) for part in value.split("-"))
    return date(year, month, day)


def is_valid_timezone(name: str) -> bool:
    """Check whether ``name`` is a known IANA timezone."""
    if not name:
        return False
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError):
        return False
    return True
