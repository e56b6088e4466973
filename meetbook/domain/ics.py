"""
iCalendar export for confirmed bookings.
"""

import uuid
from typing import Optional

import pendulum
from pendulum import DateTime

PRODUCT_ID = "-//meetbook//Meeting//EN"


def _format_ics_instant(instant: DateTime) -> str:
    return instant.in_timezone("UTC").format("YYYYMMDD[T]HHmmss[Z]")


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def build_ics(
    title: str,
    description: str,
    start: DateTime,
    end: DateTime,
    location: Optional[str] = None,
    uid: Optional[str] = None,
) -> str:
    """Build a single-event VCALENDAR document with CRLF line endings."""
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid or uuid.uuid4().hex + '@meetbook'}",
        f"DTSTAMP:{_format_ics_instant(pendulum.now('UTC'))}",
        f"DTSTART:{_format_ics_instant(start)}",
        f"DTEND:{_format_ics_instant(end)}",
        f"SUMMARY:{_escape(title)}",
        f"DESCRIPTION:{_escape(description)}",
    ]

    if location:
        lines.append(f"LOCATION:{_escape(location)}")

    lines.extend(["END:VEVENT", "END:VCALENDAR"])

    return "\r\n".join(lines) + "\r\n"
