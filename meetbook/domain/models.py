"""
Domain models for slots, busy periods and booking outcomes.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict

from pendulum import DateTime


def to_iso(instant: DateTime) -> str:
    """Render an instant as a UTC ISO-8601 string with millisecond precision."""
    utc = instant.in_timezone("UTC")
    return utc.format("YYYY-MM-DD[T]HH:mm:ss.SSS[Z]")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Both bounds are stored in UTC. Two aware datetimes sharing a zone compare
    by wall clock and ignore the fold, which breaks ordering across a DST
    fall-back.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        object.__setattr__(self, "start", self.start.in_timezone("UTC"))
        object.__setattr__(self, "end", self.end.in_timezone("UTC"))
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def expand(self, minutes: int) -> "TimeRange":
        """Widen the range by ``minutes`` on both sides."""
        margin = timedelta(minutes=minutes)
        return TimeRange(start=self.start - margin, end=self.end + margin)

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')} UTC"


# A candidate slot and a busy period are both plain time ranges; the aliases
# keep call sites readable.
CandidateSlot = TimeRange
BusyPeriod = TimeRange


@dataclass(frozen=True)
class TimeSlot:
    """A bookable slot as returned to callers."""
    start_time: DateTime
    end_time: DateTime

    @classmethod
    def from_range(cls, time_range: TimeRange) -> "TimeSlot":
        return cls(start_time=time_range.start, end_time=time_range.end)

    def to_dict(self) -> Dict[str, str]:
        return {"startTime": to_iso(self.start_time), "endTime": to_iso(self.end_time)}

    def format_display(self, timezone: str) -> str:
        """Format the slot in the viewer's timezone, e.g. ``Mon 09:00 - 09:30``."""
        start = self.start_time.in_timezone(timezone)
        end = self.end_time.in_timezone(timezone)
        return f"{start.format('ddd HH:mm')} - {end.format('HH:mm')}"


@dataclass(frozen=True)
class DateAvailability:
    """Whether a calendar date can be offered for booking at all."""
    date: date
    day_of_week: int  # 0=Sunday
    available: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "available": self.available,
        }


@dataclass(frozen=True)
class BookingRequest:
    """A validated booking request; consumed once by the reconciler."""
    meeting_type_slug: str
    start_time: DateTime
    guest_name: str
    guest_email: str
    guest_timezone: str
    notes: str = ""

    def describe(self) -> str:
        """Build the calendar event description for this booking."""
        parts = [
            f"Meeting with {self.guest_name}",
            f"Email: {self.guest_email}",
            f"Timezone: {self.guest_timezone}",
        ]
        if self.notes.strip():
            parts.append(f"\nNotes:\n{self.notes.strip()}")
        return "\n".join(parts)


class BookingStatus(str, Enum):
    """Terminal outcome of a booking attempt."""
    CREATED = "created"
    INVALID = "invalid"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    BookingStatus.CREATED: 200,
    BookingStatus.INVALID: 400,
    BookingStatus.CONFLICT: 409,
    BookingStatus.UNAVAILABLE: 503,
    BookingStatus.FAILED: 500,
}


@dataclass(frozen=True)
class BookingResult:
    """Outcome of a booking submission."""
    status: BookingStatus
    event_id: str | None = None
    meet_link: str | None = None
    start_time: DateTime | None = None
    end_time: DateTime | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status is BookingStatus.CREATED

    @classmethod
    def rejected(cls, status: BookingStatus, error: str) -> "BookingResult":
        return cls(status=status, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the booking submission response shape."""
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "eventId": self.event_id,
            "meetLink": self.meet_link or "",
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
        }
