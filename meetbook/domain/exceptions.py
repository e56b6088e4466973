"""
Domain-specific exception hierarchy for the booking engine.
"""


class MeetbookError(Exception):
    """Base class for all application-level errors."""


class BookingValidationError(MeetbookError):
    """Raised when caller input is missing or malformed."""


class SlotConflictError(MeetbookError):
    """Raised when a slot is no longer free at booking time."""


class CalendarAPIError(MeetbookError):
    """Raised when calendar data cannot be fetched, parsed or written."""


class AuthenticationError(CalendarAPIError):
    """Raised when the calendar credentials are missing, expired or revoked."""
