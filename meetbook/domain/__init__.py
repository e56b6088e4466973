"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_filter import AvailabilityFilter, is_slot_busy
from .models import BookingRequest, BookingResult, BookingStatus, TimeRange, TimeSlot
from .slot_generator import SlotGenerator

__all__ = [
    "AvailabilityFilter",
    "BookingRequest",
    "BookingResult",
    "BookingStatus",
    "SlotGenerator",
    "TimeRange",
    "TimeSlot",
    "is_slot_busy",
]
