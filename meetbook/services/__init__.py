"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, SlotsResponse
from .booking import BookingReconciler, BookingService
from .gateway import CalendarGatewayProtocol

__all__ = [
    "AvailabilityService",
    "BookingReconciler",
    "BookingService",
    "CalendarGatewayProtocol",
    "SlotsResponse",
]
