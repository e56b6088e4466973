"""
Booking submission and the final free-slot recheck before calendar writes.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Mapping, Tuple

from ..config import AppConfig, MeetingType
from ..domain.exceptions import (
    AuthenticationError,
    BookingValidationError,
    CalendarAPIError,
    SlotConflictError,
)
from ..domain.models import BookingRequest, BookingResult, BookingStatus
from .availability import Clock, utc_now
from .gateway import CalendarGatewayProtocol
from .validation import BookingPayload, parse_input

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "This time slot is no longer available. Please select another time."
UNAVAILABLE_MESSAGE = "Booking service temporarily unavailable. Please try again later."
FAILED_MESSAGE = "Failed to create booking. Please try again."


class BookingReconciler:
    """
    Confirms a slot is still free and then creates the calendar event.

    The recheck is a fresh query over exactly ``[start, end)``, without the
    meeting type's buffer. Two concurrent attempts can still both pass it;
    the remote calendar is the final arbiter.
    """

    def __init__(self, calendar_client: CalendarGatewayProtocol) -> None:
        self._calendar_client = calendar_client

    async def book(self, request: BookingRequest, meeting_type: MeetingType) -> BookingResult:
        """
        Run one booking attempt.

        Raises:
            SlotConflictError: If the calendar is busy during the slot
            AuthenticationError: If the calendar rejected the credentials
            CalendarAPIError: If the recheck or event creation failed
        """
        start = request.start_time
        end = start + timedelta(minutes=meeting_type.duration_minutes)

        busy_periods = await self._calendar_client.query_busy_periods(start, end)
        if busy_periods:
            raise SlotConflictError(f"Slot {start} - {end} is no longer free")

        event_id, meet_link = await self._calendar_client.create_event(
            summary=f"Meeting with {request.guest_name}",
            description=request.describe(),
            start=start,
            end=end,
            attendee_email=request.guest_email,
        )
        logger.info("Created event %s for %s at %s", event_id, meeting_type.slug, start)

        return BookingResult(
            status=BookingStatus.CREATED,
            event_id=event_id,
            meet_link=meet_link or "",
            start_time=start,
            end_time=end,
        )


class BookingService:
    """Validates booking submissions and maps every outcome to a result."""

    def __init__(
        self,
        config: AppConfig,
        calendar_client: CalendarGatewayProtocol,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._reconciler = BookingReconciler(calendar_client)

    def validate(self, payload: Mapping[str, Any]) -> Tuple[BookingRequest, MeetingType]:
        """
        Turn raw input into a booking request.

        Raises:
            BookingValidationError: If a field is missing or invalid, the
                meeting type is unknown, or the start time has passed
        """
        fields = parse_input(BookingPayload, payload)

        meeting_type = self._config.get_meeting_type(fields.meeting_type)
        if meeting_type is None:
            raise BookingValidationError(f"Unknown meeting type: {fields.meeting_type}")

        if fields.start_time < self._clock():
            raise BookingValidationError("Cannot book a time in the past")

        request = BookingRequest(
            meeting_type_slug=meeting_type.slug,
            start_time=fields.start_time,
            guest_name=fields.guest_name,
            guest_email=fields.guest_email,
            guest_timezone=fields.guest_timezone,
            notes=fields.notes,
        )
        return request, meeting_type

    async def submit(self, payload: Mapping[str, Any]) -> BookingResult:
        """
        Validate and book. Never raises for per-request failures; the
        outcome is carried in ``BookingResult.status``.
        """
        try:
            request, meeting_type = self.validate(payload)
        except BookingValidationError as e:
            return BookingResult.rejected(BookingStatus.INVALID, str(e))

        try:
            return await self._reconciler.book(request, meeting_type)
        except SlotConflictError as e:
            logger.info("Booking conflict: %s", e)
            return BookingResult.rejected(BookingStatus.CONFLICT, CONFLICT_MESSAGE)
        except AuthenticationError as e:
            logger.error("Calendar authentication failed while booking: %s", e)
            return BookingResult.rejected(BookingStatus.UNAVAILABLE, UNAVAILABLE_MESSAGE)
        except CalendarAPIError:
            logger.exception("Error creating booking")
            return BookingResult.rejected(BookingStatus.FAILED, FAILED_MESSAGE)
