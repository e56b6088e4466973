"""
Application service for listing bookable slots.

The service fetches busy periods through the calendar gateway and delegates
slot generation and filtering to the domain layer. Busy periods are queried
fresh on every call; nothing is cached between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Mapping

import pendulum
from pendulum import DateTime

from ..config import AppConfig, MeetingType
from ..domain.availability_filter import AvailabilityFilter
from ..domain.clock import day_bounds, day_of_week
from ..domain.exceptions import BookingValidationError
from ..domain.models import DateAvailability, TimeSlot
from ..domain.slot_generator import SlotGenerator
from .gateway import CalendarGatewayProtocol
from .validation import SlotQuery, parse_input

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]


def utc_now() -> DateTime:
    return pendulum.now("UTC")


@dataclass(frozen=True)
class SlotsResponse:
    """Result of a slot query."""
    date: date
    timezone: str
    meeting_type: MeetingType
    slots: List[TimeSlot]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "timezone": self.timezone,
            "meetingType": self.meeting_type.to_dict(),
            "slots": [slot.to_dict() for slot in self.slots],
        }


class AvailabilityService:
    """
    Orchestrates busy-time retrieval and slot calculation for one host.

    Dependency inversion toward a protocol makes it easy to plug in the
    Google Calendar adapter or the mock implementation in tests.
    """

    def __init__(
        self,
        config: AppConfig,
        calendar_client: CalendarGatewayProtocol,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._calendar_client = calendar_client
        self._clock = clock
        self._generator = SlotGenerator(config.availability, config.timezone)
        self._filter = AvailabilityFilter()

    def resolve_meeting_type(self, slug: str) -> MeetingType:
        """
        Look up a meeting type by slug.

        Raises:
            BookingValidationError: If the slug is unknown
        """
        meeting_type = self._config.get_meeting_type(slug)
        if meeting_type is None:
            raise BookingValidationError(f"Unknown meeting type: {slug}")
        return meeting_type

    async def query_slots(self, params: Mapping[str, Any]) -> SlotsResponse:
        """
        Answer a slot query ``{meetingType, date, timezone}``.

        Input problems raise ``BookingValidationError`` before the calendar is
        contacted; calendar failures propagate unchanged.
        """
        query = parse_input(SlotQuery, params)
        meeting_type = self.resolve_meeting_type(query.meeting_type)

        slots = await self.get_available_slots(query.civil_date, meeting_type)

        return SlotsResponse(
            date=query.civil_date,
            timezone=query.timezone or self._config.timezone,
            meeting_type=meeting_type,
            slots=slots,
        )

    async def get_available_slots(
        self,
        civil_date: date,
        meeting_type: MeetingType,
    ) -> List[TimeSlot]:
        """Generate candidates for ``civil_date`` and keep the bookable ones."""
        candidates = self._generator.generate(civil_date, meeting_type)
        if not candidates:
            return []

        day_start, day_end = day_bounds(civil_date, self._config.timezone)
        busy_periods = await self._calendar_client.query_busy_periods(day_start, day_end)

        available = self._filter.apply(
            candidates,
            meeting_type=meeting_type,
            now=self._clock(),
            busy_periods=busy_periods,
        )
        logger.debug(
            "%s on %s: %d candidates, %d busy periods, %d available",
            meeting_type.slug,
            civil_date,
            len(candidates),
            len(busy_periods),
            len(available),
        )

        return [TimeSlot.from_range(slot) for slot in available]

    def has_availability_config(self, civil_date: date) -> bool:
        """Check whether the weekly hours open on this date's weekday."""
        return self._config.availability.for_day(day_of_week(civil_date)) is not None

    def is_date_bookable(self, civil_date: date) -> bool:
        """
        Check a date against the booking window without calling the calendar.

        A date is bookable if it has not ended yet, does not start beyond
        ``max_booking_days`` from now, and has configured hours.
        """
        now = self._clock()
        day_start, day_end = day_bounds(civil_date, self._config.timezone)

        if day_end < now:
            return False
        if day_start > now + timedelta(days=self._config.max_booking_days):
            return False

        return self.has_availability_config(civil_date)

    def date_availability(
        self,
        start_date: date,
        num_days: int,
        meeting_type_slug: str,
    ) -> List[DateAvailability]:
        """
        Report, for ``num_days`` consecutive dates, whether each can be offered.

        Used for calendar display; the remote calendar is not consulted.
        """
        self.resolve_meeting_type(meeting_type_slug)

        results: List[DateAvailability] = []
        for offset in range(num_days):
            current = start_date + timedelta(days=offset)
            results.append(
                DateAvailability(
                    date=current,
                    day_of_week=day_of_week(current),
                    available=self.is_date_bookable(current),
                )
            )

        return results
