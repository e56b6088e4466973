"""
Candidate slot generation from the weekly availability configuration.

Pure domain logic: no calendar access, no I/O.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, List

from .clock import day_of_week, to_instant
from .models import CandidateSlot

if TYPE_CHECKING:
    from ..config import MeetingType, WeeklyAvailability

logger = logging.getLogger(__name__)

SLOT_INTERVAL_MINUTES = 15


class SlotGenerator:
    """
    Produces regularly spaced candidate slots for one civil date.

    Algorithm:
    1. Look up the weekly window for the date's weekday (none -> no slots)
    2. Anchor the window's start and end to the base timezone on that date
    3. Step from the window start every 15 minutes, keeping each candidate
       whose end does not pass the window end, and stop at the first that does
    """

    def __init__(
        self,
        availability: WeeklyAvailability,
        timezone: str,
        interval_minutes: int = SLOT_INTERVAL_MINUTES,
    ):
        self.availability = availability
        self.timezone = timezone
        self.interval = timedelta(minutes=interval_minutes)

    def window_for(self, civil_date: date) -> CandidateSlot | None:
        """Return the absolute availability window for a date, if any."""
        window = self.availability.for_day(day_of_week(civil_date))
        if window is None:
            return None

        return CandidateSlot(
            start=to_instant(civil_date, window.start, self.timezone),
            end=to_instant(civil_date, window.end, self.timezone),
        )

    def generate(self, civil_date: date, meeting_type: MeetingType) -> List[CandidateSlot]:
        """
        Generate all candidate slots for ``civil_date``.

        Returns:
            Candidates in ascending start order; empty when the day is closed
            or the meeting is longer than the window.
        """
        window = self.window_for(civil_date)
        if window is None:
            logger.debug("No availability configured for %s", civil_date)
            return []

        duration = timedelta(minutes=meeting_type.duration_minutes)
        candidates: List[CandidateSlot] = []
        slot_start = window.start

        while True:
            slot_end = slot_start + duration
            if slot_end > window.end:
                break
            candidates.append(CandidateSlot(start=slot_start, end=slot_end))
            slot_start = slot_start + self.interval

        return candidates
