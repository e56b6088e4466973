"""
Filtering of candidate slots against minimum notice and calendar busy time.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Iterable, List, Sequence

from pendulum import DateTime

from .models import BusyPeriod, CandidateSlot

if TYPE_CHECKING:
    from ..config import MeetingType


def is_slot_busy(
    slot: CandidateSlot,
    busy_periods: Iterable[BusyPeriod],
    buffer_minutes: int,
) -> bool:
    """
    Check whether ``slot``, widened by the buffer on both sides, intersects
    any busy period. Ranges are half-open, so a gap of exactly the buffer
    does not count as an overlap.
    """
    padded = slot.expand(buffer_minutes) if buffer_minutes else slot
    return any(padded.overlaps(busy) for busy in busy_periods)


class AvailabilityFilter:
    """Removes candidates that are too soon or that collide with busy time."""

    def apply(
        self,
        candidates: Sequence[CandidateSlot],
        meeting_type: MeetingType,
        now: DateTime,
        busy_periods: Sequence[BusyPeriod],
    ) -> List[CandidateSlot]:
        """
        Return the bookable subset of ``candidates``, preserving order.

        Args:
            candidates: Output of the slot generator for one date
            meeting_type: Provides the buffer and minimum notice
            now: The current instant
            busy_periods: Busy periods covering the whole date
        """
        earliest_start = now.in_timezone("UTC") + timedelta(hours=meeting_type.min_notice_hours)

        return [
            slot for slot in candidates
            if slot.start >= earliest_start
            and not is_slot_busy(slot, busy_periods, meeting_type.buffer_minutes)
        ]
