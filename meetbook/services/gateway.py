"""
Calendar gateway contract consumed by the availability and booking services.
"""

from __future__ import annotations

from typing import List, Protocol, Tuple

from pendulum import DateTime

from ..domain.models import BusyPeriod


class CalendarGatewayProtocol(Protocol):
    """Protocol describing the calendar behaviour needed by the services."""

    async def query_busy_periods(
        self,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusyPeriod]:
        """Return busy periods overlapping ``[range_start, range_end)``."""

    async def create_event(
        self,
        *,
        summary: str,
        description: str,
        start: DateTime,
        end: DateTime,
        attendee_email: str,
    ) -> Tuple[str, str]:
        """Create an event and return ``(event_id, meet_link)``."""
