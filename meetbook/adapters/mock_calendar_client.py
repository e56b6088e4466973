"""
Mock calendar gateway for running without Google credentials.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Tuple

import pendulum
from pendulum import DateTime

from ..domain.models import BusyPeriod

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that serves busy periods from a JSON file.

    Events created through the mock are added to its busy periods, so a
    second booking of the same slot is detected as a conflict.
    """

    def __init__(self, timezone: str = "UTC", data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            timezone: Timezone assumed for busy entries without an offset
            data_file: JSON list of ``{"start": ..., "end": ...}`` entries
        """
        self.timezone = timezone
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.busy_periods: List[BusyPeriod] = self._load_calendar_data()
        self.created_events: List[Dict[str, object]] = []
        self.busy_queries: List[Tuple[DateTime, DateTime]] = []

    def _load_calendar_data(self) -> List[BusyPeriod]:
        """Load mock busy periods from the JSON file."""
        if not self.data_file.exists():
            return []

        with open(self.data_file, "r", encoding="utf-8") as f:
            entries = json.load(f)

        busy_periods: List[BusyPeriod] = []
        for entry in entries:
            start = pendulum.parse(entry["start"], tz=self.timezone).in_timezone("UTC")
            end = pendulum.parse(entry["end"], tz=self.timezone).in_timezone("UTC")
            if end <= start:
                logger.warning("Skipping empty busy period %s - %s", start, end)
                continue
            busy_periods.append(BusyPeriod(start=start, end=end))

        return busy_periods

    async def query_busy_periods(
        self,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusyPeriod]:
        """Return the busy periods that overlap the requested window."""
        self.busy_queries.append((range_start, range_end))
        return [
            busy for busy in self.busy_periods
            if busy.start < range_end and busy.end > range_start
        ]

    async def create_event(
        self,
        *,
        summary: str,
        description: str,
        start: DateTime,
        end: DateTime,
        attendee_email: str,
    ) -> Tuple[str, str]:
        """Record the event and mark its time as busy."""
        event_id = uuid.uuid4().hex
        meet_link = f"https://meet.google.com/mock-{event_id[:10]}"

        self.created_events.append(
            {
                "id": event_id,
                "summary": summary,
                "description": description,
                "start": start,
                "end": end,
                "attendee_email": attendee_email,
                "meet_link": meet_link,
            }
        )
        self.busy_periods.append(BusyPeriod(start=start, end=end))

        return event_id, meet_link

    def test_connection(self) -> Dict[str, str]:
        """Mock connection test."""
        return {"id": "mock-calendar", "summary": "Mock Calendar", "timeZone": self.timezone}
