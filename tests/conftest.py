"""
Shared fixtures.

Reference week: Monday 2026-11-02 in America/Los_Angeles (PST, UTC-8).
Daylight saving time ends on Sunday 2026-11-01.
"""

import pendulum
import pytest

from meetbook.config import AppConfig

HOST_TZ = "America/Los_Angeles"

WEEKDAY_HOURS = {"start": "09:00", "end": "17:00"}


def build_config(**overrides) -> AppConfig:
    data = {
        "timezone": HOST_TZ,
        "availability": {
            "sunday": None,
            "monday": WEEKDAY_HOURS,
            "tuesday": WEEKDAY_HOURS,
            "wednesday": WEEKDAY_HOURS,
            "thursday": WEEKDAY_HOURS,
            "friday": WEEKDAY_HOURS,
            "saturday": None,
        },
        "meeting_types": [
            {
                "slug": "15",
                "title": "15 Minutes",
                "duration_minutes": 15,
                "buffer_minutes": 15,
                "min_notice_hours": 2,
            },
            {
                "slug": "30",
                "title": "30 Minutes",
                "duration_minutes": 30,
                "buffer_minutes": 15,
                "min_notice_hours": 4,
            },
            {
                "slug": "60",
                "title": "60 Minutes",
                "duration_minutes": 60,
                "buffer_minutes": 15,
                "min_notice_hours": 4,
            },
        ],
        "max_booking_days": 30,
        "google": {"calendar_id": "primary", "owner_email": "host@example.com"},
    }
    data.update(overrides)
    return AppConfig(**data)


@pytest.fixture
def config() -> AppConfig:
    return build_config()


@pytest.fixture
def monday():
    return pendulum.date(2026, 11, 2)


def local(value: str):
    """Parse a wall-clock time in the host timezone."""
    return pendulum.parse(value, tz=HOST_TZ)
