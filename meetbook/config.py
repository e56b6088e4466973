"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time
from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .domain.clock import is_valid_timezone

WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

GOOGLE_ENV_VARS = {
    "client_id": "GOOGLE_CLIENT_ID",
    "client_secret": "GOOGLE_CLIENT_SECRET",
    "refresh_token": "GOOGLE_REFRESH_TOKEN",
    "calendar_id": "GOOGLE_CALENDAR_ID",
    "owner_email": "OWNER_EMAIL",
}


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


class AvailabilityWindow(BaseModel):
    """A daily window in the host's base timezone, e.g. 09:00 - 17:00."""
    model_config = ConfigDict(frozen=True)

    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_clock_time(cls, value):
        """Accept ``"HH:MM"`` strings as written in YAML."""
        if isinstance(value, str):
            try:
                hour, minute = (int(part) for part in value.split(":"))
                return time(hour=hour, minute=minute)
            except ValueError as exc:
                raise ValueError(f"Expected HH:MM, got {value!r}") from exc
        if isinstance(value, int) and not isinstance(value, bool):
            # Unquoted 17:00 is read by YAML 1.1 as a base-60 integer (1020).
            hour, minute = divmod(value, 60)
            return time(hour=hour, minute=minute)
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindow":
        """Ensure the window opens before it closes."""
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        return self

    def window_minutes(self) -> int:
        return (self.end.hour * 60 + self.end.minute) - (self.start.hour * 60 + self.start.minute)


class WeeklyAvailability(BaseModel):
    """Recurring weekly hours; ``None`` means closed all day."""
    model_config = ConfigDict(frozen=True)

    sunday: AvailabilityWindow | None = None
    monday: AvailabilityWindow | None = None
    tuesday: AvailabilityWindow | None = None
    wednesday: AvailabilityWindow | None = None
    thursday: AvailabilityWindow | None = None
    friday: AvailabilityWindow | None = None
    saturday: AvailabilityWindow | None = None

    def for_day(self, day_of_week: int) -> AvailabilityWindow | None:
        """Get the window for a day of week (0 = Sunday)."""
        return getattr(self, WEEKDAYS[day_of_week])


class MeetingType(BaseModel):
    """A bookable meeting type."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    slug: str
    title: str
    description: str = ""
    duration_minutes: int
    buffer_minutes: int = 0
    min_notice_hours: float = 0
    color: str = "#3b82f6"

    @field_validator("slug", mode="before")
    @classmethod
    def validate_slug(cls, value) -> str:
        # slug: 30 in YAML arrives as an int
        slug = str(value).strip() if value is not None else ""
        if not slug:
            raise ValueError("slug must not be empty")
        return slug

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure meeting duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("buffer_minutes", "min_notice_hours")
    @classmethod
    def validate_non_negative(cls, value):
        if value < 0:
            raise ValueError("must not be negative")
        return value

    def to_dict(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True)


class OwnerConfig(BaseModel):
    """Host profile."""
    model_config = ConfigDict(frozen=True)

    name: str = "Host"
    tagline: str = "Book a meeting with me"


class GoogleConfig(BaseModel):
    """Google Calendar credentials; blank values fall back to the environment."""
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(default_factory=lambda: _env("GOOGLE_CLIENT_ID"))
    client_secret: str = Field(default_factory=lambda: _env("GOOGLE_CLIENT_SECRET"))
    refresh_token: str = Field(default_factory=lambda: _env("GOOGLE_REFRESH_TOKEN"))
    calendar_id: str = Field(default_factory=lambda: _env("GOOGLE_CALENDAR_ID", "primary"))
    owner_email: str = Field(default_factory=lambda: _env("OWNER_EMAIL"))

    @field_validator("client_id", "client_secret", "refresh_token", "calendar_id", "owner_email", mode="before")
    @classmethod
    def fall_back_to_env(cls, value, info: ValidationInfo):
        """Treat blank YAML values like missing ones."""
        if value is None or value == "":
            default = "primary" if info.field_name == "calendar_id" else ""
            return _env(GOOGLE_ENV_VARS[info.field_name], default)
        return value


class AppConfig(BaseModel):
    """Application configuration. Built once at startup and never mutated."""
    model_config = ConfigDict(frozen=True)

    owner: OwnerConfig = Field(default_factory=OwnerConfig)
    timezone: str = "America/Los_Angeles"
    availability: WeeklyAvailability = Field(default_factory=WeeklyAvailability)
    meeting_types: List[MeetingType] = Field(default_factory=list)
    max_booking_days: int = 30
    google: GoogleConfig = Field(default_factory=GoogleConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("meeting_types")
    @classmethod
    def validate_meeting_types(cls, value: List[MeetingType]) -> List[MeetingType]:
        """Ensure meeting type slugs are unique."""
        seen: set[str] = set()
        for meeting_type in value:
            if meeting_type.slug in seen:
                raise ValueError(f"Duplicate meeting type slug detected: {meeting_type.slug}")
            seen.add(meeting_type.slug)
        return value

    @field_validator("max_booking_days")
    @classmethod
    def validate_max_booking_days(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_booking_days must not be negative")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def get_meeting_type(self, slug: str) -> MeetingType | None:
        """Find a meeting type by its slug."""
        for meeting_type in self.meeting_types:
            if meeting_type.slug == slug:
                return meeting_type
        return None


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
