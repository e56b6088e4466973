"""
Input models for slot queries and booking submissions.

Validation happens here, before any calendar call, and failures are reported
as ``BookingValidationError`` with a message suitable for the end user.
"""

import re
from datetime import date
from typing import Any, Mapping, Optional, Type, TypeVar

import pendulum
from pendulum import DateTime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.clock import is_valid_timezone, parse_civil_date
from ..domain.exceptions import BookingValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# A time of day followed by Z or a numeric offset
UTC_OFFSET_PATTERN = re.compile(r"[T ]\d{2}:\d{2}.*(Z|[+-]\d{2}(:?\d{2})?)$", re.IGNORECASE)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


class SlotQuery(BaseModel):
    """Parameters of a slot listing request."""
    model_config = ConfigDict(frozen=True)

    meeting_type: str = Field(validation_alias=AliasChoices("meetingType", "type", "meeting_type"))
    civil_date: date = Field(validation_alias=AliasChoices("date", "civil_date"))
    timezone: Optional[str] = None

    @field_validator("meeting_type")
    @classmethod
    def validate_meeting_type(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Missing required parameter: type")
        return value.strip()

    @field_validator("civil_date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> date:
        if isinstance(value, date):
            return value
        return parse_civil_date(value if isinstance(value, str) else "")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value or None


class BookingPayload(BaseModel):
    """Fields of a booking submission."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    meeting_type: str = Field(
        validation_alias=AliasChoices("meetingType", "meetingTypeSlug", "meeting_type")
    )
    start_time: DateTime = Field(validation_alias=AliasChoices("startTime", "start_time"))
    guest_name: str = Field(default="", validate_default=True, validation_alias=AliasChoices("guestName", "guest_name"))
    guest_email: str = Field(default="", validate_default=True, validation_alias=AliasChoices("guestEmail", "guest_email"))
    guest_timezone: str = Field(validation_alias=AliasChoices("guestTimezone", "guest_timezone"))
    notes: str = ""

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start_time(cls, value: Any) -> DateTime:
        if isinstance(value, DateTime):
            return value.in_timezone("UTC")
        if isinstance(value, str) and not UTC_OFFSET_PATTERN.search(value.strip()):
            raise ValueError(
                "Invalid startTime. Include a UTC offset, e.g. 2026-11-02T17:00:00Z"
            )
        try:
            parsed = pendulum.parse(value) if isinstance(value, str) else None
        except ValueError:
            parsed = None
        if not isinstance(parsed, DateTime):
            raise ValueError("Invalid startTime. Use an ISO-8601 date and time")
        return parsed.in_timezone("UTC")

    @field_validator("guest_name", "guest_email", "notes", mode="before")
    @classmethod
    def none_to_blank(cls, value: Any) -> Any:
        return _blank_if_none(value)

    @field_validator("guest_name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please enter your name")
        return value.strip()

    @field_validator("guest_email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value.strip()):
            raise ValueError("Please enter a valid email address")
        return value.strip()

    @field_validator("guest_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value


def parse_input(model: Type[ModelT], payload: Mapping[str, Any]) -> ModelT:
    """
    Validate ``payload`` against ``model``.

    Raises:
        BookingValidationError: With the first problem found
    """
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        raise BookingValidationError(_first_error_message(exc)) from exc


def _first_error_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))

    if error.get("type") == "missing":
        return f"Missing required field: {field}"

    message = error.get("msg", "Invalid input")
    # Messages from our own validators are prefixed by pydantic
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    return f"Invalid {field}: {message}"
