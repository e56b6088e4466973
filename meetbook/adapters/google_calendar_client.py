"""
Google Calendar v3 REST client for busy-time queries and event creation.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Tuple

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, CalendarAPIError
from ..domain.models import BusyPeriod, to_iso
from .google_authenticator import GoogleAuthenticator

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for the Google Calendar API.

    Uses ``freeBusy.query`` for busy periods and ``events.insert`` with a
    Google Meet conference request for bookings. Blocking HTTP calls run in a
    worker thread so the async service layer can serve requests concurrently.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(
        self,
        authenticator: GoogleAuthenticator,
        timezone: str,
        calendar_id: str = "primary",
        owner_email: str = "",
        link_poll_attempts: int = 5,
        link_poll_interval: float = 0.5,
    ):
        """
        Initialize the calendar client.

        Args:
            authenticator: Supplies access tokens
            timezone: Host base timezone used for queries and events
            calendar_id: Calendar to read and write
            owner_email: Added to each event as an accepted attendee
            link_poll_attempts: How many times to re-read an event for its Meet link
            link_poll_interval: Seconds to wait before each re-read
        """
        self.authenticator = authenticator
        self.timezone = timezone
        self.calendar_id = calendar_id
        self.owner_email = owner_email
        self.link_poll_attempts = link_poll_attempts
        self.link_poll_interval = link_poll_interval

    async def query_busy_periods(
        self,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusyPeriod]:
        """
        Get busy periods on the host calendar overlapping a time range.

        Raises:
            AuthenticationError: If the credentials were rejected
            CalendarAPIError: If the API call fails
        """
        payload = {
            "timeMin": to_iso(range_start),
            "timeMax": to_iso(range_end),
            "timeZone": self.timezone,
            "items": [{"id": self.calendar_id}],
        }
        data = await asyncio.to_thread(self._request, "POST", "/freeBusy", json=payload)

        return self._parse_free_busy_response(data)

    async def create_event(
        self,
        *,
        summary: str,
        description: str,
        start: DateTime,
        end: DateTime,
        attendee_email: str,
    ) -> Tuple[str, str]:
        """
        Create an event with a Google Meet conference.

        Returns:
            ``(event_id, meet_link)``; the link is empty if Google did not
            provision it within the polling window.

        Raises:
            AuthenticationError: If the credentials were rejected
            CalendarAPIError: If the event could not be created
        """
        attendees = [{"email": attendee_email}]
        if self.owner_email:
            attendees.insert(0, {"email": self.owner_email, "responseStatus": "accepted"})

        event = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": to_iso(start), "timeZone": self.timezone},
            "end": {"dateTime": to_iso(end), "timeZone": self.timezone},
            "attendees": attendees,
            "conferenceData": {
                "createRequest": {
                    "requestId": f"meet-{uuid.uuid4().hex}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                },
            },
            "reminders": {"useDefault": True},
        }

        data = await asyncio.to_thread(
            self._request,
            "POST",
            f"/calendars/{self.calendar_id}/events",
            json=event,
            params={"conferenceDataVersion": 1, "sendUpdates": "all"},
        )

        event_id = data.get("id")
        if not event_id:
            raise CalendarAPIError("Failed to create event: no event ID returned")

        meet_link = extract_meet_link(data)
        if not meet_link:
            meet_link = await self._wait_for_meet_link(event_id)

        return event_id, meet_link

    async def _wait_for_meet_link(self, event_id: str) -> str:
        """Re-read the event a bounded number of times until a Meet link appears."""
        for attempt in range(1, self.link_poll_attempts + 1):
            await asyncio.sleep(self.link_poll_interval)

            try:
                data = await asyncio.to_thread(
                    self._request, "GET", f"/calendars/{self.calendar_id}/events/{event_id}"
                )
            except CalendarAPIError as e:
                logger.debug("Meet link poll %d for %s failed: %s", attempt, event_id, e)
                continue

            meet_link = extract_meet_link(data)
            if meet_link:
                return meet_link

        logger.warning(
            "Meet link for event %s not available after %d attempts",
            event_id,
            self.link_poll_attempts,
        )
        return ""

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Send an authorized request and decode the JSON body.

        A 401 is retried once with a freshly refreshed access token.
        """
        response = self._send(method, path, self.authenticator.get_access_token(), **kwargs)

        if response.status_code == 401:
            logger.info("Access token rejected for %s %s, refreshing", method, path)
            self.authenticator.clear_cache()
            token = self.authenticator.get_access_token(force_refresh=True)
            response = self._send(method, path, token, **kwargs)

        if response.status_code == 401:
            logger.error("Google Calendar rejected the access token for %s %s", method, path)
            raise AuthenticationError(
                "Google Calendar authentication expired. Please re-run the OAuth setup."
            )

        try:
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise CalendarAPIError(f"Google Calendar request failed: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Google Calendar returned invalid JSON: {e}") from e

    def _send(self, method: str, path: str, access_token: str, **kwargs) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            return requests.request(
                method,
                f"{self.API_ENDPOINT}{path}",
                headers=headers,
                timeout=30,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Google Calendar request failed: {e}") from e

    def _parse_free_busy_response(self, response_data: Dict[str, Any]) -> List[BusyPeriod]:
        """
        Parse the freeBusy response into busy periods.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "2026-02-10T17:00:00Z", "end": "..."}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendar = response_data.get("calendars", {}).get(self.calendar_id)
        if calendar is None:
            raise CalendarAPIError(f"No free/busy data returned for calendar {self.calendar_id}")

        errors = calendar.get("errors")
        if errors:
            reasons = ", ".join(error.get("reason", "unknown") for error in errors)
            raise CalendarAPIError(f"Free/busy query failed for {self.calendar_id}: {reasons}")

        busy_periods: List[BusyPeriod] = []
        for item in calendar.get("busy", []):
            try:
                start = _parse_instant(item["start"])
                end = _parse_instant(item["end"])
            except (KeyError, ValueError) as e:
                raise CalendarAPIError(f"Could not parse busy period {item!r}: {e}") from e

            if end <= start:
                logger.warning("Skipping empty busy period %s - %s", start, end)
                continue

            busy_periods.append(BusyPeriod(start=start, end=end))

        return busy_periods

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and authentication by reading the calendar metadata.

        Raises:
            CalendarAPIError: If connection test fails
        """
        return self._request("GET", f"/calendars/{self.calendar_id}")


def extract_meet_link(event: Dict[str, Any]) -> str:
    """Return the Meet join link of an event resource, or an empty string."""
    link = event.get("hangoutLink")
    if link:
        return link

    entry_points = (event.get("conferenceData") or {}).get("entryPoints") or []
    if entry_points:
        return entry_points[0].get("uri", "") or ""

    return ""


def _parse_instant(value: str) -> DateTime:
    parsed = pendulum.parse(value)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed.in_timezone("UTC")
