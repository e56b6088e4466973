"""
Tests for the Google Calendar adapters with ``requests`` patched out.
"""

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor

import pendulum
import pytest
import requests

from meetbook.adapters.google_authenticator import GoogleAuthenticator
from meetbook.adapters.google_calendar_client import GoogleCalendarClient, extract_meet_link
from meetbook.domain.exceptions import AuthenticationError, CalendarAPIError


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class FakeAuthenticator:
    """Hands out ``access-token`` and then ``refreshed-token`` after a forced refresh."""

    def __init__(self):
        self.token = "access-token"
        self.refreshes = 0

    def get_access_token(self, force_refresh=False):
        if force_refresh:
            self.refreshes += 1
            self.token = "refreshed-token"
        return self.token

    def clear_cache(self):
        pass


class FakeTransport:
    """Replays queued responses for ``requests.request`` and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _client(**kwargs) -> GoogleCalendarClient:
    return GoogleCalendarClient(
        authenticator=FakeAuthenticator(),
        timezone="America/Los_Angeles",
        owner_email="host@example.com",
        link_poll_interval=0,
        **kwargs,
    )


def _query(client):
    return asyncio.run(
        client.query_busy_periods(
            pendulum.datetime(2026, 11, 2, 8, tz="UTC"),
            pendulum.datetime(2026, 11, 3, 8, tz="UTC"),
        )
    )


def _create(client):
    return asyncio.run(
        client.create_event(
            summary="Meeting with Ada",
            description="Meeting with Ada",
            start=pendulum.datetime(2026, 11, 2, 17, tz="UTC"),
            end=pendulum.datetime(2026, 11, 2, 17, 30, tz="UTC"),
            attendee_email="ada@example.com",
        )
    )


class TestQueryBusyPeriods:
    def test_parses_busy_periods(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(
                payload={
                    "calendars": {
                        "primary": {
                            "busy": [
                                {"start": "2026-11-02T18:00:00Z", "end": "2026-11-02T18:30:00Z"},
                                {"start": "2026-11-02T12:00:00-08:00", "end": "2026-11-02T13:00:00-08:00"},
                            ]
                        }
                    }
                }
            )
        )
        monkeypatch.setattr(requests, "request", transport)

        busy = _query(_client())

        assert len(busy) == 2
        assert busy[0].start == pendulum.datetime(2026, 11, 2, 18, tz="UTC")
        assert busy[1].end == pendulum.datetime(2026, 11, 2, 21, tz="UTC")

        call = transport.calls[0]
        assert call["method"] == "POST"
        assert call["url"].endswith("/freeBusy")
        assert call["headers"]["Authorization"] == "Bearer access-token"
        assert call["json"] == {
            "timeMin": "2026-11-02T08:00:00.000Z",
            "timeMax": "2026-11-03T08:00:00.000Z",
            "timeZone": "America/Los_Angeles",
            "items": [{"id": "primary"}],
        }

    def test_calendar_error_entry_is_not_treated_as_free(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(payload={"calendars": {"primary": {"busy": [], "errors": [{"reason": "notFound"}]}}})
        )
        monkeypatch.setattr(requests, "request", transport)

        with pytest.raises(CalendarAPIError, match="notFound"):
            _query(_client())

    def test_missing_calendar_in_response(self, monkeypatch):
        monkeypatch.setattr(requests, "request", FakeTransport(FakeResponse(payload={"calendars": {}})))

        with pytest.raises(CalendarAPIError):
            _query(_client())

    def test_unauthorized_after_refresh_raises_authentication_error(self, monkeypatch):
        transport = FakeTransport(FakeResponse(status_code=401))
        monkeypatch.setattr(requests, "request", transport)

        with pytest.raises(AuthenticationError):
            _query(_client())

        assert [call["headers"]["Authorization"] for call in transport.calls] == [
            "Bearer access-token",
            "Bearer refreshed-token",
        ]

    def test_revoked_token_is_refreshed_once(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(status_code=401),
            FakeResponse(payload={"calendars": {"primary": {"busy": []}}}),
        )
        monkeypatch.setattr(requests, "request", transport)
        client = _client()

        assert _query(client) == []
        assert _query(client) == []

        assert client.authenticator.refreshes == 1
        assert [call["headers"]["Authorization"] for call in transport.calls] == [
            "Bearer access-token",
            "Bearer refreshed-token",
            "Bearer refreshed-token",
        ]

    def test_server_error_is_transient(self, monkeypatch):
        monkeypatch.setattr(requests, "request", FakeTransport(FakeResponse(status_code=503)))

        with pytest.raises(CalendarAPIError) as excinfo:
            _query(_client())

        assert not isinstance(excinfo.value, AuthenticationError)

    def test_network_error_is_transient(self, monkeypatch):
        monkeypatch.setattr(
            requests, "request", FakeTransport(requests.exceptions.ConnectionError("unreachable"))
        )

        with pytest.raises(CalendarAPIError):
            _query(_client())


class TestCreateEvent:
    def test_event_body_and_immediate_link(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(payload={"id": "evt1", "hangoutLink": "https://meet.google.com/aaa-bbbb-ccc"})
        )
        monkeypatch.setattr(requests, "request", transport)

        event_id, meet_link = _create(_client())

        assert (event_id, meet_link) == ("evt1", "https://meet.google.com/aaa-bbbb-ccc")
        call = transport.calls[0]
        assert call["url"].endswith("/calendars/primary/events")
        assert call["params"] == {"conferenceDataVersion": 1, "sendUpdates": "all"}
        body = call["json"]
        assert body["attendees"] == [
            {"email": "host@example.com", "responseStatus": "accepted"},
            {"email": "ada@example.com"},
        ]
        assert body["start"] == {"dateTime": "2026-11-02T17:00:00.000Z", "timeZone": "America/Los_Angeles"}
        assert body["conferenceData"]["createRequest"]["conferenceSolutionKey"] == {"type": "hangoutsMeet"}
        assert body["conferenceData"]["createRequest"]["requestId"].startswith("meet-")

    def test_polls_until_link_appears(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(payload={"id": "evt1"}),
            FakeResponse(payload={"id": "evt1"}),
            FakeResponse(
                payload={"id": "evt1", "conferenceData": {"entryPoints": [{"uri": "https://meet.google.com/x"}]}}
            ),
        )
        monkeypatch.setattr(requests, "request", transport)

        event_id, meet_link = _create(_client())

        assert meet_link == "https://meet.google.com/x"
        assert [call["method"] for call in transport.calls] == ["POST", "GET", "GET"]

    def test_gives_up_after_bounded_attempts(self, monkeypatch):
        transport = FakeTransport(
            FakeResponse(payload={"id": "evt1"}),
            FakeResponse(status_code=500),
            FakeResponse(payload={"id": "evt1"}),
        )
        monkeypatch.setattr(requests, "request", transport)

        event_id, meet_link = _create(_client(link_poll_attempts=3))

        assert (event_id, meet_link) == ("evt1", "")
        assert len(transport.calls) == 4

    def test_missing_event_id_fails(self, monkeypatch):
        monkeypatch.setattr(requests, "request", FakeTransport(FakeResponse(payload={})))

        with pytest.raises(CalendarAPIError, match="no event ID"):
            _create(_client())


def test_extract_meet_link_prefers_hangout_link():
    event = {
        "hangoutLink": "https://meet.google.com/first",
        "conferenceData": {"entryPoints": [{"uri": "https://meet.google.com/second"}]},
    }

    assert extract_meet_link(event) == "https://meet.google.com/first"
    assert extract_meet_link({}) == ""


class TestGoogleAuthenticator:
    def test_missing_credentials(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("token endpoint must not be called")

        monkeypatch.setattr(requests, "post", fail)

        with pytest.raises(AuthenticationError):
            GoogleAuthenticator("", "", "").get_access_token()

    def test_invalid_grant(self, monkeypatch):
        monkeypatch.setattr(
            requests, "post", lambda *a, **kw: FakeResponse(status_code=400, payload={"error": "invalid_grant"})
        )

        with pytest.raises(AuthenticationError, match="expired"):
            GoogleAuthenticator("id", "secret", "refresh").get_access_token()

    def test_token_is_reused_until_expiry(self, monkeypatch):
        calls = []

        def post(url, data, timeout):
            calls.append(data)
            return FakeResponse(payload={"access_token": f"token-{len(calls)}", "expires_in": 3599})

        monkeypatch.setattr(requests, "post", post)
        authenticator = GoogleAuthenticator("id", "secret", "refresh")

        assert authenticator.get_access_token() == "token-1"
        assert authenticator.get_access_token() == "token-1"
        assert authenticator.get_access_token(force_refresh=True) == "token-2"
        assert calls[0]["grant_type"] == "refresh_token"
        assert calls[0]["refresh_token"] == "refresh"

    def test_concurrent_callers_share_one_refresh(self, monkeypatch):
        calls = []

        def post(url, data, timeout):
            calls.append(data)
            time.sleep(0.05)
            return FakeResponse(payload={"access_token": "token", "expires_in": 3599})

        monkeypatch.setattr(requests, "post", post)
        authenticator = GoogleAuthenticator("id", "secret", "refresh")

        with ThreadPoolExecutor(max_workers=4) as pool:
            tokens = list(pool.map(lambda _: authenticator.get_access_token(), range(4)))

        assert tokens == ["token"] * 4
        assert len(calls) == 1
