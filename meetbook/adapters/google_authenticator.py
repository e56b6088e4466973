"""
Google OAuth access-token retrieval from a stored refresh token.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, CalendarAPIError

logger = logging.getLogger(__name__)


class GoogleAuthenticator:
    """
    Exchanges a long-lived refresh token for short-lived access tokens.

    The refresh token itself is obtained once, out of band, with Google's
    consent screen; this class only performs the refresh grant.
    """

    TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

    # Refresh this long before the token actually expires
    EXPIRY_MARGIN_SECONDS = 60

    def __init__(self, client_id: str, client_secret: str, refresh_token: str):
        """
        Initialize the authenticator.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            refresh_token: Refresh token granted for the calendar scope
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self._access_token: Optional[str] = None
        self._expires_at: Optional[DateTime] = None
        # Calendar calls run in worker threads and may ask for a token at once
        self._lock = threading.Lock()

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        Get a valid access token, reusing the current one until it expires.

        Raises:
            AuthenticationError: If credentials are missing or were rejected
            CalendarAPIError: If the token endpoint could not be reached
        """
        with self._lock:
            if (
                not force_refresh
                and self._access_token
                and self._expires_at is not None
                and pendulum.now("UTC") < self._expires_at
            ):
                return self._access_token

            return self._refresh()

    def _refresh(self) -> str:
        if not (self.client_id and self.client_secret and self.refresh_token):
            raise AuthenticationError(
                "Missing Google OAuth credentials. Set GOOGLE_CLIENT_ID, "
                "GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN."
            )

        try:
            response = requests.post(
                self.TOKEN_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": self.refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=30,
            )
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to reach Google token endpoint: {e}") from e

        if response.status_code in (400, 401):
            error = _error_code(response)
            logger.error("Google token refresh rejected: %s", error)
            raise AuthenticationError(
                "Google Calendar authentication expired. Please re-run the OAuth setup."
            )

        try:
            response.raise_for_status()
            data = response.json()
            token = data["access_token"]
        except (requests.exceptions.RequestException, ValueError, KeyError) as e:
            raise CalendarAPIError(f"Unexpected response from Google token endpoint: {e}") from e

        expires_in = int(data.get("expires_in", 3600))
        self._access_token = token
        self._expires_at = pendulum.now("UTC").add(
            seconds=max(expires_in - self.EXPIRY_MARGIN_SECONDS, 0)
        )
        logger.debug("Obtained Google access token valid for %ss", expires_in)

        return token

    def clear_cache(self) -> None:
        """Forget the current access token."""
        with self._lock:
            self._access_token = None
            self._expires_at = None


def _error_code(response: requests.Response) -> str:
    try:
        return response.json().get("error", "unknown_error")
    except ValueError:
        return "unknown_error"
