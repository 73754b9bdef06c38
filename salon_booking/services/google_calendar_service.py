"""
Google Calendar Service
Mirrors confirmed appointments into the salon's Google Calendar
"""

import logging
import time
from datetime import datetime
from typing import Optional

import httpx

from .. import config
from ..errors import CalendarUnavailable

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


class GoogleCalendarClient:
    """
    Create/delete timed events in one calendar using an offline refresh token.
    Access tokens are cached in memory until shortly before they expire.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        calendar_id: Optional[str] = None,
        timezone_name: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.client_id = client_id or config.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or config.GOOGLE_CLIENT_SECRET
        self.refresh_token = refresh_token or config.GOOGLE_REFRESH_TOKEN
        self.calendar_id = calendar_id or config.GOOGLE_CALENDAR_ID
        self.timezone_name = timezone_name or config.SALON_TIMEZONE
        self._transport = transport
        self._timeout = timeout
        self._access_token: Optional[str] = None
        self._access_token_expires_at = 0.0

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    async def get_access_token(self) -> str:
        """Return a valid access token, refreshing it when expired or about to expire"""
        if self._access_token and time.time() < self._access_token_expires_at - 300:
            return self._access_token

        if not (self.client_id and self.client_secret and self.refresh_token):
            logger.error("Google Calendar credentials are not configured")
            raise CalendarUnavailable()

        logger.info("Refreshing Google Calendar access token")
        try:
            async with self._http() as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Token refresh request failed: {e}")
            raise CalendarUnavailable() from e

        if response.status_code != 200:
            logger.error(f"Token refresh failed: {response.status_code} {response.text}")
            raise CalendarUnavailable()

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            logger.error("No access token in refresh response")
            raise CalendarUnavailable()

        self._access_token = access_token
        self._access_token_expires_at = time.time() + int(tokens.get("expires_in", 3600))
        return access_token

    async def create_event(
        self, summary: str, description: str, start: datetime, end: datetime
    ) -> str:
        """
        Create a timed event and return its Google event id.
        ``start`` and ``end`` must be timezone-aware; the salon zone is attached to both.
        """
        access_token = await self.get_access_token()
        event_data = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone_name},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone_name},
        }

        try:
            async with self._http() as client:
                response = await client.post(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=event_data,
                )
        except httpx.HTTPError as e:
            logger.error(f"Calendar event creation request failed: {e}")
            raise CalendarUnavailable() from e

        if response.status_code not in (200, 201):
            logger.error(f"Failed to create calendar event: {response.status_code} {response.text}")
            raise CalendarUnavailable()

        event_id = response.json().get("id")
        if not event_id:
            logger.error("Calendar API returned an event without id")
            raise CalendarUnavailable()

        logger.info(f"Google Calendar event created: {event_id}")
        return event_id

    async def delete_event(self, event_id: str) -> None:
        """Delete an event; an already-deleted event (404/410) counts as success"""
        access_token = await self.get_access_token()
        try:
            async with self._http() as client:
                response = await client.delete(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events/{event_id}",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Calendar event deletion request failed: {e}")
            raise CalendarUnavailable() from e

        if response.status_code in (404, 410):
            logger.info(f"Google Calendar event {event_id} already gone")
            return
        if response.status_code not in (200, 204):
            logger.error(f"Failed to delete calendar event: {response.status_code} {response.text}")
            raise CalendarUnavailable()

        logger.info(f"Google Calendar event deleted: {event_id}")


_calendar_client: Optional[GoogleCalendarClient] = None


def get_calendar_client() -> GoogleCalendarClient:
    """Process-wide client so the cached access token is reused across requests"""
    global _calendar_client
    if _calendar_client is None:
        _calendar_client = GoogleCalendarClient()
    return _calendar_client
