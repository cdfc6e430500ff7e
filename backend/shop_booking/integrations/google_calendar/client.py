"""
Google Calendar REST client
Handles event creation, listing, attendee status patches and deletion
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from shop_booking.core.errors import DownstreamError, NotFoundError
from shop_booking.integrations.google_calendar.models import CalendarEvent
from shop_booking.integrations.google_calendar.service_account import TokenProvider

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


class GoogleCalendarGateway:
    """Calendar gateway talking to one Google calendar with a service account"""

    name = "google"

    def __init__(
        self,
        calendar_id: Optional[str],
        token_provider: Optional[TokenProvider],
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        time_zone: str = "UTC",
    ):
        self.calendar_id = calendar_id
        self.time_zone = time_zone
        self.token_provider = token_provider
        self.timeout = timeout
        self.transport = transport

        if not calendar_id:
            logger.warning("GCAL_CALENDAR_ID not set - bookings will not be synced to Google Calendar")

    @property
    def configured(self) -> bool:
        return bool(self.calendar_id and self.token_provider)

    def _events_url(self, event_id: Optional[str] = None) -> str:
        url = f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id or '', safe='')}/events"
        if event_id:
            url += f"/{quote(event_id, safe='')}"
        return url

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        event_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        if not self.configured:
            raise DownstreamError("Google Calendar is not configured")

        try:
            access_token = await self.token_provider.get_token()
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Google Calendar request failed: {e}")
            raise DownstreamError(f"Google Calendar request failed: {e}") from e
        except DownstreamError:
            raise
        except Exception as e:
            # google-auth refresh errors surface here
            logger.error(f"❌ Google Calendar authentication failed: {e}")
            raise DownstreamError(str(e)) from e

        if response.status_code in (404, 410):
            raise NotFoundError(f"Calendar event not found: {event_id or url}")
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"❌ Google Calendar {method} failed ({response.status_code}): {message}")
            raise DownstreamError(message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def insert_event(
        self,
        summary: str,
        description: str,
        start: str,
        end: str,
        attendees: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        if not self.calendar_id:
            return None

        body = {
            "summary": summary,
            "description": description,
            # timeZone resolves timestamps sent without an offset
            "start": {"dateTime": start, "timeZone": self.time_zone},
            "end": {"dateTime": end, "timeZone": self.time_zone},
            "attendees": [{"email": email} for email in attendees or []],
        }
        data = await self._request(
            "POST", self._events_url(), params={"sendUpdates": "all"}, json=body
        )
        event_id = (data or {}).get("id")
        logger.info(f"📅 New Google Calendar event created: {event_id}")
        return event_id

    async def list_events(
        self,
        time_min: datetime,
        max_results: int,
        order_by: str = "startTime",
    ) -> List[CalendarEvent]:
        data = await self._request(
            "GET",
            self._events_url(),
            params={
                "timeMin": _rfc3339(time_min),
                "maxResults": max_results,
                "singleEvents": "true",
                "orderBy": order_by,
            },
        )
        items = (data or {}).get("items") or []
        return [CalendarEvent.from_google(item) for item in items]

    async def get_event(self, event_id: str) -> CalendarEvent:
        data = await self._request("GET", self._events_url(event_id), event_id=event_id)
        return CalendarEvent.from_google(data or {})

    async def patch_attendee_status(
        self, event_id: str, shop_email: str, new_status: str
    ) -> CalendarEvent:
        # Read-modify-write; a concurrent patch on the same event may be lost
        event = await self.get_event(event_id)
        for attendee in event.attendees:
            if attendee.email == shop_email:
                attendee.response_status = new_status

        data = await self._request(
            "PATCH",
            self._events_url(event_id),
            params={"sendUpdates": "all"},
            json={"attendees": [a.to_google() for a in event.attendees]},
            event_id=event_id,
        )
        logger.info(f"✅ Attendee status changed: {event_id} → {new_status}")
        return CalendarEvent.from_google(data) if data else event

    async def delete_event(self, event_id: str) -> None:
        await self._request(
            "DELETE",
            self._events_url(event_id),
            params={"sendUpdates": "all"},
            event_id=event_id,
        )
        logger.info(f"🗑️ Google Calendar event deleted: {event_id}")
