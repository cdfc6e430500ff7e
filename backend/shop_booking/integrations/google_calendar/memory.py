from __future__ import annotations

import itertools
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from shop_booking.core.errors import NotFoundError
from shop_booking.integrations.google_calendar.models import Attendee, CalendarEvent
from shop_booking.services.dates import parse_iso


class InMemoryCalendarGateway:
    """Calendar kept in a dict; same contract as the Google gateway.

    Used by tests and by ``CALENDAR_BACKEND=memory`` for local development.
    """

    name = "memory"

    def __init__(self, calendar_id: Optional[str] = "memory"):
        self.calendar_id = calendar_id
        self.events: Dict[str, CalendarEvent] = {}
        self.cancellations: List[str] = []
        self._ids = itertools.count(1)

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
        event_id = f"evt{next(self._ids)}"
        self.events[event_id] = CalendarEvent(
            id=event_id,
            summary=summary,
            description=description,
            start=start,
            end=end,
            attendees=[Attendee(email=e) for e in attendees or []],
        )
        return event_id

    async def list_events(
        self,
        time_min: datetime,
        max_results: int,
        order_by: str = "startTime",
    ) -> List[CalendarEvent]:
        upcoming = [
            e for e in self.events.values()
            if e.end is None or parse_iso(e.end) >= time_min
        ]
        if order_by == "startTime":
            upcoming.sort(key=lambda e: parse_iso(e.start) if e.start else time_min)
        return upcoming[:max_results]

    async def get_event(self, event_id: str) -> CalendarEvent:
        try:
            return self.events[event_id]
        except KeyError:
            raise NotFoundError(f"Calendar event not found: {event_id}") from None

    async def patch_attendee_status(
        self, event_id: str, shop_email: str, new_status: str
    ) -> CalendarEvent:
        event = await self.get_event(event_id)
        for attendee in event.attendees:
            if attendee.email == shop_email:
                attendee.response_status = new_status
        return event

    async def delete_event(self, event_id: str) -> None:
        if event_id not in self.events:
            raise NotFoundError(f"Calendar event not found: {event_id}")
        del self.events[event_id]
        # Stands in for sendUpdates=all
        self.cancellations.append(event_id)
