from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from shop_booking.integrations.google_calendar.models import CalendarEvent


class CalendarGateway(Protocol):
    name: str

    async def insert_event(
        self,
        summary: str,
        description: str,
        start: str,
        end: str,
        attendees: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """Create the event and return its id, or None when no calendar is set up."""
        ...

    async def list_events(
        self,
        time_min: datetime,
        max_results: int,
        order_by: str = "startTime",
    ) -> List[CalendarEvent]:
        ...

    async def get_event(self, event_id: str) -> CalendarEvent:
        ...

    async def patch_attendee_status(
        self, event_id: str, shop_email: str, new_status: str
    ) -> CalendarEvent:
        ...

    async def delete_event(self, event_id: str) -> None:
        ...
