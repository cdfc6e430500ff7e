from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from shop_booking.core.config import ConfigContext
from shop_booking.core.errors import ValidationError
from shop_booking.integrations.google_calendar.base import CalendarGateway
from shop_booking.integrations.google_calendar.models import CalendarEvent
from shop_booking.services.dates import utcnow
from shop_booking.services.repository import AppointmentRepository

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = ("accepted", "declined", "tentative", "needsAction")

# Admin UI vocabulary -> Google attendee responseStatus
_TO_RESPONSE_STATUS: Dict[str, str] = {
    "confirmed": "accepted",
    "pending": "needsAction",
    "declined": "declined",
    "tentative": "tentative",
    "accepted": "accepted",
    "needsaction": "needsAction",
}

_TO_APPOINTMENT_STATUS: Dict[str, str] = {
    "accepted": "confirmed",
    "needsAction": "pending",
    "declined": "declined",
    "tentative": "tentative",
}

UPCOMING_LOOKBACK = timedelta(hours=24)
UPCOMING_MAX_RESULTS = 100
CALENDAR_MAX_RESULTS = 50


@dataclass
class AppointmentView:
    """Flattened calendar event as the admin UI lists it"""

    id: str
    summary: str
    description: str
    start_iso: Optional[str]
    end_iso: Optional[str]
    status: str
    appointment_status: str
    attendees: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "summary": self.summary,
            "description": self.description,
            "start_iso": self.start_iso,
            "end_iso": self.end_iso,
            "attendees": self.attendees,
            "status": self.status,
            "appointment_status": self.appointment_status,
        }


@dataclass
class CalendarOverview:
    events: List[CalendarEvent]
    blocked_slots: List[dict]


def normalize_status(value: Optional[str]) -> str:
    """Map an admin or Google status to a Google responseStatus."""
    if not value or not value.strip():
        raise ValidationError("Fehlende Parameter")
    mapped = _TO_RESPONSE_STATUS.get(value.strip().lower())
    if not mapped:
        raise ValidationError(f"Unbekannter Status: {value}")
    return mapped


def derive_status(event: CalendarEvent, shop_email: str) -> str:
    attendee = event.attendee(shop_email)
    status = attendee.response_status if attendee else "needsAction"
    return status if status in RESPONSE_STATUSES else "needsAction"


def to_view(event: CalendarEvent, shop_email: str) -> AppointmentView:
    status = derive_status(event, shop_email)
    return AppointmentView(
        id=event.id,
        summary=event.summary or "Unbenannter Termin",
        description=event.description or "-",
        start_iso=event.start,
        end_iso=event.end,
        attendees=[
            {"email": a.email, "responseStatus": a.response_status} for a in event.attendees
        ],
        status=status,
        appointment_status=_TO_APPOINTMENT_STATUS[status],
    )


class AdminQueryService:
    """Admin reads and mutations; the remote calendar is the source of truth."""

    def __init__(
        self,
        config: ConfigContext,
        repository: AppointmentRepository,
        calendar: CalendarGateway,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.repository = repository
        self.calendar = calendar
        self.clock = clock

    async def list_upcoming(self) -> List[AppointmentView]:
        events = await self.calendar.list_events(
            time_min=self.clock() - UPCOMING_LOOKBACK,
            max_results=UPCOMING_MAX_RESULTS,
            order_by="startTime",
        )
        return [to_view(e, self.config.shop_email) for e in events]

    async def calendar_overview(self) -> CalendarOverview:
        """Upcoming events plus the start/end pairs a booking UI must avoid."""
        events = await self.calendar.list_events(
            time_min=self.clock(),
            max_results=CALENDAR_MAX_RESULTS,
            order_by="startTime",
        )
        blocked = [
            {"start": e.start, "end": e.end}
            for e in events
            if not e.all_day and e.start and e.end
        ]
        return CalendarOverview(events=events, blocked_slots=blocked)

    async def delete_appointment(self, event_id: str) -> int:
        if not event_id:
            raise ValidationError("Fehlende Parameter")
        # Local records are only touched once the remote delete went through
        await self.calendar.delete_event(event_id)
        removed = await self.repository.remove_by_event_id(event_id)
        logger.info(f"🗑️ Appointment deleted: {event_id} ({removed} local record(s) removed)")
        return removed

    async def set_status(self, event_id: Optional[str], new_status: Optional[str]) -> str:
        if not event_id or not new_status:
            raise ValidationError("Fehlende Parameter")
        response_status = normalize_status(new_status)
        await self.calendar.patch_attendee_status(
            event_id, self.config.shop_email, response_status
        )
        logger.info(f"✅ Appointment status changed: {event_id} → {new_status}")
        return response_status
