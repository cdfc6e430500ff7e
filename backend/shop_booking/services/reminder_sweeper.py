from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from shop_booking.core.config import ConfigContext
from shop_booking.integrations.email.gateway import NotificationGateway
from shop_booking.models.appointment import Appointment
from shop_booking.services.dates import parse_iso
from shop_booking.services.repository import AppointmentRepository

logger = logging.getLogger(__name__)

WINDOW_HOURS = 0.5


def hours_until(appointment: Appointment, now: datetime, tz: str) -> float:
    start = parse_iso(appointment.start_iso, tz)
    return (start - now).total_seconds() / 3600


class ReminderSweeper:
    """One pass over the store, mailing everyone whose appointment is due.

    An appointment is due when it starts within half an hour either side of
    the configured lead time. Nothing records that a reminder went out, so a
    second run inside the same window mails the customer again.
    """

    def __init__(
        self,
        config: ConfigContext,
        repository: AppointmentRepository,
        notifier: Optional[NotificationGateway],
    ):
        self.config = config
        self.repository = repository
        self.notifier = notifier

    def is_due(self, appointment: Appointment, now: datetime) -> bool:
        lead = self.config.reminder_hours_before
        hours = hours_until(appointment, now, self.config.timezone)
        return lead - WINDOW_HOURS < hours < lead + WINDOW_HOURS

    def reminder_text(self, appointment: Appointment) -> str:
        start = parse_iso(appointment.start_iso, self.config.timezone).astimezone(
            ZoneInfo(self.config.timezone)
        )
        return (
            f"Hallo {appointment.name},\n\n"
            f"Erinnerung an Ihren Werkstatttermin:\n"
            f"📅 {start.strftime('%d.%m.%Y %H:%M')}\n"
            f"🔧 {appointment.service or 'Werkstatt-Service'}\n\n"
            f"Falls Sie verhindert sind, geben Sie uns bitte kurz Bescheid.\n\n"
            f"Viele Grüße\n{self.config.shop_name}"
        )

    async def due(self, now: Optional[datetime] = None) -> List[Appointment]:
        now = now or datetime.now(ZoneInfo(self.config.timezone))
        due: List[Appointment] = []
        for appointment in await self.repository.list_all():
            try:
                if self.is_due(appointment, now):
                    due.append(appointment)
            except ValueError:
                logger.warning(
                    f"⚠️ Skipping appointment {appointment.id}: bad start_iso {appointment.start_iso!r}"
                )
        return due

    async def run(self, now: Optional[datetime] = None) -> List[Appointment]:
        """Send the reminders that are due and return who got one."""
        sent: List[Appointment] = []
        for appointment in await self.due(now):
            await self.notifier.send(
                to=appointment.email,
                subject="Erinnerung an Ihren Werkstatttermin",
                text=self.reminder_text(appointment),
            )
            logger.info(f"⏰ Reminder sent to: {appointment.email}")
            sent.append(appointment)
        return sent
