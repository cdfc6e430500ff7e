from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from shop_booking.core.config import ConfigContext
from shop_booking.core.errors import DeliveryError, ValidationError
from shop_booking.integrations.email.gateway import NotificationGateway
from shop_booking.integrations.google_calendar.base import CalendarGateway
from shop_booking.models.appointment import Appointment
from shop_booking.services.dates import parse_iso, utcnow
from shop_booking.services.ics_builder import build_ics
from shop_booking.services.repository import AppointmentRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "start_iso", "end_iso")


@dataclass
class BookingResult:
    appointment_id: str
    gcal_event_id: Optional[str]
    notification_sent: bool = True


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_summary(name: str, service: Optional[str]) -> str:
    return f"Werkstatt: {service or 'Service'} – {name}"


def build_description(
    name: str, email: str, phone: Optional[str], notes: Optional[str]
) -> str:
    return (
        f"Kunde: {name}\n"
        f"E-Mail: {email}\n"
        f"Telefon: {phone or '-'}\n\n"
        f"Notizen: {notes or '-'}"
    )


class AppointmentService:
    """Books an appointment: calendar event, local record, confirmation mail.

    The steps run in that order and are not transactional. A failed local
    write leaves the calendar event in place, and a failed mail happens
    after the record is already stored.
    """

    def __init__(
        self,
        config: ConfigContext,
        repository: AppointmentRepository,
        calendar: CalendarGateway,
        notifier: NotificationGateway,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.repository = repository
        self.calendar = calendar
        self.notifier = notifier
        self.clock = clock

    def validate(self, data: Mapping[str, Any]) -> dict:
        missing = [f for f in REQUIRED_FIELDS if not _clean(data.get(f))]
        if missing:
            raise ValidationError(f"Pflichtfelder fehlen: {', '.join(missing)}")

        try:
            start = parse_iso(str(data["start_iso"]), self.config.timezone)
            end = parse_iso(str(data["end_iso"]), self.config.timezone)
        except ValueError:
            raise ValidationError("start_iso/end_iso müssen ISO-8601-Zeitstempel sein") from None
        if start >= end:
            raise ValidationError("start_iso muss vor end_iso liegen")

        cleaned = {key: value for key, value in data.items() if value is not None}
        for key in ("name", "email", "start_iso", "end_iso", "phone", "service", "notes"):
            if key in cleaned:
                cleaned[key] = _clean(cleaned[key])
        return cleaned

    def _new_id(self) -> str:
        return f"apt_{int(self.clock().timestamp() * 1000)}"

    async def create_appointment(self, data: Mapping[str, Any]) -> BookingResult:
        b = self.validate(data)
        name, email = b["name"], b["email"]
        summary = build_summary(name, b.get("service"))
        description = build_description(name, email, b.get("phone"), b.get("notes"))

        gcal_event_id = await self.calendar.insert_event(
            summary=summary,
            description=description,
            start=b["start_iso"],
            end=b["end_iso"],
            attendees=[self.config.shop_email] if self.config.shop_email else [],
        )
        if gcal_event_id is None:
            logger.info("ℹ️ No calendar configured - appointment not synced")

        extra = {
            k: v
            for k, v in b.items()
            if k not in ("name", "email", "start_iso", "end_iso", "phone", "service", "notes")
        }
        appointment = await self.repository.add(
            Appointment(
                id=self._new_id(),
                name=name,
                email=email,
                start_iso=b["start_iso"],
                end_iso=b["end_iso"],
                status="pending",
                remote_event_id=gcal_event_id,
                phone=b.get("phone"),
                service=b.get("service"),
                notes=b.get("notes"),
                created_at=self.clock().isoformat(),
                extra=extra,
            )
        )

        ics = build_ics(
            summary=summary,
            description=description,
            start=appointment.start_iso,
            end=appointment.end_iso,
            uid=appointment.id,
            organizer_name=self.config.shop_name,
            organizer_email=self.config.shop_email,
            tz=self.config.timezone,
        )

        notification_sent = True
        try:
            await self.notifier.send(
                to=email,
                subject="Termin-Anfrage erhalten",
                text=(
                    f"Hallo {name},\n\n"
                    f"vielen Dank für Ihre Anfrage.\n"
                    f"Ihr Terminwunsch: {appointment.start_iso}\n\n"
                    f"Wir melden uns zur Bestätigung.\n\n"
                    f"Viele Grüße\n{self.config.shop_name}"
                ),
                ics=ics,
            )
            if self.config.notify_shop and self.config.shop_email:
                await self.notifier.send(
                    to=self.config.shop_email,
                    subject=f"Neue Terminanfrage: {name}",
                    text=f"{summary}\n\nTermin: {appointment.start_iso} - {appointment.end_iso}\n\n{description}",
                    ics=ics,
                )
        except DeliveryError as e:
            if self.config.notification_failure_fatal:
                raise
            # Already booked; retrying the request would create a duplicate
            logger.warning(f"⚠️ Appointment {appointment.id} stored but notification failed: {e}")
            notification_sent = False

        logger.info(f"📝 Appointment {appointment.id} created (calendar event: {gcal_event_id})")
        return BookingResult(
            appointment_id=appointment.id,
            gcal_event_id=gcal_event_id,
            notification_sent=notification_sent,
        )
