from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from shop_booking.core.errors import DeliveryError, ValidationError
from shop_booking.integrations.email import NotificationGateway
from shop_booking.integrations.google_calendar import InMemoryCalendarGateway
from shop_booking.services.appointment_service import (
    AppointmentService,
    build_description,
    build_summary,
)

SHOP_EMAIL = "werkstatt@example.com"

BOOKING = {
    "name": "Anna",
    "email": "a@x.com",
    "start_iso": "2025-06-01T10:00:00Z",
    "end_iso": "2025-06-01T11:00:00Z",
}


class FailingTransport:
    name = "failing"

    async def deliver(self, message):
        raise RuntimeError("domain not verified")


class FrozenClock:
    """Returns the same instant every time, like two requests in one millisecond."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def service(config, repository, calendar, transport):
    notifier = NotificationGateway(transport, sender=config.sender)
    return AppointmentService(config, repository, calendar, notifier)


async def test_creates_pending_record_event_and_mail(service, repository, calendar, transport):
    result = await service.create_appointment(dict(BOOKING, service="Ölwechsel", phone="0170"))

    [stored] = await repository.list_all()
    assert stored.id == result.appointment_id
    assert stored.id.startswith("apt_")
    assert stored.status == "pending"
    assert stored.remote_event_id == result.gcal_event_id
    assert stored.service == "Ölwechsel"

    event = calendar.events[result.gcal_event_id]
    assert event.summary == "Werkstatt: Ölwechsel – Anna"
    assert [a.email for a in event.attendees] == [SHOP_EMAIL]

    [mail] = transport.outbox
    assert mail.to == "a@x.com"
    assert mail.subject == "Termin-Anfrage erhalten"
    assert "Ihr Terminwunsch: 2025-06-01T10:00:00Z" in mail.text
    [attachment] = mail.attachments
    assert attachment.filename == "termin.ics"
    assert attachment.content_type == "text/calendar; method=REQUEST"
    assert f"UID:{stored.id}" in attachment.content


@pytest.mark.parametrize("missing", ["name", "email", "start_iso", "end_iso"])
async def test_missing_required_field_writes_nothing(service, repository, calendar, transport, missing):
    booking = dict(BOOKING)
    booking[missing] = "  " if missing == "name" else None

    with pytest.raises(ValidationError):
        await service.create_appointment(booking)

    assert await repository.list_all() == []
    assert calendar.events == {}
    assert transport.outbox == []


async def test_rejects_window_that_ends_before_it_starts(service, repository):
    with pytest.raises(ValidationError):
        await service.create_appointment(dict(BOOKING, end_iso="2025-06-01T09:00:00Z"))
    with pytest.raises(ValidationError):
        await service.create_appointment(dict(BOOKING, start_iso="morgen früh"))
    assert await repository.list_all() == []


async def test_ids_unique_even_within_one_millisecond(config, repository, calendar, transport):
    clock = FrozenClock(datetime(2025, 5, 1, tzinfo=timezone.utc))
    service = AppointmentService(
        config, repository, calendar, NotificationGateway(transport, config.sender), clock=clock
    )

    ids = [(await service.create_appointment(BOOKING)).appointment_id for _ in range(3)]
    clock.now += timedelta(milliseconds=1)
    ids.append((await service.create_appointment(BOOKING)).appointment_id)

    assert len(set(ids)) == 4
    assert len(await repository.list_all()) == 4


async def test_without_calendar_record_is_stored_unsynced(config, repository, transport):
    notifier = NotificationGateway(transport, config.sender)
    service = AppointmentService(config, repository, InMemoryCalendarGateway(calendar_id=None), notifier)

    result = await service.create_appointment(BOOKING)

    assert result.gcal_event_id is None
    [stored] = await repository.list_all()
    assert stored.remote_event_id is None
    assert len(transport.outbox) == 1


async def test_delivery_failure_propagates_after_persisting(config, repository, calendar):
    service = AppointmentService(
        config, repository, calendar, NotificationGateway(FailingTransport(), config.sender)
    )

    with pytest.raises(DeliveryError, match="domain not verified"):
        await service.create_appointment(BOOKING)

    # Already recorded and synced; not rolled back
    assert len(await repository.list_all()) == 1
    assert len(calendar.events) == 1


async def test_delivery_failure_tolerated_when_configured(config, repository, calendar):
    config = replace(config, notification_failure_fatal=False)
    service = AppointmentService(
        config, repository, calendar, NotificationGateway(FailingTransport(), config.sender)
    )

    result = await service.create_appointment(BOOKING)

    assert result.notification_sent is False
    assert len(await repository.list_all()) == 1


async def test_shop_notification_when_enabled(config, repository, calendar, transport):
    config = replace(config, notify_shop=True)
    service = AppointmentService(
        config, repository, calendar, NotificationGateway(transport, config.sender)
    )

    await service.create_appointment(BOOKING)

    assert [m.to for m in transport.outbox] == ["a@x.com", SHOP_EMAIL]
    assert transport.outbox[1].subject == "Neue Terminanfrage: Anna"


async def test_extra_request_fields_are_kept(service, repository):
    await service.create_appointment(dict(BOOKING, car="Golf", plate=None))

    [stored] = await repository.list_all()
    assert stored.extra == {"car": "Golf"}


def test_summary_and_description_defaults():
    assert build_summary("Anna", None) == "Werkstatt: Service – Anna"
    assert build_description("Anna", "a@x.com", None, None) == (
        "Kunde: Anna\nE-Mail: a@x.com\nTelefon: -\n\nNotizen: -"
    )
