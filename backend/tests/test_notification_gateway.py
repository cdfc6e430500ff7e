import base64
import smtplib
import ssl
from dataclasses import replace

import pytest

from shop_booking.core.errors import DeliveryError
from shop_booking.integrations.email import (
    EmailMessage,
    InMemoryTransport,
    NotificationGateway,
    resolve_transport,
)
from shop_booking.integrations.email.base import Attachment
from shop_booking.integrations.email.resend_transport import ResendTransport
from shop_booking.integrations.email.smtp_transport import SmtpTransport

ICS = "BEGIN:VCALENDAR\r\nMETHOD:REQUEST\r\nEND:VCALENDAR"


class RejectingTransport:
    name = "rejecting"

    def __init__(self, error):
        self.error = error

    async def deliver(self, message):
        raise self.error


def _message(**kwargs):
    params = dict(
        sender="Werkstatt Müller <werkstatt@example.com>",
        to="a@x.com",
        subject="Termin-Anfrage erhalten",
        text="Hallo Anna",
    )
    params.update(kwargs)
    return EmailMessage(**params)


async def test_send_attaches_ics_invitation():
    transport = InMemoryTransport()
    gateway = NotificationGateway(transport, sender="Werkstatt <w@example.com>")

    result = await gateway.send("a@x.com", "Betreff", "Text", ics=ICS)

    assert result.transport == "memory"
    [message] = transport.outbox
    assert message.sender == "Werkstatt <w@example.com>"
    [attachment] = message.attachments
    assert attachment.filename == "termin.ics"
    assert attachment.content_type == "text/calendar; method=REQUEST"
    assert attachment.content == ICS


async def test_send_without_ics_has_no_attachment():
    transport = InMemoryTransport()

    await NotificationGateway(transport, sender="w@example.com").send("a@x.com", "Betreff", "Text")

    assert transport.outbox[0].attachments == []


async def test_provider_failure_becomes_delivery_error():
    gateway = NotificationGateway(RejectingTransport(RuntimeError("403 domain not verified")), "w@example.com")

    with pytest.raises(DeliveryError, match="domain not verified") as excinfo:
        await gateway.send("a@x.com", "Betreff", "Text")

    assert excinfo.value.status_code == 500


async def test_empty_provider_error_still_has_message():
    gateway = NotificationGateway(RejectingTransport(ConnectionError()), "w@example.com")

    with pytest.raises(DeliveryError, match="Email delivery failed"):
        await gateway.send("a@x.com", "Betreff", "Text")


def test_resend_params_encode_attachment():
    message = _message(attachments=[Attachment("termin.ics", ICS, "text/calendar; method=REQUEST")])

    params = ResendTransport.build_params(message)

    assert params["from"] == "Werkstatt Müller <werkstatt@example.com>"
    assert params["to"] == ["a@x.com"]
    [attachment] = params["attachments"]
    assert attachment["filename"] == "termin.ics"
    assert attachment["content_type"] == "text/calendar; method=REQUEST"
    assert base64.b64decode(attachment["content"]).decode("utf-8") == ICS


def test_resend_params_without_attachments():
    assert "attachments" not in ResendTransport.build_params(_message())


def test_smtp_mime_marks_calendar_part_as_request():
    message = _message(attachments=[Attachment("termin.ics", ICS, "text/calendar; method=REQUEST")])

    mime = SmtpTransport.build_mime(message)

    body, invite = mime.get_payload()
    assert body.get_content_type() == "text/plain"
    assert invite.get_content_type() == "text/calendar"
    assert invite.get_param("method") == "REQUEST"
    assert invite.get_filename() == "termin.ics"
    assert "METHOD:REQUEST" in invite.get_payload(decode=True).decode("utf-8")


def test_transports_refuse_missing_settings():
    with pytest.raises(RuntimeError):
        ResendTransport(api_key="")
    with pytest.raises(RuntimeError):
        SmtpTransport(host="")


def test_resolve_transport_by_name(config):
    assert isinstance(resolve_transport(config), InMemoryTransport)
    assert isinstance(resolve_transport(replace(config, email_transport="resend", resend_api_key="re_test")), ResendTransport)

    smtp = resolve_transport(replace(config, email_transport="smtp", smtp_host="mail.example.com", smtp_port=465))
    assert isinstance(smtp, SmtpTransport)
    assert smtp.port == 465

    with pytest.raises(ValueError):
        resolve_transport(replace(config, email_transport="pigeon"))


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, fail_tls=False):
        self.host = host
        self.port = port
        self.fail_tls = fail_tls
        self.sent = []
        self.closed = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def starttls(self, context=None):
        if self.fail_tls:
            raise ssl.SSLError("handshake failed")

    def login(self, user, password):
        self.login_user = user

    def sendmail(self, sender, recipients, body):
        self.sent.append((sender, recipients))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


async def test_smtp_delivers_over_starttls(fake_smtp):
    transport = SmtpTransport(host="mail.example.com", username="werkstatt", password="pw")

    result = await transport.deliver(_message())

    [server] = fake_smtp.instances
    assert result.transport == "smtp"
    assert server.login_user == "werkstatt"
    assert server.sent == [("werkstatt@example.com", ["a@x.com"])]
    assert server.closed is True


async def test_smtp_connection_closed_when_tls_handshake_fails(fake_smtp, monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", lambda *a, **kw: FakeSMTP(*a, fail_tls=True, **kw))
    transport = SmtpTransport(host="mail.example.com")

    with pytest.raises(ssl.SSLError):
        await transport.deliver(_message())

    [server] = fake_smtp.instances
    assert server.sent == []
    assert server.closed is True
