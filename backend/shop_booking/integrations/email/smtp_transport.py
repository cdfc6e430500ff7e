from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional

from shop_booking.integrations.email.base import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)


class SmtpTransport:
    """Direct SMTP delivery (STARTTLS on 587, implicit TLS on 465)."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 30,
    ):
        if not host:
            raise RuntimeError("Missing SMTP_HOST")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @staticmethod
    def build_mime(message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = message.subject
        msg["From"] = message.sender
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain", "utf-8"))

        for attachment in message.attachments:
            # Attachments are text parts (text/calendar)
            _, _, rest = attachment.content_type.partition("/")
            subtype, *params = [p.strip() for p in rest.split(";")]
            part = MIMEText(attachment.content, subtype, "utf-8")
            for param in params:
                key, _, value = param.partition("=")
                part.set_param(key.strip(), value.strip())
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            msg.attach(part)
        return msg

    def _send(self, message: EmailMessage) -> None:
        mime = self.build_mime(message)
        implicit_tls = self.port == 465
        if implicit_tls:
            server = smtplib.SMTP_SSL(
                self.host, self.port, context=ssl.create_default_context(), timeout=self.timeout
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        # Closes the connection on any failure, including the TLS handshake
        with server:
            if self.use_tls and not implicit_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password or "")
            server.sendmail(parseaddr(message.sender)[1], [message.to], mime.as_string())

    async def deliver(self, message: EmailMessage) -> DeliveryResult:
        await asyncio.to_thread(self._send, message)
        return DeliveryResult(
            transport=self.name, message_id=f"smtp-{time.time()}"
        )
