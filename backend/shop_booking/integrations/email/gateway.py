from __future__ import annotations

import logging
from typing import Optional

from shop_booking.core.errors import DeliveryError
from shop_booking.integrations.email.base import (
    ICS_CONTENT_TYPE,
    ICS_FILENAME,
    Attachment,
    DeliveryResult,
    EmailMessage,
    EmailTransport,
)

logger = logging.getLogger(__name__)


class NotificationGateway:
    """Sends shop mail through whichever transport is plugged in.

    The services only ever call ``send``; swapping Resend for SMTP is a
    configuration change.
    """

    def __init__(self, transport: EmailTransport, sender: str):
        self.transport = transport
        self.sender = sender

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        ics: Optional[str] = None,
    ) -> DeliveryResult:
        """Send a plain-text mail, with ``termin.ics`` attached when given."""
        message = EmailMessage(sender=self.sender, to=to, subject=subject, text=text)
        if ics:
            message.attachments.append(
                Attachment(filename=ICS_FILENAME, content=ics, content_type=ICS_CONTENT_TYPE)
            )

        try:
            result = await self.transport.deliver(message)
        except Exception as e:
            logger.error(f"❌ Email send error to {to} via {self.transport.name}: {e}")
            raise DeliveryError(str(e) or "Email delivery failed") from e

        logger.info(f"📤 Mail sent to {to} via {result.transport}")
        return result
