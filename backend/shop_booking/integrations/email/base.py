from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


ICS_CONTENT_TYPE = "text/calendar; method=REQUEST"
ICS_FILENAME = "termin.ics"


@dataclass
class Attachment:
    filename: str
    content: str
    content_type: str = "application/octet-stream"


@dataclass
class EmailMessage:
    sender: str
    to: str
    subject: str
    text: str
    attachments: List[Attachment] = field(default_factory=list)


@dataclass
class DeliveryResult:
    transport: str
    message_id: Optional[str] = None


class EmailTransport(Protocol):
    """A way of getting a message out: provider API, SMTP, or nothing."""

    name: str

    async def deliver(self, message: EmailMessage) -> DeliveryResult:
        """Hand the message over; raise on any provider failure."""
        ...
