from __future__ import annotations

import logging
from typing import List

from shop_booking.integrations.email.base import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)


class InMemoryTransport:
    """Keeps messages in ``outbox`` instead of sending them."""

    name = "memory"

    def __init__(self):
        self.outbox: List[EmailMessage] = []

    async def deliver(self, message: EmailMessage) -> DeliveryResult:
        self.outbox.append(message)
        logger.info(f"📭 Mail to {message.to} kept in memory (no transport configured): {message.subject}")
        return DeliveryResult(transport=self.name, message_id=f"memory-{len(self.outbox)}")
