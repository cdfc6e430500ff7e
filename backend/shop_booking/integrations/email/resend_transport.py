from __future__ import annotations

import asyncio
import base64
import logging

import resend

from shop_booking.integrations.email.base import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)


class ResendTransport:
    """Transactional mail through the Resend API."""

    name = "resend"

    def __init__(self, api_key: str):
        if not api_key:
            raise RuntimeError("Missing RESEND_API_KEY")
        resend.api_key = api_key

    @staticmethod
    def build_params(message: EmailMessage) -> dict:
        params = {
            "from": message.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
        }
        if message.attachments:
            params["attachments"] = [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content.encode("utf-8")).decode("ascii"),
                    "content_type": a.content_type,
                }
                for a in message.attachments
            ]
        return params

    async def deliver(self, message: EmailMessage) -> DeliveryResult:
        response = await asyncio.to_thread(resend.Emails.send, self.build_params(message))
        message_id = response.get("id") if isinstance(response, dict) else None
        return DeliveryResult(transport=self.name, message_id=message_id)
