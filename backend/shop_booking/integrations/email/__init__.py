from shop_booking.integrations.email.base import (
    Attachment,
    DeliveryResult,
    EmailMessage,
    EmailTransport,
)
from shop_booking.integrations.email.gateway import NotificationGateway
from shop_booking.integrations.email.memory_transport import InMemoryTransport
from shop_booking.integrations.email.registry import resolve_transport

__all__ = [
    "Attachment",
    "DeliveryResult",
    "EmailMessage",
    "EmailTransport",
    "InMemoryTransport",
    "NotificationGateway",
    "resolve_transport",
]
