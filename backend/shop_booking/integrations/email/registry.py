from __future__ import annotations

from shop_booking.core.config import ConfigContext
from shop_booking.integrations.email.base import EmailTransport
from shop_booking.integrations.email.memory_transport import InMemoryTransport
from shop_booking.integrations.email.resend_transport import ResendTransport
from shop_booking.integrations.email.smtp_transport import SmtpTransport


def resolve_transport(config: ConfigContext) -> EmailTransport:
    """Pick the mail transport named by ``EMAIL_TRANSPORT``."""
    name = config.email_transport
    if name == "resend":
        return ResendTransport(api_key=config.resend_api_key or "")
    if name == "smtp":
        return SmtpTransport(
            host=config.smtp_host or "",
            port=config.smtp_port,
            username=config.smtp_user,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
        )
    if name == "memory":
        return InMemoryTransport()
    raise ValueError(f"Unknown EMAIL_TRANSPORT: {name}")
