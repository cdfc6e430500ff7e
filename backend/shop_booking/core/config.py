from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConfigContext:
    """Process-wide settings, read once at startup and never mutated.

    Holds the calendar service-account credentials, the mail transport
    settings and the shop identity used as sender, organizer and calendar
    attendee.
    """

    shop_name: str = "Werkstatt"
    shop_email: str = ""
    timezone: str = "Europe/Berlin"
    reminder_hours_before: float = 24.0

    # Google Calendar (service account)
    calendar_backend: str = "google"  # google | memory
    gcal_client_email: Optional[str] = None
    gcal_private_key: Optional[str] = None
    gcal_calendar_id: Optional[str] = None

    # Mail
    email_transport: str = "memory"  # resend | smtp | memory
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True

    # Storage
    store_backend: str = "json"  # json | sql | memory
    data_dir: str = "data"
    database_url: Optional[str] = None

    # Behaviour
    notify_shop: bool = False
    notification_failure_fatal: bool = True
    admin_api_key: Optional[str] = None
    rate_limit_requests: int = 30
    rate_limit_window_seconds: int = 60
    http_timeout_seconds: float = 15.0

    # Server
    api_host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def appointments_file(self) -> Path:
        return Path(self.data_dir) / "appointments.json"

    @property
    def calendar_configured(self) -> bool:
        return bool(self.gcal_calendar_id)

    @property
    def sender(self) -> str:
        return f"{self.shop_name} <{self.shop_email}>"


def _default_email_transport() -> str:
    if os.getenv("RESEND_API_KEY"):
        return "resend"
    if os.getenv("SMTP_HOST"):
        return "smtp"
    return "memory"


def load_config(env_file: Optional[str] = None) -> ConfigContext:
    """Build the ConfigContext from environment variables (and .env)."""
    load_dotenv(env_file)

    # Keys pasted into a single env line carry literal "\n" sequences
    private_key = os.getenv("GCAL_PRIVATE_KEY")
    if private_key:
        private_key = private_key.replace("\\n", "\n")

    return ConfigContext(
        shop_name=os.getenv("SHOP_NAME", "Werkstatt"),
        shop_email=os.getenv("SHOP_EMAIL", ""),
        timezone=os.getenv("TIMEZONE", "Europe/Berlin"),
        reminder_hours_before=float(os.getenv("REMINDER_HOURS_BEFORE", "24")),
        calendar_backend=os.getenv("CALENDAR_BACKEND", "google").lower(),
        gcal_client_email=os.getenv("GCAL_CLIENT_EMAIL"),
        gcal_private_key=private_key,
        gcal_calendar_id=os.getenv("GCAL_CALENDAR_ID") or None,
        email_transport=(os.getenv("EMAIL_TRANSPORT") or _default_email_transport()).lower(),
        resend_api_key=os.getenv("RESEND_API_KEY"),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        smtp_user=os.getenv("SMTP_USER"),
        smtp_password=os.getenv("SMTP_PASS"),
        smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
        store_backend=os.getenv("STORE_BACKEND", "json").lower(),
        data_dir=os.getenv("DATA_DIR", "data"),
        database_url=os.getenv("DATABASE_URL"),
        notify_shop=_env_bool("NOTIFY_SHOP", False),
        notification_failure_fatal=_env_bool("NOTIFICATION_FAILURE_FATAL", True),
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
        rate_limit_requests=int(os.getenv("RATE_LIMIT_REQUESTS", "30")),
        rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "15")),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("PORT") or os.getenv("API_PORT") or 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
