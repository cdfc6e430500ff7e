from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from shop_booking.core.config import ConfigContext
from shop_booking.core.rate_limiter import RateLimiter
from shop_booking.integrations.email import NotificationGateway, resolve_transport
from shop_booking.integrations.email.base import EmailTransport
from shop_booking.integrations.google_calendar import (
    CalendarGateway,
    GoogleCalendarGateway,
    InMemoryCalendarGateway,
    ServiceAccountTokenProvider,
)
from shop_booking.services.admin_service import AdminQueryService
from shop_booking.services.appointment_service import AppointmentService
from shop_booking.services.reminder_sweeper import ReminderSweeper
from shop_booking.services.repository import (
    AppointmentRepository,
    InMemoryAppointmentRepository,
    JsonFileAppointmentRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request or batch run needs, built once per process."""

    config: ConfigContext
    repository: AppointmentRepository
    calendar: CalendarGateway
    notifier: NotificationGateway
    appointments: AppointmentService
    admin: AdminQueryService
    reminders: ReminderSweeper
    rate_limiter: RateLimiter
    engine: Optional[object] = None

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


async def build_repository(config: ConfigContext):
    """Return (repository, engine); engine is only set for the SQL backend."""
    if config.store_backend == "memory":
        return InMemoryAppointmentRepository(), None
    if config.store_backend == "sql":
        from shop_booking.core.database import create_engine, create_session_factory
        from shop_booking.services.sql_repository import SqlAppointmentRepository

        if not config.database_url:
            raise ValueError("STORE_BACKEND=sql requires DATABASE_URL")
        engine = create_engine(config.database_url)
        repository = SqlAppointmentRepository(engine, create_session_factory(engine))
        await repository.create_tables()
        return repository, engine
    if config.store_backend == "json":
        return JsonFileAppointmentRepository(config.appointments_file), None
    raise ValueError(f"Unknown STORE_BACKEND: {config.store_backend}")


def build_calendar(config: ConfigContext) -> CalendarGateway:
    if config.calendar_backend == "memory":
        return InMemoryCalendarGateway()

    token_provider = None
    if config.gcal_client_email and config.gcal_private_key:
        token_provider = ServiceAccountTokenProvider(
            config.gcal_client_email, config.gcal_private_key
        )
    elif config.calendar_configured:
        logger.warning("GCAL_CALENDAR_ID set but service account credentials are missing")
    return GoogleCalendarGateway(
        calendar_id=config.gcal_calendar_id,
        token_provider=token_provider,
        timeout=config.http_timeout_seconds,
        time_zone=config.timezone,
    )


async def build_context(
    config: ConfigContext,
    *,
    repository: Optional[AppointmentRepository] = None,
    calendar: Optional[CalendarGateway] = None,
    transport: Optional[EmailTransport] = None,
) -> AppContext:
    engine = None
    if repository is None:
        repository, engine = await build_repository(config)
    calendar = calendar or build_calendar(config)
    notifier = NotificationGateway(transport or resolve_transport(config), sender=config.sender)

    logger.info(
        f"🔧 Context ready: store={type(repository).__name__}, "
        f"calendar={calendar.name}, mail={notifier.transport.name}"
    )
    return AppContext(
        config=config,
        repository=repository,
        calendar=calendar,
        notifier=notifier,
        appointments=AppointmentService(config, repository, calendar, notifier),
        admin=AdminQueryService(config, repository, calendar),
        reminders=ReminderSweeper(config, repository, notifier),
        rate_limiter=RateLimiter(config.rate_limit_requests, config.rate_limit_window_seconds),
        engine=engine,
    )
