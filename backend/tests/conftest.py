import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from shop_booking.core.config import ConfigContext
from shop_booking.core.context import build_context
from shop_booking.integrations.email import InMemoryTransport
from shop_booking.integrations.google_calendar import InMemoryCalendarGateway
from shop_booking.main import create_app
from shop_booking.services.repository import InMemoryAppointmentRepository

SHOP_EMAIL = "werkstatt@example.com"


@pytest.fixture
def config() -> ConfigContext:
    return ConfigContext(
        shop_name="Werkstatt Müller",
        shop_email=SHOP_EMAIL,
        timezone="Europe/Berlin",
        calendar_backend="memory",
        email_transport="memory",
        store_backend="memory",
    )


@pytest.fixture
def repository():
    return InMemoryAppointmentRepository()


@pytest.fixture
def calendar():
    return InMemoryCalendarGateway()


@pytest.fixture
def transport():
    return InMemoryTransport()


@pytest.fixture
def fixed_now():
    return datetime(2025, 5, 20, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_context(config, repository, calendar, transport):
    def _make(**overrides):
        cfg = replace(config, **overrides) if overrides else config
        return asyncio.run(
            build_context(cfg, repository=repository, calendar=calendar, transport=transport)
        )

    return _make


@pytest.fixture
def context(make_context):
    return make_context()


@pytest.fixture
def client(context):
    with TestClient(create_app(context=context)) as test_client:
        yield test_client
