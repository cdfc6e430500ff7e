from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from shop_booking.core.database import Base
from shop_booking.models.appointment import Appointment
from shop_booking.models.appointment_record import AppointmentRecord
from shop_booking.services.dates import parse_iso, utcnow
from shop_booking.services.repository import unique_id


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAppointmentRepository:
    """Repository backed by SQLAlchemy (SQLite via aiosqlite, or Postgres)."""

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker):
        self.engine = engine
        self.session_factory = session_factory

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @staticmethod
    def _to_domain(record: AppointmentRecord) -> Appointment:
        return Appointment(
            id=record.id,
            name=record.name,
            email=record.email,
            start_iso=record.start_iso,
            end_iso=record.end_iso,
            status=record.status or "pending",
            remote_event_id=record.gcal_event_id,
            phone=record.phone,
            service=record.service,
            notes=record.notes,
            created_at=_as_utc(record.created_at).isoformat() if record.created_at else None,
            extra=dict(record.extra or {}),
        )

    async def list_all(self) -> List[Appointment]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AppointmentRecord).order_by(AppointmentRecord.created_at)
            )
            return [self._to_domain(r) for r in result.scalars().all()]

    async def add(self, appointment: Appointment) -> Appointment:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AppointmentRecord.id).where(AppointmentRecord.id.like(f"{appointment.id}%"))
            )
            appointment.id = unique_id(appointment.id, result.scalars().all())
            created_at = _as_utc(
                parse_iso(appointment.created_at) if appointment.created_at else utcnow()
            )
            appointment.created_at = created_at.isoformat()
            session.add(
                AppointmentRecord(
                    id=appointment.id,
                    status=appointment.status,
                    gcal_event_id=appointment.remote_event_id,
                    name=appointment.name,
                    email=appointment.email,
                    phone=appointment.phone,
                    service=appointment.service,
                    notes=appointment.notes,
                    start_iso=appointment.start_iso,
                    end_iso=appointment.end_iso,
                    extra=appointment.extra,
                    created_at=created_at,
                )
            )
            await session.commit()
            return appointment

    async def remove_by_event_id(self, event_id: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(AppointmentRecord).where(AppointmentRecord.gcal_event_id == event_id)
            )
            await session.commit()
            return result.rowcount or 0
