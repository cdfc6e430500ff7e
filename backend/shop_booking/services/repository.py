from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Protocol

from shop_booking.models.appointment import Appointment

logger = logging.getLogger(__name__)


class AppointmentRepository(Protocol):
    """Read-all / append / filter-remove contract of the local store."""

    async def list_all(self) -> List[Appointment]:
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """Persist a new record and return it.

        If the id is already taken a numeric suffix is appended, so the
        returned record's id may differ from the one passed in.
        """
        ...

    async def remove_by_event_id(self, event_id: str) -> int:
        """Drop every record linked to ``event_id``; return how many went."""
        ...


def unique_id(candidate: str, taken: Iterable[str]) -> str:
    taken = set(taken)
    if candidate not in taken:
        return candidate
    n = 1
    while f"{candidate}_{n}" in taken:
        n += 1
    return f"{candidate}_{n}"


class InMemoryAppointmentRepository:
    """Repository kept in a list; used by tests and ``STORE_BACKEND=memory``."""

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._items: List[Appointment] = list(appointments)
        self._lock = asyncio.Lock()

    async def list_all(self) -> List[Appointment]:
        return list(self._items)

    async def add(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            appointment.id = unique_id(appointment.id, (a.id for a in self._items))
            self._items.append(appointment)
            return appointment

    async def remove_by_event_id(self, event_id: str) -> int:
        async with self._lock:
            before = len(self._items)
            self._items = [a for a in self._items if a.remote_event_id != event_id]
            return before - len(self._items)


class JsonFileAppointmentRepository:
    """Appointments stored as one human-readable JSON array.

    Every mutation rewrites the whole file. Writers inside this process are
    serialized by a lock and the file is replaced atomically, but a second
    process (e.g. the reminder batch) writing at the same time still wins
    or loses as a whole.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _ensure_file(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]", encoding="utf-8")

    def _read(self) -> List[Appointment]:
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        if not isinstance(raw, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        return [Appointment.from_dict(item) for item in raw]

    def _write(self, appointments: List[Appointment]) -> None:
        self._ensure_file()
        payload = json.dumps(
            [a.to_dict() for a in appointments], indent=2, ensure_ascii=False
        )
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".appointments-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def list_all(self) -> List[Appointment]:
        return await asyncio.to_thread(self._read)

    async def add(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            appointment.id = unique_id(appointment.id, (a.id for a in current))
            current.append(appointment)
            await asyncio.to_thread(self._write, current)
            logger.info(f"💾 Appointment {appointment.id} saved to {self.path}")
            return appointment

    async def remove_by_event_id(self, event_id: str) -> int:
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            kept = [a for a in current if a.remote_event_id != event_id]
            removed = len(current) - len(kept)
            if removed:
                await asyncio.to_thread(self._write, kept)
            return removed
