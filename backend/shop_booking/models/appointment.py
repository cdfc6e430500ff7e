from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Keys the record owns; anything else from the booking request lands in ``extra``
_KNOWN_KEYS = {
    "id",
    "status",
    "gcal_event_id",
    "name",
    "email",
    "phone",
    "service",
    "notes",
    "start_iso",
    "end_iso",
    "created_at",
}


@dataclass
class Appointment:
    """Local mirror of a booking request.

    ``remote_event_id`` is only a weak link to the Google Calendar event;
    it is stored under ``gcal_event_id`` in the JSON file.
    """

    id: str
    name: str
    email: str
    start_iso: str
    end_iso: str
    status: str = "pending"
    remote_event_id: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "gcal_event_id": self.remote_event_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "service": self.service,
            "notes": self.notes,
            "start_iso": self.start_iso,
            "end_iso": self.end_iso,
            "created_at": self.created_at,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Appointment":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            email=data.get("email") or "",
            start_iso=data.get("start_iso") or "",
            end_iso=data.get("end_iso") or "",
            status=data.get("status") or "pending",
            remote_event_id=data.get("gcal_event_id"),
            phone=data.get("phone"),
            service=data.get("service"),
            notes=data.get("notes"),
            created_at=data.get("created_at"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def __repr__(self):
        return f"<Appointment(id={self.id}, customer={self.name}, start={self.start_iso})>"
