"""Calendar event data models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Attendee:
    email: str
    response_status: str = "needsAction"  # accepted | declined | tentative | needsAction

    def to_google(self) -> dict:
        return {"email": self.email, "responseStatus": self.response_status}


@dataclass
class CalendarEvent:
    """An event as the calendar provider holds it"""

    id: str
    summary: Optional[str] = None
    description: Optional[str] = None
    start: Optional[str] = None      # dateTime, or date for all-day events
    end: Optional[str] = None
    all_day: bool = False
    attendees: List[Attendee] = field(default_factory=list)

    @classmethod
    def from_google(cls, data: Dict[str, Any]) -> "CalendarEvent":
        """Build from a Google Calendar API event resource"""
        start = data.get("start") or {}
        end = data.get("end") or {}
        return cls(
            id=data.get("id", ""),
            summary=data.get("summary"),
            description=data.get("description"),
            start=start.get("dateTime") or start.get("date"),
            end=end.get("dateTime") or end.get("date"),
            all_day=not start.get("dateTime") and bool(start.get("date")),
            attendees=[
                Attendee(
                    email=a.get("email", ""),
                    response_status=a.get("responseStatus", "needsAction"),
                )
                for a in data.get("attendees") or []
            ],
        )

    def to_google_event(self) -> dict:
        """Convert to Google Calendar API event format"""
        time_key = "date" if self.all_day else "dateTime"
        event: Dict[str, Any] = {
            "summary": self.summary,
            "description": self.description,
            "start": {time_key: self.start},
            "end": {time_key: self.end},
            "attendees": [a.to_google() for a in self.attendees],
        }
        if self.id:
            event["id"] = self.id
        return event

    def attendee(self, email: str) -> Optional[Attendee]:
        for a in self.attendees:
            if a.email == email:
                return a
        return None
