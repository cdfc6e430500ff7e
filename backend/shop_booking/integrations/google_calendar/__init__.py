"""Google Calendar Integration"""

from .base import CalendarGateway
from .client import GoogleCalendarGateway
from .memory import InMemoryCalendarGateway
from .models import Attendee, CalendarEvent
from .service_account import ServiceAccountTokenProvider, StaticTokenProvider

__all__ = [
    "Attendee",
    "CalendarEvent",
    "CalendarGateway",
    "GoogleCalendarGateway",
    "InMemoryCalendarGateway",
    "ServiceAccountTokenProvider",
    "StaticTokenProvider",
]
