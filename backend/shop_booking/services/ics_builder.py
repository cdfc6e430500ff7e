from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from icalendar import Calendar, Event, vCalAddress, vText

from shop_booking.services.dates import parse_iso, utcnow

PRODID = "-//Werkstatt//Terminanfrage//DE"


def build_ics(
    summary: str,
    description: str,
    start: str,
    end: str,
    uid: str,
    organizer_name: str,
    organizer_email: str,
    tz: str = "UTC",
    now: Optional[datetime] = None,
) -> str:
    """Build a single-event METHOD:REQUEST invite.

    Everything except DTSTAMP depends only on the arguments; DTSTAMP is the
    wall clock (or ``now`` when given). Times are written in UTC.
    """
    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "REQUEST")

    event = Event()
    event.add("uid", uid)
    event.add("dtstamp", (now or utcnow()).astimezone(timezone.utc))
    event.add("dtstart", parse_iso(start, tz).astimezone(timezone.utc))
    event.add("dtend", parse_iso(end, tz).astimezone(timezone.utc))
    event.add("summary", summary)
    event.add("description", description.replace("\r\n", "\n").replace("\r", "\n"))

    organizer = vCalAddress(f"mailto:{organizer_email}")
    organizer.params["cn"] = vText(organizer_name)
    event["organizer"] = organizer

    cal.add_component(event)
    return cal.to_ical().decode("utf-8")
