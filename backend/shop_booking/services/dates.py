from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def parse_iso(value: str, tz: str = "UTC") -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken to be in ``tz``. Raises ValueError on garbage.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("empty timestamp")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(tz))
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
