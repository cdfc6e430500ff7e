from datetime import datetime, timezone

from shop_booking.services.ics_builder import build_ics


def _lines(ics: str) -> list:
    # Unfold continuation lines before splitting
    return ics.replace("\r\n ", "").rstrip("\r\n").split("\r\n")


def _fields(ics: str) -> dict:
    fields = {}
    for line in _lines(ics):
        key, _, value = line.partition(":")
        fields.setdefault(key, value)
    return fields


def _build(**kwargs):
    params = dict(
        summary="Werkstatt: Ölwechsel – Anna",
        description="Kunde: Anna\nE-Mail: a@x.com",
        start="2025-06-01T10:00:00Z",
        end="2025-06-01T11:00:00Z",
        uid="apt_1",
        organizer_name="Werkstatt Müller",
        organizer_email="werkstatt@example.com",
    )
    params.update(kwargs)
    return build_ics(**params)


def test_stable_fields_identical_across_calls():
    first = _fields(_build(now=datetime(2025, 1, 1, tzinfo=timezone.utc)))
    second = _fields(_build(now=datetime(2025, 3, 1, tzinfo=timezone.utc)))

    for key in ("UID", "DTSTART", "DTEND", "SUMMARY", "DESCRIPTION"):
        assert first[key] == second[key]
    assert first["DTSTAMP"] != second["DTSTAMP"]


def test_timestamps_are_basic_utc():
    fields = _fields(
        _build(
            start="2025-06-01T12:00:00+02:00",
            end="2025-06-01T13:30:00+02:00",
            now=datetime(2025, 5, 1, 6, 5, 4, tzinfo=timezone.utc),
        )
    )
    assert fields["DTSTART"] == "20250601T100000Z"
    assert fields["DTEND"] == "20250601T113000Z"
    assert fields["DTSTAMP"] == "20250501T060504Z"


def test_naive_timestamps_use_configured_timezone():
    fields = _fields(_build(start="2025-01-15T09:00:00", end="2025-01-15T10:00:00", tz="Europe/Berlin"))
    assert fields["DTSTART"] == "20250115T080000Z"


def test_description_newlines_are_escaped():
    description_line = next(
        l for l in _lines(_build(description="Zeile 1\nZeile 2\r\nZeile 3")) if l.startswith("DESCRIPTION:")
    )

    assert description_line == "DESCRIPTION:Zeile 1\\nZeile 2\\nZeile 3"


def test_text_special_characters_are_escaped():
    fields = _fields(_build(
        summary="Werkstatt: Reifen, Öl; Filter – Anna",
        description="Notizen: Pfad C:\\neu, bitte; danke",
    ))

    assert fields["SUMMARY"] == "Werkstatt: Reifen\\, Öl\\; Filter – Anna"
    assert fields["DESCRIPTION"] == "Notizen: Pfad C:\\\\neu\\, bitte\\; danke"


def test_document_structure():
    lines = _lines(_build())
    fields = _fields(_build())

    assert lines[0] == "BEGIN:VCALENDAR"
    assert lines[-1] == "END:VCALENDAR"
    assert fields["PRODID"]
    assert fields["VERSION"] == "2.0"
    assert "METHOD:REQUEST" in lines
    assert "UID:apt_1" in lines
    organizer = next(l for l in lines if l.startswith("ORGANIZER;"))
    assert "CN=" in organizer
    assert "Werkstatt Müller" in organizer
    assert organizer.endswith(":mailto:werkstatt@example.com")
