"""
Tests for iCalendar export.
"""

import pendulum

from meetbook.domain.ics import build_ics


def test_single_event_document():
    document = build_ics(
        title="Meeting with Ada",
        description="Agenda:\nIntro, demo; questions",
        start=pendulum.datetime(2026, 11, 2, 9, tz="America/Los_Angeles"),
        end=pendulum.datetime(2026, 11, 2, 9, 30, tz="America/Los_Angeles"),
        location="https://meet.google.com/aaa-bbbb-ccc",
        uid="evt1@meetbook",
    )

    lines = document.split("\r\n")
    assert lines[0] == "BEGIN:VCALENDAR"
    assert lines[-2] == "END:VCALENDAR"
    assert lines[-1] == ""
    assert "UID:evt1@meetbook" in lines
    assert "DTSTART:20261102T170000Z" in lines
    assert "DTEND:20261102T173000Z" in lines
    assert "DESCRIPTION:Agenda:\\nIntro\\, demo\\; questions" in lines
    assert "LOCATION:https://meet.google.com/aaa-bbbb-ccc" in lines


def test_location_is_optional():
    document = build_ics(
        title="Meeting",
        description="",
        start=pendulum.datetime(2026, 11, 2, 17, tz="UTC"),
        end=pendulum.datetime(2026, 11, 2, 18, tz="UTC"),
    )

    assert "LOCATION:" not in document
    assert "@meetbook\r\n" in document
