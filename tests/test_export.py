"""
Unit tests for the iCalendar schedule exporter.
"""

from datetime import date, datetime, timezone

import pytest
from icalendar import Calendar

from src.campus_client.export import ScheduleExporter, build_calendar
from src.campus_client.models import TimetableEntry
from src.campus_client.timeutils import week_dates

TODAY = date(2026, 10, 21)
SERVER_ICS = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Server//EN\r\nEND:VCALENDAR\r\n"

ALGEBRA = TimetableEntry(
    id="t1",
    name="Algebra",
    instructor="Dr. Okafor",
    location="Room 101",
    day="Monday",
    startTime="09:30",
    endTime="11:00",
)
PHYSICS = TimetableEntry(id="t2", name="Physics", day="Wednesday", startTime="13:00", endTime="14:00", type="Lab")


class TestBuildCalendar:
    """Test cases for client-side calendar generation."""

    def test_empty_collection_is_a_complete_envelope(self):
        content = build_calendar({}, week_dates(TODAY))

        assert content.startswith("BEGIN:VCALENDAR")
        assert content.rstrip().endswith("END:VCALENDAR")
        assert "VERSION:2.0" in content
        assert "PRODID:-//CampusRoom//Timetable//EN" in content
        assert "BEGIN:VEVENT" not in content

    def test_event_fields(self):
        stamp = datetime(2026, 10, 21, 8, 0, 0, tzinfo=timezone.utc)
        content = build_calendar(
            {"Monday": [ALGEBRA], "Wednesday": [PHYSICS]},
            week_dates(TODAY),
            stamp=stamp,
        )

        assert content.count("BEGIN:VEVENT") == 2
        assert "UID:t1@campusroom.edu" in content
        assert "DTSTART:20261019T093000" in content
        assert "DTEND:20261019T110000" in content
        assert "DTSTAMP:20261021T080000Z" in content
        assert "SUMMARY:Algebra" in content
        assert "LOCATION:Room 101" in content
        assert "DESCRIPTION:Lecture with Dr. Okafor" in content
        assert "DTSTART:20261021T130000" in content
        assert "DESCRIPTION:Lab with n/a" in content

    def test_parses_back_with_icalendar(self):
        content = build_calendar({"Monday": [ALGEBRA]}, week_dates(TODAY, 1))

        cal = Calendar.from_ical(content)
        (event,) = cal.walk("VEVENT")
        assert event.decoded("dtstart") == datetime(2026, 10, 26, 9, 30)
        assert str(event["summary"]) == "Algebra"

    def test_days_outside_the_week_are_skipped(self):
        content = build_calendar({"Saturday": [ALGEBRA]}, week_dates(TODAY))
        assert "BEGIN:VEVENT" not in content

    def test_default_stamp_is_utc(self):
        """Test DTSTAMP is the current UTC time, not local wall-clock time labelled UTC."""
        before = datetime.now(timezone.utc).replace(microsecond=0)
        content = build_calendar({"Monday": [ALGEBRA]}, week_dates(TODAY))
        after = datetime.now(timezone.utc)

        (event,) = Calendar.from_ical(content).walk("VEVENT")
        stamp = event.decoded("dtstamp")
        assert stamp.utcoffset().total_seconds() == 0
        assert before <= stamp <= after

    def test_custom_uid_domain_and_prodid(self):
        content = build_calendar(
            {"Monday": [ALGEBRA]},
            week_dates(TODAY),
            uid_domain="uni.example",
            prodid="-//Uni//Example//EN",
        )
        assert "UID:t1@uni.example" in content
        assert "PRODID:-//Uni//Example//EN" in content


class TestScheduleExporter:
    """Test cases for server-first export."""

    @pytest.mark.asyncio
    async def test_server_export_preferred(self, backend, transport):
        backend.on("GET", "/users/u-7/timetable/export", text=SERVER_ICS, content_type="text/calendar")
        exporter = ScheduleExporter(transport, user_id="u-7")

        result = await exporter.export({"Monday": [ALGEBRA]}, today=TODAY)

        assert result.source == "server"
        assert result.content == SERVER_ICS
        assert result.event_count == 0

    @pytest.mark.asyncio
    async def test_server_failure_falls_back_to_client(self, backend, transport):
        backend.on("GET", "/users/u-7/timetable/export", 500)
        exporter = ScheduleExporter(transport, user_id="u-7")

        result = await exporter.export({"Monday": [ALGEBRA]}, week_offset=1, today=TODAY)

        assert result.source == "client"
        assert result.event_count == 1
        assert "DTSTART:20261026T093000" in result.content

    @pytest.mark.asyncio
    async def test_non_calendar_body_falls_back(self, backend, transport):
        backend.on("GET", "/users/u-7/timetable/export", json={"status": "queued"})
        exporter = ScheduleExporter(transport, user_id="u-7")

        result = await exporter.export({}, today=TODAY)

        assert result.source == "client"
        assert result.event_count == 0

    @pytest.mark.asyncio
    async def test_no_user_id_skips_server(self, backend, transport):
        exporter = ScheduleExporter(transport)

        result = await exporter.export({"Monday": [ALGEBRA]}, today=TODAY)

        assert result.source == "client"
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_write_to(self, transport, tmp_path):
        result = await ScheduleExporter(transport).export({}, today=TODAY)

        path = result.write_to(tmp_path / "out" / "class_schedule.ics")

        assert path.read_bytes() == result.content.encode("utf-8")
        assert path.read_bytes().startswith(b"BEGIN:VCALENDAR\r\n")
