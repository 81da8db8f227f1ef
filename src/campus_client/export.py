"""iCalendar export of the displayed timetable week.

The server can render the export itself; when that call fails for any reason
the calendar is generated client-side from the in-memory timetable with the
icalendar library. Either way the result is a complete VCALENDAR document,
even when there are no events.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

from icalendar import Calendar, Event

from src.campus_client.config import DEFAULT_WEEK_DAYS, ClientConfig
from src.campus_client.endpoints import export_strategies
from src.campus_client.errors import ParseError
from src.campus_client.fallback import run_fallback
from src.campus_client.logging import get_logger
from src.campus_client.models import TimetableEntry
from src.campus_client.timeutils import week_dates
from src.campus_client.transport import ApiTransport

log = get_logger(__name__)

DEFAULT_PRODID = "-//CampusRoom//Timetable//EN"
DEFAULT_FILENAME = "class_schedule.ics"


@dataclass
class ExportResult:
    """Calendar document plus where it came from ("server" or "client")."""

    content: str
    source: str

    @property
    def event_count(self) -> int:
        return self.content.count("BEGIN:VEVENT")

    def write_to(self, path: str | Path = DEFAULT_FILENAME) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # Bytes keep the CRLF line endings intact on every platform
        target.write_bytes(self.content.encode("utf-8"))
        log.info("calendar_written", path=str(target), source=self.source)
        return target


def _as_calendar_text(payload: Any) -> str:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if not isinstance(payload, str) or "BEGIN:VCALENDAR" not in payload:
        raise ParseError("Server export is not an iCalendar document")
    return payload


def _at(day: date, canonical: str) -> datetime:
    hours, minutes = canonical.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


def build_calendar(
    day_map: Mapping[str, Sequence[TimetableEntry]],
    dates: Mapping[str, date],
    *,
    uid_domain: str = "campusroom.edu",
    prodid: str = DEFAULT_PRODID,
    stamp: datetime | None = None,
) -> str:
    """Render one VEVENT per entry for the days in `dates`.

    Event times are floating local times (YYYYMMDDTHHMMSS, no zone), anchored
    on each day's date in the displayed week. DTSTAMP is the UTC export time.
    """
    stamp = (stamp or datetime.now(timezone.utc)).replace(microsecond=0)
    cal = Calendar()
    cal.add("prodid", prodid)
    cal.add("version", "2.0")

    for day, day_date in dates.items():
        for entry in day_map.get(day, []):
            event = Event()
            event.add("uid", f"{entry.id}@{uid_domain}")
            event.add("dtstamp", stamp)
            event.add("dtstart", _at(day_date, entry.start_time))
            event.add("dtend", _at(day_date, entry.end_time))
            event.add("summary", entry.name)
            event.add("location", entry.location)
            event.add("description", f"{entry.type} with {entry.instructor or 'n/a'}")
            cal.add_component(event)

    return cal.to_ical().decode("utf-8")


class ScheduleExporter:
    """Exports the displayed week, preferring the server-generated calendar."""

    def __init__(
        self,
        transport: ApiTransport,
        *,
        user_id: str = "",
        days: Sequence[str] | None = None,
        uid_domain: str = "campusroom.edu",
        prodid: str = DEFAULT_PRODID,
        attempts_per_strategy: int = 1,
    ) -> None:
        self.transport = transport
        self.user_id = user_id
        self.days = list(days or DEFAULT_WEEK_DAYS)
        self.uid_domain = uid_domain
        self.prodid = prodid
        self.attempts_per_strategy = attempts_per_strategy

    @classmethod
    def from_config(cls, config: ClientConfig, transport: ApiTransport) -> "ScheduleExporter":
        return cls(
            transport,
            user_id=config.user_id,
            days=config.week_days,
            uid_domain=config.uid_domain,
            prodid=config.calendar_prodid,
            attempts_per_strategy=config.attempts_per_strategy,
        )

    async def export(
        self,
        day_map: Mapping[str, Sequence[TimetableEntry]],
        *,
        week_offset: int = 0,
        today: date | None = None,
        fmt: str = "ics",
    ) -> ExportResult:
        """Export the week at week_offset from today.

        Args:
            day_map: Day -> entries currently displayed.
            week_offset: 0 for the current week, 1 for next week, ...
            today: Reference date (defaults to date.today()).
            fmt: Format tag sent to the server.
        """
        outcome = await run_fallback(
            "export_timetable",
            export_strategies(self.transport, self.user_id, fmt),
            mapper=_as_calendar_text,
            attempts_per_strategy=self.attempts_per_strategy,
        )
        if outcome.ok:
            return ExportResult(content=outcome.value or "", source="server")

        dates = week_dates(today or date.today(), week_offset, self.days)
        content = build_calendar(
            day_map, dates, uid_domain=self.uid_domain, prodid=self.prodid
        )
        result = ExportResult(content=content, source="client")
        log.info("calendar_generated_locally", events=result.event_count, week_offset=week_offset)
        return result
