"""Canonicalising record mapper for backend payloads.

The backend has served the same collections in several envelopes over time
(a bare list, {"data": [...]}, {"entries": [...]}, ...). Extraction rules are
evaluated top-down and the first matching shape wins. Individual records that
don't map are dropped and logged; they never sink the whole batch.
"""

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from src.campus_client.errors import ParseError
from src.campus_client.logging import get_logger
from src.campus_client.models import Reservation, ReservationStatus, TimetableEntry
from src.campus_client.timeutils import split_time_range

log = get_logger(__name__)

ExtractionRule = tuple[str, Callable[[Any], list | None]]


def _bare_list(payload: Any) -> list | None:
    return payload if isinstance(payload, list) else None


def _under(key: str) -> Callable[[Any], list | None]:
    def rule(payload: Any) -> list | None:
        if isinstance(payload, dict) and isinstance(payload.get(key), list):
            return payload[key]
        return None

    return rule


# First matching shape wins
RESERVATION_EXTRACTION_RULES: list[ExtractionRule] = [
    ("list", _bare_list),
    ("reservations", _under("reservations")),
    ("data", _under("data")),
]

TIMETABLE_EXTRACTION_RULES: list[ExtractionRule] = [
    ("list", _bare_list),
    ("timetableEntries", _under("timetableEntries")),
    ("entries", _under("entries")),
    ("data", _under("data")),
]


def extract_records(payload: Any, rules: list[ExtractionRule]) -> list:
    """Pull the record list out of a response payload.

    Raises:
        ParseError: If no rule recognises the payload shape.
    """
    for name, rule in rules:
        records = rule(payload)
        if records is not None:
            log.debug("payload_shape_matched", rule=name, records=len(records))
            return records
    raise ParseError(f"Unrecognised payload shape: {type(payload).__name__}")


def _first_text(raw: dict, *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def map_reservation(raw: Any) -> Reservation:
    """Map one backend (or cached) reservation record to the canonical model.

    Room comes from `classroom`, `roomNumber` or `room`, whichever is set
    first. Missing start/end times are recovered from a "start - end" `time`
    string. A missing status means Pending.

    Raises:
        ParseError: If the record has no id, an unknown status, or isn't a mapping.
    """
    if not isinstance(raw, dict):
        raise ParseError(f"Reservation record is not an object: {raw!r}")
    if raw.get("id") in (None, ""):
        raise ParseError("Reservation record has no id")

    start = raw.get("startTime") or ""
    end = raw.get("endTime") or ""
    if not (start and end):
        halves = split_time_range(raw.get("time") or "")
        if halves:
            start = start or halves[0]
            end = end or halves[1]

    try:
        return Reservation.model_validate(
            {
                "id": raw["id"],
                "room": _first_text(raw, "classroom", "roomNumber", "room"),
                "classroomId": _first_text(raw, "classroomId") or None,
                "date": _first_text(raw, "date"),
                "startTime": start,
                "endTime": end,
                "purpose": _first_text(raw, "purpose"),
                "notes": raw.get("notes") or None,
                "status": raw.get("status") or ReservationStatus.PENDING,
            }
        )
    except ValidationError as e:
        raise ParseError(f"Invalid reservation {raw.get('id')!r}: {e}") from e


def map_timetable_entry(raw: Any, days: Iterable[str]) -> TimetableEntry:
    """Map one backend timetable record, rejecting days outside the displayed set.

    Raises:
        ParseError: If the record isn't a mapping, has no id or an unrecognised day.
    """
    if not isinstance(raw, dict):
        raise ParseError(f"Timetable record is not an object: {raw!r}")
    day = raw.get("day")
    if not isinstance(day, str) or day not in set(days):
        raise ParseError(f"Unrecognised day {day!r}")
    if raw.get("id") in (None, ""):
        raise ParseError("Timetable record has no id")

    participants = raw.get("participants")
    try:
        return TimetableEntry.model_validate(
            {
                "id": raw["id"],
                "name": raw.get("name") or "Unnamed Course",
                "instructor": raw.get("instructor") or None,
                "location": raw.get("location") or "TBD",
                "day": day,
                "startTime": raw.get("startTime"),
                "endTime": raw.get("endTime"),
                "color": raw.get("color") or "#6366f1",
                "type": raw.get("type") or "Lecture",
                "participants": participants if isinstance(participants, int) else None,
            }
        )
    except ValidationError as e:
        raise ParseError(f"Invalid timetable entry {raw.get('id')!r}: {e}") from e


def map_reservations(records: Iterable[Any]) -> list[Reservation]:
    """Map a batch, dropping (and logging) records that don't parse."""
    mapped: list[Reservation] = []
    for raw in records:
        try:
            mapped.append(map_reservation(raw))
        except ParseError as e:
            log.warning("reservation_record_dropped", error=str(e))
    return mapped


def map_timetable_entries(records: Iterable[Any], days: Iterable[str]) -> list[TimetableEntry]:
    """Map a batch of timetable records, dropping invalid ones."""
    day_list = list(days)
    mapped: list[TimetableEntry] = []
    for raw in records:
        try:
            mapped.append(map_timetable_entry(raw, day_list))
        except ParseError as e:
            log.warning("timetable_record_dropped", error=str(e))
    return mapped


def group_by_day(
    entries: Iterable[TimetableEntry], days: Iterable[str]
) -> dict[str, list[TimetableEntry]]:
    """Group entries into a day -> entries map holding every displayed day."""
    grouped: dict[str, list[TimetableEntry]] = {day: [] for day in days}
    for entry in entries:
        if entry.day in grouped:
            grouped[entry.day].append(entry)
    return grouped


def parse_reservation_payload(payload: Any) -> list[Reservation]:
    """Extract and canonicalise a reservation collection from any known envelope."""
    return map_reservations(extract_records(payload, RESERVATION_EXTRACTION_RULES))


def parse_timetable_payload(payload: Any, days: Iterable[str]) -> list[TimetableEntry]:
    """Extract and canonicalise timetable entries from any known envelope."""
    return map_timetable_entries(extract_records(payload, TIMETABLE_EXTRACTION_RULES), days)
