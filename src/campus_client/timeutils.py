"""Time canonicalisation and week arithmetic.

Everything here is pure and synchronous. The backend hands out times as
"9:00", "09:00:00", full timestamps or already-canonical "HH:MM"; the rest of
the client only ever sees the canonical form.
"""

import re
from datetime import date, datetime, timedelta

UNKNOWN_TIME = "00:00"

# Weekday name -> Python weekday number (0=Monday)
DAY_INDEX = {
    "Monday": 0,
    "Tuesday": 1,
    "Wednesday": 2,
    "Thursday": 3,
    "Friday": 4,
    "Saturday": 5,
    "Sunday": 6,
}

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")
_RANGE_RE = re.compile(r"^\s*(\S+)\s*[-–]\s*(\S+)\s*$")


def _clock(hour: int, minute: int) -> str | None:
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return f"{hour:02d}:{minute:02d}"
    return None


def normalize_time(value: object) -> str:
    """Return a canonical "HH:MM" string for any supported time shape.

    Accepts "H:MM", "HH:MM", "H:MM:SS", "HH:MM:SS" and ISO 8601 date/time
    stamps ("2025-03-25T09:30:00", "2025-03-25 09:30", with or without an
    offset). Timestamps keep their wall-clock time; no timezone conversion is
    applied. Anything else, including None and empty strings, yields "00:00".
    Never raises, and normalizing a canonical value returns it unchanged.
    """
    if not isinstance(value, str):
        return UNKNOWN_TIME
    text = value.strip()
    if not text:
        return UNKNOWN_TIME

    match = _CLOCK_RE.match(text)
    if match:
        return _clock(int(match.group(1)), int(match.group(2))) or UNKNOWN_TIME

    try:
        stamp = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return UNKNOWN_TIME
    return _clock(stamp.hour, stamp.minute) or UNKNOWN_TIME


def is_canonical(value: str) -> bool:
    """True if value is already a well-formed "HH:MM" string."""
    return bool(re.fullmatch(r"\d{2}:\d{2}", value or "")) and normalize_time(value) == value


def to_minutes(canonical: str) -> int:
    """Minutes since midnight for a canonical "HH:MM" time."""
    hours, minutes = canonical.split(":")
    return int(hours) * 60 + int(minutes)


def to_hours(canonical: str) -> float:
    """Fractional hours since midnight ("09:30" -> 9.5)."""
    return to_minutes(canonical) / 60


def split_time_range(text: str) -> tuple[str, str] | None:
    """Split a display range like "10:00 - 12:00" into its two raw halves.

    Returns None when the text isn't a two-part range.
    """
    if not text:
        return None
    match = _RANGE_RE.match(text)
    if not match:
        return None
    return match.group(1), match.group(2)


def format_time_range(start: str, end: str) -> str:
    """Display form of a time range ("09:00 - 10:30")."""
    return f"{start} - {end}"


def parse_date(value: str) -> date | None:
    """Parse a reservation date string; None if it isn't a recognisable date.

    Accepts "YYYY-MM-DD" and full ISO timestamps (the time part is dropped).
    """
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def week_start(today: date, week_offset: int = 0) -> date:
    """Monday of the week containing today, shifted by whole weeks."""
    return today - timedelta(days=today.weekday()) + timedelta(weeks=week_offset)


def week_dates(
    today: date, week_offset: int = 0, days: list[str] | None = None
) -> dict[str, date]:
    """Calendar date of each displayed weekday for the selected week.

    Args:
        today: Reference date (any day within the current week).
        week_offset: 0 for the current week, 1 for next week, -1 for last week.
        days: Weekday names to resolve; defaults to Monday-Friday.

    Returns:
        Dict mapping weekday name to its date, in the order of days.
    """
    monday = week_start(today, week_offset)
    names = days or ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    return {name: monday + timedelta(days=DAY_INDEX[name]) for name in names if name in DAY_INDEX}
