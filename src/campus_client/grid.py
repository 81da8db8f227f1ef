"""Timetable grid layout.

Turns a day's entries into a rendering plan for a fixed set of hourly slots.
Each entry is anchored in the slot matching its start hour; its offset and
height are fractions of one slot's height, so an entry running 09:30-11:00
sits half-way down the 09:00 slot and overlays 1.5 slots. Entries starting
outside the configured slots are left out of the plan.
"""

from collections.abc import Iterable, Mapping, Sequence

from src.campus_client.models import PlacedEntry, TimeSlot, TimetableEntry
from src.campus_client.timeutils import (
    UNKNOWN_TIME,
    normalize_time,
    split_time_range,
    to_minutes,
)


def parse_slot(label: str) -> TimeSlot:
    """Parse "9:00 - 10:00" / "09:00-10:00" into a TimeSlot.

    Raises:
        ValueError: If the label isn't a start-end range.
    """
    halves = split_time_range(label)
    if halves is None:
        raise ValueError(f"Not a time slot: {label!r}")
    start, end = (normalize_time(h) for h in halves)
    if start == UNKNOWN_TIME and halves[0].strip() not in ("0:00", "00:00"):
        raise ValueError(f"Not a time slot: {label!r}")
    return TimeSlot(start=start, end=end)


def parse_slots(labels: Iterable[str]) -> list[TimeSlot]:
    return [parse_slot(label) for label in labels]


def hourly_slots(first_hour: int = 8, last_hour: int = 18) -> list[TimeSlot]:
    """One slot per hour from first_hour up to (not including) last_hour."""
    return [
        TimeSlot(start=f"{hour:02d}:00", end=f"{hour + 1:02d}:00")
        for hour in range(first_hour, last_hour)
    ]


# 08:00-09:00 through 17:00-18:00
DEFAULT_SLOTS = hourly_slots(8, 18)


def slot_index(entry: TimetableEntry, slots: Sequence[TimeSlot]) -> int | None:
    """Index of the slot whose start hour equals the entry's start hour."""
    start_hour = int(entry.start_time.split(":")[0])
    for index, slot in enumerate(slots):
        if slot.start_hour == start_hour:
            return index
    return None


def place_entry(entry: TimetableEntry, slots: Sequence[TimeSlot]) -> PlacedEntry | None:
    """Rendering-plan entry for one timetable entry, or None if no slot matches."""
    index = slot_index(entry, slots)
    if index is None:
        return None
    start_minute = int(entry.start_time.split(":")[1])
    # An end before the start (or an unknown end time) renders as zero height
    height = max(entry.end_hours - entry.start_hours, 0.0)
    return PlacedEntry(
        entry_id=entry.id,
        slot_index=index,
        offset_fraction=start_minute / 60,
        height_fraction=height,
    )


def occupied_slots(entry: TimetableEntry, slots: Sequence[TimeSlot]) -> list[int]:
    """Indices of every slot an entry visually covers (its start slot plus any it spans)."""
    covered = []
    for index, slot in enumerate(slots):
        starts_here = int(entry.start_time.split(":")[0]) == slot.start_hour
        spans = entry.start_hours < slot.start_hour < entry.end_hours
        if starts_here or spans:
            covered.append(index)
    return covered


def _overlaps(a: TimetableEntry, b: TimetableEntry) -> bool:
    return to_minutes(a.start_time) < to_minutes(b.end_time) and to_minutes(
        b.start_time
    ) < to_minutes(a.end_time)


def overlap_columns(entries: Sequence[TimetableEntry]) -> dict[str, tuple[int, int]]:
    """Side-by-side columns for entries whose intervals overlap.

    Entries are clustered into groups of transitively overlapping intervals;
    within a group each entry takes the first column not used by an entry it
    overlaps.

    Returns:
        Dict mapping entry id to (column, columns in its group).
    """
    ordered = sorted(entries, key=lambda e: (to_minutes(e.start_time), to_minutes(e.end_time)))
    result: dict[str, tuple[int, int]] = {}
    group: list[tuple[TimetableEntry, int]] = []
    group_end = -1

    def close_group() -> None:
        width = max((column for _, column in group), default=-1) + 1
        for member, column in group:
            result[member.id] = (column, width)

    for entry in ordered:
        if group and to_minutes(entry.start_time) >= group_end:
            close_group()
            group = []
            group_end = -1
        taken = {column for other, column in group if _overlaps(other, entry)}
        column = 0
        while column in taken:
            column += 1
        group.append((entry, column))
        group_end = max(group_end, to_minutes(entry.end_time))
    if group:
        close_group()
    return result


def layout_day(
    entries: Sequence[TimetableEntry], slots: Sequence[TimeSlot] = DEFAULT_SLOTS
) -> list[PlacedEntry]:
    """Rendering plan for one day, in input order."""
    columns = overlap_columns(entries)
    plan = []
    for entry in entries:
        placed = place_entry(entry, slots)
        if placed is None:
            continue
        column, width = columns.get(entry.id, (0, 1))
        plan.append(placed.model_copy(update={"column": column, "columns": width}))
    return plan


def layout_week(
    day_map: Mapping[str, Sequence[TimetableEntry]],
    slots: Sequence[TimeSlot] = DEFAULT_SLOTS,
) -> dict[str, list[PlacedEntry]]:
    """Rendering plan for every day in a day -> entries map."""
    return {day: layout_day(entries, slots) for day, entries in day_map.items()}
