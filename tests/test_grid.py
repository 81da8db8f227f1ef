"""
Unit tests for the timetable grid layout.
"""

import pytest

from src.campus_client.grid import (
    DEFAULT_SLOTS,
    layout_day,
    layout_week,
    occupied_slots,
    overlap_columns,
    parse_slot,
    parse_slots,
    place_entry,
)
from src.campus_client.models import TimetableEntry

TWO_SLOTS = parse_slots(["09:00-10:00", "10:00-11:00"])


def entry(entry_id, start, end, day="Monday"):
    return TimetableEntry(id=entry_id, day=day, startTime=start, endTime=end)


class TestSlots:
    """Test cases for slot parsing."""

    def test_parse_slot_variants(self):
        assert parse_slot("9:00 - 10:00").start == "09:00"
        assert parse_slot("09:00-10:00").end == "10:00"
        assert parse_slot("09:00-10:00").label == "09:00-10:00"

    @pytest.mark.parametrize("label", ["morning", "9-10", "xx:00 - 10:00"])
    def test_parse_slot_rejects_garbage(self, label):
        with pytest.raises(ValueError):
            parse_slot(label)

    def test_default_slots(self):
        assert len(DEFAULT_SLOTS) == 10
        assert DEFAULT_SLOTS[0].label == "08:00-09:00"
        assert DEFAULT_SLOTS[-1].label == "17:00-18:00"


class TestPlaceEntry:
    """Test cases for single-entry placement."""

    def test_mid_slot_start_spanning_two_slots(self):
        """Test 09:30-11:00 sits in slot 0, half-way down, 1.5 slots tall."""
        placed = place_entry(entry("a", "09:30", "11:00"), TWO_SLOTS)

        assert placed.slot_index == 0
        assert placed.offset_fraction == 0.5
        assert placed.height_fraction == 1.5

    def test_on_the_hour(self):
        placed = place_entry(entry("a", "10:00", "10:45"), TWO_SLOTS)

        assert placed.slot_index == 1
        assert placed.offset_fraction == 0
        assert placed.height_fraction == 0.75

    def test_start_outside_slots_is_omitted(self):
        assert place_entry(entry("a", "07:30", "09:30"), TWO_SLOTS) is None
        assert place_entry(entry("a", "18:00", "19:00"), DEFAULT_SLOTS) is None

    def test_end_before_start_renders_zero_height(self):
        placed = place_entry(entry("a", "10:00", "09:00"), TWO_SLOTS)
        assert placed.height_fraction == 0

    def test_occupied_slots(self):
        assert occupied_slots(entry("a", "09:30", "11:00"), TWO_SLOTS) == [0, 1]
        assert occupied_slots(entry("b", "09:00", "10:00"), TWO_SLOTS) == [0]


class TestLayout:
    """Test cases for day and week layout."""

    def test_layout_day_keeps_input_order_and_drops_unplaced(self):
        entries = [entry("late", "10:15", "10:45"), entry("early", "06:00", "07:00"), entry("first", "09:00", "09:50")]

        plan = layout_day(entries, TWO_SLOTS)

        assert [p.entry_id for p in plan] == ["late", "first"]
        assert all(p.columns == 1 and p.column == 0 for p in plan)

    def test_overlapping_entries_share_columns(self):
        entries = [
            entry("a", "09:00", "10:30"),
            entry("b", "09:30", "10:00"),
            entry("c", "10:00", "11:00"),
            entry("d", "12:00", "13:00"),
        ]

        columns = overlap_columns(entries)

        assert columns["a"] == (0, 2)
        assert columns["b"] == (1, 2)
        assert columns["c"] == (1, 2)
        assert columns["d"] == (0, 1)

    def test_back_to_back_entries_do_not_overlap(self):
        columns = overlap_columns([entry("a", "09:00", "10:00"), entry("b", "10:00", "11:00")])
        assert columns == {"a": (0, 1), "b": (0, 1)}

    def test_layout_week(self):
        day_map = {
            "Monday": [entry("m", "09:30", "11:00")],
            "Tuesday": [],
        }

        plan = layout_week(day_map, TWO_SLOTS)

        assert list(plan) == ["Monday", "Tuesday"]
        assert plan["Monday"][0].height_fraction == 1.5
        assert plan["Tuesday"] == []
