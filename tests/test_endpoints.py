"""
Unit tests for the endpoint strategy catalogue.
"""

import httpx
import pytest

from src.campus_client.endpoints import (
    Audience,
    cancel_strategies,
    edit_body,
    edit_strategies,
    export_strategies,
    fetch_strategies,
    timetable_strategies,
)
from src.campus_client.models import Reservation
from src.campus_client.transport import ApiTransport


@pytest.fixture
def transport():
    """Strategies are only built here, never run."""
    return ApiTransport("http://campus.test/api", client=httpx.AsyncClient())


def names(strategies):
    return [s.name for s in strategies]


class TestCatalogue:
    """Test cases for strategy ordering per audience."""

    def test_fetch(self, transport):
        assert names(fetch_strategies(transport, Audience.PROFESSOR)) == [
            "professor_reservations",
            "professor_my_reservations",
        ]
        assert names(fetch_strategies(transport, Audience.STUDENT)) == ["student_my_reservations"]

    def test_cancel(self, transport):
        assert names(cancel_strategies(transport, Audience.PROFESSOR, "1")) == [
            "professor_cancel",
            "reservation_cancel",
            "student_cancel",
        ]
        assert names(cancel_strategies(transport, Audience.STUDENT, "1")) == [
            "student_cancel",
            "reservation_cancel",
        ]

    def test_edit(self, transport):
        r = Reservation(id="1")
        assert names(edit_strategies(transport, Audience.PROFESSOR, r)) == [
            "professor_update",
            "reservation_update",
            "cancel_then_recreate",
        ]
        assert names(edit_strategies(transport, Audience.STUDENT, r))[0] == "student_update"

    def test_timetable_and_export(self, transport):
        assert names(timetable_strategies(transport)) == ["my_timetable"]
        assert names(timetable_strategies(transport, "u-1")) == ["my_timetable", "user_timetable"]
        assert export_strategies(transport, "") == []
        assert names(export_strategies(transport, "u-1")) == ["server_export"]

    def test_cache_keys(self):
        assert Audience.PROFESSOR.cache_key == "professor_reservations"
        assert Audience.STUDENT.cache_key == "student_reservations"

    def test_edit_body(self):
        r = Reservation(id="1", room="B-2", classroom_id="c-2", date="2099-01-01", start_time="9:00", end_time="10:00")

        assert edit_body(r) == {
            "classroomId": "c-2",
            "classroom": "B-2",
            "date": "2099-01-01",
            "startTime": "09:00",
            "endTime": "10:00",
            "purpose": "",
            "notes": "",
        }
