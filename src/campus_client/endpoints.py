"""Endpoint strategy catalogue.

The backend serves the same logical operation on several paths depending on
its version and the caller's role. Each function here returns the ordered list
of strategies for one operation; run_fallback decides which one answers.
Paths are relative to the configured API base URL.
"""

from enum import Enum
from typing import Any

from src.campus_client.cache import PROFESSOR_RESERVATIONS_KEY, STUDENT_RESERVATIONS_KEY
from src.campus_client.fallback import Strategy
from src.campus_client.models import Reservation
from src.campus_client.transport import ApiTransport


class Audience(str, Enum):
    """Whose reservations are being viewed."""

    PROFESSOR = "professor"
    STUDENT = "student"

    @property
    def cache_key(self) -> str:
        if self is Audience.PROFESSOR:
            return PROFESSOR_RESERVATIONS_KEY
        return STUDENT_RESERVATIONS_KEY


def _get(transport: ApiTransport, name: str, path: str, **kwargs: Any) -> Strategy:
    async def call() -> Any:
        return (await transport.get(path, **kwargs)).data

    return Strategy(name=name, call=call)


def _put(transport: ApiTransport, name: str, path: str, body: Any = None) -> Strategy:
    async def call() -> Any:
        return (await transport.put(path, json=body)).data

    return Strategy(name=name, call=call)


def fetch_strategies(transport: ApiTransport, audience: Audience) -> list[Strategy]:
    """Reservation list for the current user."""
    if audience is Audience.PROFESSOR:
        return [
            _get(transport, "professor_reservations", "/professor/reservations"),
            _get(
                transport,
                "professor_my_reservations",
                "/professor/reservations/my-reservations",
            ),
        ]
    return [
        _get(transport, "student_my_reservations", "/student/my-reservations"),
    ]


def cancel_strategies(
    transport: ApiTransport, audience: Audience, reservation_id: str
) -> list[Strategy]:
    """Cancellation paths, most specific first; the student path is the last resort."""
    professor = _put(
        transport, "professor_cancel", f"/professor/reservations/{reservation_id}/cancel"
    )
    generic = _put(transport, "reservation_cancel", f"/reservations/{reservation_id}/cancel")
    student = _put(transport, "student_cancel", f"/student/reservations/{reservation_id}/cancel")
    if audience is Audience.PROFESSOR:
        return [professor, generic, student]
    return [student, generic]


def edit_body(reservation: Reservation) -> dict[str, Any]:
    """Request body for create/update calls."""
    return {
        "classroomId": reservation.classroom_id,
        "classroom": reservation.room,
        "date": reservation.date,
        "startTime": reservation.start_time,
        "endTime": reservation.end_time,
        "purpose": reservation.purpose,
        "notes": reservation.notes or "",
    }


def edit_strategies(
    transport: ApiTransport, audience: Audience, reservation: Reservation
) -> list[Strategy]:
    """Update paths, ending with the cancel-then-recreate fallback."""
    body = edit_body(reservation)
    rid = reservation.id

    if audience is Audience.PROFESSOR:
        direct = _put(transport, "professor_update", f"/professor/reservations/{rid}", body)
        cancel_path = f"/professor/reservations/{rid}/cancel"
        create_path = "/professor/reservations/request"
        create_body = body
    else:
        direct = _put(
            transport, "student_update", f"/student/study-room-reservations/{rid}", body
        )
        cancel_path = f"/student/reservations/{rid}/cancel"
        create_path = "/student/study-room-reservations"
        create_body = {"roomId": reservation.classroom_id, **body}

    async def cancel_then_recreate() -> Any:
        await transport.put(cancel_path)
        return (await transport.post(create_path, json=create_body)).data

    return [
        direct,
        _put(transport, "reservation_update", f"/reservations/{rid}", body),
        Strategy(name="cancel_then_recreate", call=cancel_then_recreate),
    ]


def timetable_strategies(transport: ApiTransport, user_id: str = "") -> list[Strategy]:
    """Current user's timetable."""
    strategies = [_get(transport, "my_timetable", "/timetable/my-timetable")]
    if user_id:
        strategies.append(_get(transport, "user_timetable", f"/users/{user_id}/timetable"))
    return strategies


def export_strategies(transport: ApiTransport, user_id: str, fmt: str = "ics") -> list[Strategy]:
    """Server-generated calendar export."""
    if not user_id:
        return []
    return [
        _get(
            transport,
            "server_export",
            f"/users/{user_id}/timetable/export",
            params={"format": fmt},
        )
    ]
