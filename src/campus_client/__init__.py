"""Campus reservation and timetable client.

Keeps a user's reservations and weekly timetable in step with a backend whose
endpoints vary between deployments, and stays usable offline through a local
cache mirror.
"""

from src.campus_client.endpoints import Audience
from src.campus_client.export import ScheduleExporter
from src.campus_client.fallback import Strategy, run_fallback
from src.campus_client.grid import DEFAULT_SLOTS, layout_day, layout_week
from src.campus_client.models import Reservation, ReservationQuery, ReservationStatus, TimetableEntry
from src.campus_client.pipeline import apply_query
from src.campus_client.reservations import ReservationService
from src.campus_client.timetable import TimetableService
from src.campus_client.timeutils import normalize_time

__all__ = [
    "Audience",
    "DEFAULT_SLOTS",
    "Reservation",
    "ReservationQuery",
    "ReservationService",
    "ReservationStatus",
    "ScheduleExporter",
    "Strategy",
    "TimetableEntry",
    "TimetableService",
    "apply_query",
    "layout_day",
    "layout_week",
    "normalize_time",
    "run_fallback",
]
