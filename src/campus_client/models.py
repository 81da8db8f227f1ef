"""Pydantic models for reservation and timetable data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Wire names are camelCase (the backend's shape); Python attributes are snake_case.
"""

from enum import Enum
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from src.campus_client.timeutils import (
    DAY_INDEX,
    format_time_range,
    normalize_time,
    to_hours,
)


class ReservationStatus(str, Enum):
    """Lifecycle state of a reservation."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELED = "Canceled"

    @classmethod
    def parse(cls, value: str) -> "ReservationStatus":
        """Map a backend status string ("PENDING", "cancelled", ...) to a member.

        Raises:
            ValueError: If the string names no known status.
        """
        key = (value or "").strip().lower()
        if key == "cancelled":
            key = "canceled"
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ValueError(f"Unknown reservation status {value!r}")


class Reservation(BaseModel):
    """A request to occupy a room for an interval.

    `time` is computed from the canonical start/end times, so it can never
    diverge from them. Instances are frozen: a status change produces a new
    record with the same id.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    room: str = ""
    classroom_id: str | None = Field(default=None, alias="classroomId")
    date: str = ""
    start_time: str = Field(default="00:00", alias="startTime")
    end_time: str = Field(default="00:00", alias="endTime")
    purpose: str = ""
    notes: str | None = None
    status: ReservationStatus = ReservationStatus.PENDING

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _canonical_time(cls, value: object) -> str:
        return normalize_time(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, ReservationStatus):
            return ReservationStatus.parse(value)
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def time(self) -> str:
        return format_time_range(self.start_time, self.end_time)

    @property
    def can_cancel(self) -> bool:
        return self.status in (ReservationStatus.PENDING, ReservationStatus.APPROVED)

    @property
    def can_edit(self) -> bool:
        return self.status is ReservationStatus.PENDING

    def to_wire(self) -> dict:
        """JSON-ready dict in the backend's camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)


class TimetableEntry(BaseModel):
    """One scheduled session within a week."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = "Unnamed Course"
    instructor: str | None = None
    location: str = "TBD"
    day: str
    start_time: str = Field(default="00:00", alias="startTime")
    end_time: str = Field(default="00:00", alias="endTime")
    color: str = "#6366f1"
    type: str = "Lecture"
    participants: int | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("day")
    @classmethod
    def _known_day(cls, value: str) -> str:
        if value not in DAY_INDEX:
            raise ValueError(f"Unrecognised day {value!r}")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _canonical_time(cls, value: object) -> str:
        return normalize_time(value)

    @property
    def start_hours(self) -> float:
        return to_hours(self.start_time)

    @property
    def end_hours(self) -> float:
        return to_hours(self.end_time)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TimeSlot(BaseModel):
    """One hourly row of the timetable grid ("09:00-10:00")."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @property
    def start_hour(self) -> int:
        return int(self.start.split(":")[0])

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"


class PlacedEntry(BaseModel):
    """Rendering-plan entry for one timetable entry.

    Offsets and heights are expressed as multiples of one slot's height.
    Derived on every render; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str
    slot_index: int
    offset_fraction: float
    height_fraction: float
    column: int = 0
    columns: int = 1


DateFilter = Literal["all", "upcoming", "past"]
SortKey = Literal["date", "room", "status"]
SortDirection = Literal["asc", "desc"]


class ReservationQuery(BaseModel):
    """Display parameters for the reservation list."""

    model_config = ConfigDict(frozen=True)

    status_filter: str = "all"
    date_filter: DateFilter = "upcoming"
    search_term: str = ""
    sort_key: SortKey = "date"
    sort_direction: SortDirection = "asc"
