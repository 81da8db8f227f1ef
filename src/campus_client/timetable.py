"""Weekly timetable: fetching, grouping and lookups.

The timetable is held in memory as a day -> entries map covering every
displayed weekday. Fetching goes through the fallback chain; when it is
exhausted the last cached snapshot is used, then the caller's fallback
dataset, then an empty week.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.campus_client.cache import TIMETABLE_KEY, CacheMirror
from src.campus_client.config import DEFAULT_WEEK_DAYS, ClientConfig
from src.campus_client.endpoints import timetable_strategies
from src.campus_client.fallback import run_fallback
from src.campus_client.logging import get_logger
from src.campus_client.mapping import group_by_day, map_timetable_entries, parse_timetable_payload
from src.campus_client.models import TimetableEntry
from src.campus_client.timeutils import DAY_INDEX, to_minutes
from src.campus_client.transport import ApiTransport

log = get_logger(__name__)

DayMap = dict[str, list[TimetableEntry]]

# Monday..Sunday, indexed by datetime.weekday()
_DAY_NAMES = list(DAY_INDEX)


@dataclass
class TimetableResult:
    """Timetable handed to the presentation layer.

    Attributes:
        days: Day -> entries, one key per displayed weekday.
        source: "remote", "cache", "fallback" or "empty".
        strategy: Name of the strategy that answered (remote only).
        error: User-facing message when the server couldn't be reached.
    """

    days: DayMap
    source: str
    strategy: str | None = None
    error: str | None = None

    @property
    def entries(self) -> list[TimetableEntry]:
        return [entry for day_entries in self.days.values() for entry in day_entries]


def _flatten_dataset(dataset: Mapping[str, Sequence[Any]]) -> list[dict]:
    records = []
    for day, items in dataset.items():
        for item in items:
            raw = item.to_wire() if isinstance(item, TimetableEntry) else dict(item)
            raw.setdefault("day", day)
            records.append(raw)
    return records


class TimetableService:
    """Fetches and caches the current user's weekly timetable."""

    def __init__(
        self,
        transport: ApiTransport,
        cache: CacheMirror,
        *,
        user_id: str = "",
        days: Sequence[str] | None = None,
        attempts_per_strategy: int = 1,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.user_id = user_id
        self.days = list(days or DEFAULT_WEEK_DAYS)
        self.attempts_per_strategy = attempts_per_strategy
        self.day_map: DayMap = group_by_day([], self.days)

    @classmethod
    def from_config(
        cls, config: ClientConfig, transport: ApiTransport, cache: CacheMirror
    ) -> "TimetableService":
        return cls(
            transport,
            cache,
            user_id=config.user_id,
            days=config.week_days,
            attempts_per_strategy=config.attempts_per_strategy,
        )

    def _parse(self, payload: Any) -> list[TimetableEntry]:
        return parse_timetable_payload(payload, self.days)

    async def _store(self, entries: list[TimetableEntry]) -> None:
        await self.cache.write(TIMETABLE_KEY, entries)

    async def fetch(self, fallback_dataset: Mapping[str, Sequence[Any]] | None = None) -> TimetableResult:
        """Fetch the timetable; never raises for network failures.

        Args:
            fallback_dataset: Day -> entries used when neither the server nor
                the cache has data.
        """
        outcome = await run_fallback(
            "fetch_timetable",
            timetable_strategies(self.transport, self.user_id),
            mapper=self._parse,
            on_success=self._store,
            attempts_per_strategy=self.attempts_per_strategy,
        )
        if outcome.ok:
            self.day_map = group_by_day(outcome.value or [], self.days)
            log.info("timetable_loaded", source="remote", entries=len(outcome.value or []))
            return TimetableResult(days=self.day_map, source="remote", strategy=outcome.strategy)

        message = "Failed to load timetable data. Using offline data."
        cached = await self.cache.read(TIMETABLE_KEY)
        if cached is not None:
            source = "cache"
            entries = map_timetable_entries(cached, self.days)
        elif fallback_dataset is not None:
            source = "fallback"
            entries = map_timetable_entries(_flatten_dataset(fallback_dataset), self.days)
        else:
            source = "empty"
            entries = []

        self.day_map = group_by_day(entries, self.days)
        log.warning("timetable_loaded", source=source, entries=len(entries))
        return TimetableResult(days=self.day_map, source=source, error=message)


def search_courses(day_map: Mapping[str, Sequence[TimetableEntry]], term: str) -> list[TimetableEntry]:
    """Entries whose name or instructor contains term (case-insensitive)."""
    needle = term.strip().lower()
    if not needle:
        return []
    return [
        entry
        for entries in day_map.values()
        for entry in entries
        if needle in entry.name.lower() or needle in (entry.instructor or "").lower()
    ]


def current_day(now: datetime, days: Sequence[str] = DEFAULT_WEEK_DAYS) -> str:
    """Today's weekday name, or the first displayed day if today isn't displayed."""
    name = _DAY_NAMES[now.weekday()]
    return name if name in days else days[0]


def upcoming_classes(
    day_map: Mapping[str, Sequence[TimetableEntry]],
    now: datetime,
    days: Sequence[str] = DEFAULT_WEEK_DAYS,
    limit: int = 3,
) -> list[TimetableEntry]:
    """Today's classes that haven't started yet, topped up with the next day's.

    Returns at most `limit` entries, in start-time order within each day.
    """
    today = current_day(now, days)
    now_minutes = now.hour * 60 + now.minute
    upcoming = sorted(
        (e for e in day_map.get(today, []) if to_minutes(e.start_time) > now_minutes),
        key=lambda e: to_minutes(e.start_time),
    )
    if len(upcoming) < limit:
        following = days[(list(days).index(today) + 1) % len(days)]
        upcoming += sorted(day_map.get(following, []), key=lambda e: to_minutes(e.start_time))
    return upcoming[:limit]
