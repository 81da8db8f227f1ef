"""Filter, search and sort for the reservation list.

apply_query is pure: it derives the displayed subset from scratch on every
call and never mutates its input. Steps run in a fixed order: status, date,
search, sort.
"""

from collections.abc import Iterable
from datetime import date

from src.campus_client.models import Reservation, ReservationQuery, ReservationStatus
from src.campus_client.timeutils import parse_date

ALL = "all"


def _status_key(value: str) -> str:
    key = value.strip().lower()
    return "canceled" if key == "cancelled" else key


def _matches_search(reservation: Reservation, term: str) -> bool:
    fields = (reservation.room, reservation.purpose, reservation.date, reservation.time)
    return any(term in (value or "").lower() for value in fields)


def _is_upcoming(reservation: Reservation, today: date) -> bool:
    parsed = parse_date(reservation.date)
    return parsed is not None and parsed >= today


def _is_past(reservation: Reservation, today: date) -> bool:
    parsed = parse_date(reservation.date)
    return parsed is not None and parsed < today


def _date_sort_key(reservation: Reservation) -> tuple[int, date]:
    # Unparseable dates sort ahead of every real date
    parsed = parse_date(reservation.date)
    return (0, date.min) if parsed is None else (1, parsed)


_SORT_KEYS = {
    "date": _date_sort_key,
    "room": lambda r: (r.room or "").casefold(),
    "status": lambda r: r.status.value.casefold(),
}


def apply_query(
    collection: Iterable[Reservation],
    query: ReservationQuery | None = None,
    *,
    today: date | None = None,
) -> list[Reservation]:
    """Return the displayed subset of a reservation collection.

    Args:
        collection: Canonical reservations, in their stored order.
        query: Filter/search/sort parameters; defaults to ReservationQuery().
        today: Reference date for the upcoming/past filter (defaults to date.today()).

    Returns:
        A new list. Sorting is stable in both directions, so records that
        compare equal keep their original relative order.
    """
    query = query or ReservationQuery()
    today = today or date.today()
    result = list(collection)

    status = _status_key(query.status_filter)
    if status != ALL:
        result = [r for r in result if r.status.value.lower() == status]

    if query.date_filter == "upcoming":
        result = [r for r in result if _is_upcoming(r, today)]
    elif query.date_filter == "past":
        result = [r for r in result if _is_past(r, today)]

    term = query.search_term.strip().lower()
    if term:
        result = [r for r in result if _matches_search(r, term)]

    key = _SORT_KEYS.get(query.sort_key)
    if key is not None:
        result = sorted(result, key=key, reverse=query.sort_direction == "desc")
    return result


def status_counts(collection: Iterable[Reservation]) -> dict[str, int]:
    """Badge counts per status (lower-case keys) plus "all"."""
    counts = {ALL: 0, **{status.value.lower(): 0 for status in ReservationStatus}}
    for reservation in collection:
        counts[ALL] += 1
        counts[reservation.status.value.lower()] += 1
    return counts
