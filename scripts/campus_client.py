"""Campus reservations and timetable from the command line.

Standalone CLI over the campus_client package. Fetches through the endpoint
fallback chains, falls back to the local cache mirror when the backend is
unreachable, and prints JSON (or a table) on stdout.

Run with: python scripts/campus_client.py reservations
Filter:   python scripts/campus_client.py reservations --status pending --date-filter all --search lab
Student:  python scripts/campus_client.py reservations --audience student --table
Cancel:   python scripts/campus_client.py cancel 42
Grid:     python scripts/campus_client.py timetable
Export:   python scripts/campus_client.py export --week 1 --output data/class_schedule.ics

Configuration comes from CAMPUS_-prefixed environment variables (or .env),
e.g. CAMPUS_API_BASE_URL, CAMPUS_API_TOKEN, CAMPUS_USER_ID.

Exit codes:
  0 = success (JSON or table on stdout, or file written for export)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.campus_client.cache import CacheMirror, JsonFileStore  # noqa: E402
from src.campus_client.config import get_config  # noqa: E402
from src.campus_client.endpoints import Audience  # noqa: E402
from src.campus_client.export import DEFAULT_FILENAME, ScheduleExporter  # noqa: E402
from src.campus_client.grid import DEFAULT_SLOTS, layout_week  # noqa: E402
from src.campus_client.logging import setup_logging  # noqa: E402
from src.campus_client.models import Reservation, ReservationQuery  # noqa: E402
from src.campus_client.reservations import ReservationService  # noqa: E402
from src.campus_client.timetable import TimetableService  # noqa: E402
from src.campus_client.transport import ApiTransport  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Campus reservations and timetable client.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    res = sub.add_parser("reservations", help="List the current user's reservations.")
    res.add_argument(
        "--audience",
        choices=[a.value for a in Audience],
        default=Audience.PROFESSOR.value,
        help="Whose reservation list to fetch (default: professor).",
    )
    res.add_argument(
        "--status",
        default="all",
        help="Status filter: all, pending, approved, rejected, canceled (default: all).",
    )
    res.add_argument(
        "--date-filter",
        choices=["all", "upcoming", "past"],
        default="upcoming",
        help="Date filter relative to today (default: upcoming).",
    )
    res.add_argument("--search", default="", help="Search room, purpose, date or time.")
    res.add_argument(
        "--sort",
        choices=["date", "room", "status"],
        default="date",
        help="Sort key (default: date).",
    )
    res.add_argument("--desc", action="store_true", help="Sort descending.")
    res.add_argument("--table", action="store_true", help="Output a human-readable table.")

    cancel = sub.add_parser("cancel", help="Cancel a reservation (applied locally first).")
    cancel.add_argument("reservation_id", help="Id of the reservation to cancel.")
    cancel.add_argument(
        "--audience",
        choices=[a.value for a in Audience],
        default=Audience.PROFESSOR.value,
        help="Whose reservation list the id belongs to (default: professor).",
    )

    sub.add_parser("timetable", help="Print this week's timetable with its grid layout.")

    export = sub.add_parser("export", help="Export a timetable week as an .ics file.")
    export.add_argument(
        "--week",
        type=int,
        default=0,
        help="Week offset from the current week (0 = this week, 1 = next week).",
    )
    export.add_argument(
        "--output",
        type=str,
        default=DEFAULT_FILENAME,
        help=f"Output file path (default: {DEFAULT_FILENAME}).",
    )
    return parser.parse_args()


def _format_table(reservations: list[Reservation]) -> str:
    """Format reservations as a fixed-width table."""
    if not reservations:
        return "No reservations."
    header = f"{'ID':<8} {'Date':<12} {'Time':<15} {'Room':<12} {'Status':<10} Purpose"
    lines = [header, "-" * len(header)]
    for r in reservations:
        lines.append(
            f"{r.id:<8} {r.date:<12} {r.time:<15} {r.room:<12} {r.status.value:<10} {r.purpose}"
        )
    return "\n".join(lines)


async def _reservations(args: argparse.Namespace, transport: ApiTransport, cache: CacheMirror) -> None:
    config = get_config()
    service = ReservationService.from_config(config, transport, cache, Audience(args.audience))
    result = await service.fetch()
    if result.error:
        _log(f"  {result.error}")

    query = ReservationQuery(
        status_filter=args.status,
        date_filter=args.date_filter,
        search_term=args.search,
        sort_key=args.sort,
        sort_direction="desc" if args.desc else "asc",
    )
    shown = service.view(query)
    _log(f"  {len(shown)} of {len(result.items)} reservations ({result.source}); counts: {service.counts()}")

    if args.table:
        print(_format_table(shown))
    else:
        print(json.dumps([r.to_wire() for r in shown], indent=2))


async def _cancel(args: argparse.Namespace, transport: ApiTransport, cache: CacheMirror) -> None:
    config = get_config()
    service = ReservationService.from_config(config, transport, cache, Audience(args.audience))
    await service.fetch()

    result = await service.cancel(args.reservation_id)
    if not result.ok:
        raise RuntimeError(result.reason)

    # Let the background sync finish before the event loop closes
    await service.drain()
    canceled = next(r for r in result.reservations if r.id == args.reservation_id)
    print(json.dumps(canceled.to_wire(), indent=2))


async def _timetable(transport: ApiTransport, cache: CacheMirror) -> None:
    config = get_config()
    service = TimetableService.from_config(config, transport, cache)
    result = await service.fetch()
    if result.error:
        _log(f"  {result.error}")

    plan = layout_week(result.days, DEFAULT_SLOTS)
    output = {
        "source": result.source,
        "slots": [slot.label for slot in DEFAULT_SLOTS],
        "days": {
            day: {
                "entries": [entry.to_wire() for entry in entries],
                "layout": [placed.model_dump() for placed in plan.get(day, [])],
            }
            for day, entries in result.days.items()
        },
    }
    print(json.dumps(output, indent=2))


async def _export(args: argparse.Namespace, transport: ApiTransport, cache: CacheMirror) -> None:
    config = get_config()
    timetable = TimetableService.from_config(config, transport, cache)
    result = await timetable.fetch()

    exporter = ScheduleExporter.from_config(config, transport)
    exported = await exporter.export(result.days, week_offset=args.week)
    path = exported.write_to(args.output)
    _log(f"  Exported {exported.event_count} events ({exported.source}) -> {path}")


async def main(args: argparse.Namespace) -> None:
    """Run the selected subcommand."""
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    cache = CacheMirror(JsonFileStore(config.cache_dir))
    async with ApiTransport.from_config(config) as transport:
        if args.command == "reservations":
            await _reservations(args, transport, cache)
        elif args.command == "cancel":
            await _cancel(args, transport, cache)
        elif args.command == "timetable":
            await _timetable(transport, cache)
        elif args.command == "export":
            await _export(args, transport, cache)

    _log(f"campus_client {args.command}: done")


if __name__ == "__main__":
    args = _parse_args()
    try:
        asyncio.run(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
