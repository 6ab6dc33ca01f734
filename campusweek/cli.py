"""
CLI (Command Line Interface).

    campusweek day   [--date YYYY-MM-DD] [--week N --parity ODD|EVEN] [--json]
    campusweek week  [--date YYYY-MM-DD] ...
    campusweek month [--date YYYY-MM-DD] [--pad] [--semester-start YYYY-MM-DD] ...
    campusweek calendar
    campusweek fetch --faculty F --specialization S --year Y --group G [--subgroup X]

Schedule views are rendered from the local cache (see storage.py) unless
--entries points at a JSON file. The academic calendar position comes from
--week/--parity, else from --semester-start, else from the cache.

This is the only place that reads the current date.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from campusweek.client import fetch_academic_calendar, fetch_weekly_schedule
from campusweek.errors import ScheduleServiceError
from campusweek.model import (
    AcademicCalendarPosition,
    CourseOccurrence,
    Parity,
    ScheduleView,
    ViewMode,
)
from campusweek.projector import group_by_date, project
from campusweek.storage import load_calendar, load_entries, save_calendar, save_entries
from campusweek.weeks import SemesterCalendar, week_dates

console = Console()


def _today() -> date:
    return date.today()


def _stamped(position: AcademicCalendarPosition) -> AcademicCalendarPosition:
    """
    Record which date a freshly fetched position belongs to, so month views
    later filter the right iso-week with it.
    """
    if position.as_of is None:
        return replace(position, as_of=_today())
    return position


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {text!r}")


def _resolve_calendar(args: argparse.Namespace, anchor: date) -> Optional[AcademicCalendarPosition]:
    """
    Pick the calendar position: explicit flags, then semester start, then cache.
    """
    if args.week is not None:
        parity = Parity(args.parity) if args.parity else Parity.for_week(args.week)
        return AcademicCalendarPosition(week_number=args.week, parity=parity, as_of=anchor)
    if args.semester_start is not None:
        return SemesterCalendar(args.semester_start, args.semester_weeks).position(anchor)
    return load_calendar()


def _render_table(title: str, occurrences: list[CourseOccurrence], show_date: bool) -> None:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    if show_date:
        table.add_column("Date")
    table.add_column("Time")
    table.add_column("Course")
    table.add_column("Type")
    table.add_column("Room")
    table.add_column("Teacher")
    for occ in occurrences:
        course = f"{occ.code} {occ.title}".strip()
        if not occ.week_filtered:
            course += " *"
        row = [occ.time_range, course, occ.kind.value, occ.room, occ.teacher_name]
        if show_date:
            row.insert(0, occ.date.strftime("%a %d.%m."))
        table.add_row(*row)
    console.print(table)


def _render_week(anchor: date, occurrences: list[CourseOccurrence]) -> None:
    for day, day_occs in group_by_date(occurrences, dates=week_dates(anchor)).items():
        heading = day.strftime("%A %d %B")
        if not day_occs:
            console.print(f"[bold]{heading}[/bold]  No events")
            continue
        _render_table(heading, day_occs, show_date=False)


def _cmd_view(args: argparse.Namespace, mode: ViewMode) -> int:
    """
    Project the schedule for one view and print it.
    """
    anchor = args.date or _today()

    entries = load_entries(args.entries)
    calendar = _resolve_calendar(args, anchor)
    if calendar is None:
        console.print("Academic calendar not available. Run 'campusweek calendar' or pass --week.")
        return 1

    week_lookup = None
    if mode is ViewMode.MONTH and args.semester_start is not None:
        week_lookup = SemesterCalendar(args.semester_start, args.semester_weeks)

    view = ScheduleView(mode=mode, anchor_date=anchor, pad_weeks=getattr(args, "pad", False))
    occurrences = project(entries, calendar, view, week_lookup=week_lookup)

    if args.json:
        print(json.dumps([o.to_dict() for o in occurrences], ensure_ascii=False, indent=2))
        return 0

    if calendar.outside_semester:
        console.print("Outside semester this week.")
    if not occurrences and mode is not ViewMode.WEEK:
        console.print("No classes.")
        return 0

    if mode is ViewMode.DAY:
        _render_table(f"{anchor.isoformat()} (week {calendar.week_number}, {calendar.parity.value})", occurrences, show_date=False)
    elif mode is ViewMode.WEEK:
        _render_week(anchor, occurrences)
    else:
        _render_table(anchor.strftime("%B %Y"), occurrences, show_date=True)
        if any(not o.week_filtered for o in occurrences):
            console.print("* unverified: academic week unknown, matched by weekday only")
    return 0


def _cmd_calendar(args: argparse.Namespace) -> int:
    """
    Fetch the current academic calendar position and cache it.
    """
    try:
        position = fetch_academic_calendar()
    except ScheduleServiceError as exc:
        console.print(f"Error: {exc}")
        return 1
    position = _stamped(position)
    save_calendar(position)
    console.print(f"Academic week {position.week_number} ({position.parity.value})")
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    """
    Fetch a group's weekly schedule and cache entries + calendar position.
    """
    try:
        result = fetch_weekly_schedule(
            args.faculty,
            args.specialization,
            args.year,
            args.group,
            subgroup=args.subgroup,
            week=args.week,
        )
    except ScheduleServiceError as exc:
        console.print(f"Error: {exc}")
        return 1
    save_entries(result.entries)
    # a position for an explicitly requested week is not today's, keep the cached one
    if args.week is None:
        save_calendar(_stamped(result.calendar))
    console.print(f"Saved {len(result.entries)} entries (academic week {result.calendar.week_number})")
    return 0


def _add_view_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--date", type=_iso_date, default=None, help="Anchor date (default: today)")
    p.add_argument("--entries", type=Path, default=None, help="Schedule JSON file (default: cache)")
    p.add_argument("--week", type=int, default=None, help="Academic week number (0 = outside semester)")
    p.add_argument("--parity", choices=[Parity.ODD.value, Parity.EVEN.value], default=None)
    p.add_argument("--semester-start", type=_iso_date, default=None, help="First day of the semester")
    p.add_argument("--semester-weeks", type=int, default=None, help="Number of weeks in the semester")
    p.add_argument("--json", action="store_true", help="Print occurrences as JSON")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="campusweek", description="Academic week schedule CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    _add_view_arguments(sub.add_parser("day", help="Classes on one day"))
    _add_view_arguments(sub.add_parser("week", help="Classes in one iso-week"))
    p_month = sub.add_parser("month", help="Classes in one month")
    _add_view_arguments(p_month)
    p_month.add_argument("--pad", action="store_true", help="Extend the month to whole weeks")

    sub.add_parser("calendar", help="Fetch and cache the academic calendar position")

    p_fetch = sub.add_parser("fetch", help="Fetch and cache a group's weekly schedule")
    p_fetch.add_argument("--faculty", required=True)
    p_fetch.add_argument("--specialization", required=True)
    p_fetch.add_argument("--year", type=int, required=True)
    p_fetch.add_argument("--group", required=True)
    p_fetch.add_argument("--subgroup", default=None)
    p_fetch.add_argument("--week", type=int, default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    if args.command in ("day", "week", "month"):
        if args.week is not None and args.week < 0:
            console.print("--week must be 0 or a positive number.")
            raise SystemExit(2)
        raise SystemExit(_cmd_view(args, ViewMode(args.command)))
    if args.command == "calendar":
        raise SystemExit(_cmd_calendar(args))
    if args.command == "fetch":
        raise SystemExit(_cmd_fetch(args))

    raise SystemExit(2)
