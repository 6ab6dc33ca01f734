"""
Projection of recurring entries onto concrete dates for the day, week and
month views.

The projector is a pure function of its inputs. The caller passes the anchor
date, so "today" is decided at the edge (cli.py), never in here.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, time
from typing import Callable, Iterable, Optional, Sequence

from campusweek.model import (
    AcademicCalendarPosition,
    CourseOccurrence,
    ScheduleEntry,
    ScheduleView,
    ViewMode,
    parse_time_of_day,
)
from campusweek.occurrence import dedupe_entries, filter_active, matches_weekday
from campusweek.weeks import month_dates, same_iso_week, week_dates

logger = logging.getLogger(__name__)

WeekLookup = Callable[[date], Optional[AcademicCalendarPosition]]


def _occurrence(entry: ScheduleEntry, on: date, week_filtered: bool = True) -> Optional[CourseOccurrence]:
    # One broken record must not blank the whole view
    try:
        return CourseOccurrence.from_entry(entry, on, week_filtered=week_filtered)
    except ValueError as exc:
        logger.debug("Skipping entry %s on %s: %s", entry.id, on, exc)
        return None


def _project_day(
    entries: Sequence[ScheduleEntry], on: date, calendar: AcademicCalendarPosition
) -> list[CourseOccurrence]:
    out: list[CourseOccurrence] = []
    for entry in filter_active(entries, on, calendar):
        occ = _occurrence(entry, on)
        if occ is not None:
            out.append(occ)
    return out


def _project_unfiltered_day(entries: Sequence[ScheduleEntry], on: date) -> list[CourseOccurrence]:
    out: list[CourseOccurrence] = []
    for entry in entries:
        if not matches_weekday(entry, on):
            continue
        occ = _occurrence(entry, on, week_filtered=False)
        if occ is not None:
            out.append(occ)
    return out


def _day_key(occ: CourseOccurrence) -> tuple[time, str]:
    return (parse_time_of_day(occ.start_time), occ.id)


def _dated_key(occ: CourseOccurrence) -> tuple[date, time, str]:
    return (occ.date, parse_time_of_day(occ.start_time), occ.id)


def project(
    entries: Iterable[ScheduleEntry],
    calendar: Optional[AcademicCalendarPosition],
    view: ScheduleView,
    week_lookup: Optional[WeekLookup] = None,
) -> list[CourseOccurrence]:
    """
    Resolve recurring entries into dated occurrences for a view.

    - day:   occurrences on view.anchor_date, sorted by start time
    - week:  Monday..Sunday of the anchor's iso-week, sorted by (date, start time)
    - month: every day of the anchor's month, sorted by (date, start time)

    Ties are broken by entry id. Returns [] while calendar is None (still
    loading) or when there are no entries.

    Month view needs the academic week of every date. With week_lookup it is
    asked per date (None = unknown, nothing shown). Without it only the
    iso-week of calendar.as_of (or of the anchor) can be filtered properly;
    the other dates are matched on weekday alone and marked week_filtered=False.
    """
    if calendar is None:
        return []
    unique = dedupe_entries(entries)
    if not unique:
        return []

    mode = ViewMode(view.mode)
    anchor = view.anchor_date

    if mode is ViewMode.DAY:
        return sorted(_project_day(unique, anchor, calendar), key=_day_key)

    out: list[CourseOccurrence] = []

    if mode is ViewMode.WEEK:
        for d in week_dates(anchor):
            out.extend(_project_day(unique, d, calendar))
        return sorted(out, key=_dated_key)

    current_ref = calendar.as_of or anchor
    for d in month_dates(anchor, pad_weeks=view.pad_weeks):
        if week_lookup is not None:
            position = week_lookup(d)
            if position is not None:
                out.extend(_project_day(unique, d, position))
        elif same_iso_week(d, current_ref):
            out.extend(_project_day(unique, d, calendar))
        else:
            out.extend(_project_unfiltered_day(unique, d))
    return sorted(out, key=_dated_key)


def group_by_date(
    occurrences: Iterable[CourseOccurrence], dates: Optional[Iterable[date]] = None
) -> dict[date, list[CourseOccurrence]]:
    """
    Group occurrences per date, keeping their order.

    Dates passed in `dates` are always present (possibly with an empty list),
    so a week view can show its empty days too.
    """
    grouped: dict[date, list[CourseOccurrence]] = {}
    for d in dates or ():
        grouped.setdefault(d, [])
    for occ in occurrences:
        grouped.setdefault(occ.date, []).append(occ)
    return dict(sorted(grouped.items()))


def marked_dates(occurrences: Iterable[CourseOccurrence]) -> dict[date, int]:
    """
    Number of occurrences per date, for marking days on a month grid.
    """
    counts = Counter(occ.date for occ in occurrences)
    return dict(sorted(counts.items()))
