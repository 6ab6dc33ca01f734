"""
Decides which recurring entries take place on a given date.

Activity rule: an entry is active on (date, academic week, parity) iff
    the calendar is inside the semester (week_number != 0)
    AND date's iso-weekday == entry.iso_weekday
    AND (entry.active_weeks is empty OR contains the academic week)
    AND (entry.parity is ALL OR equals the calendar parity)
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from campusweek.model import AcademicCalendarPosition, Parity, ScheduleEntry


def _valid_weekday(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 7


def matches_weekday(entry: ScheduleEntry, on: date) -> bool:
    """
    Weekday-only check. Malformed weekdays never match.
    """
    return _valid_weekday(entry.iso_weekday) and on.isoweekday() == entry.iso_weekday


def is_active(entry: ScheduleEntry, on: date, calendar: AcademicCalendarPosition) -> bool:
    """
    Return True if entry takes place on the given date.

    Never raises for bad entry data: a malformed weekday is simply never active.
    """
    if calendar.week_number == 0:
        return False
    if not matches_weekday(entry, on):
        return False
    if entry.active_weeks and calendar.week_number not in entry.active_weeks:
        return False
    if entry.parity != Parity.ALL and entry.parity != calendar.parity:
        return False
    return True


def dedupe_entries(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    """
    Keep one entry per id.

    The last record seen for an id wins; output order follows the first
    appearance of each id.
    """
    by_id: dict[str, ScheduleEntry] = {}
    for entry in entries:
        by_id[entry.id] = entry
    return list(by_id.values())


def filter_active(
    entries: Iterable[ScheduleEntry], on: date, calendar: AcademicCalendarPosition
) -> list[ScheduleEntry]:
    """
    Order-preserving filter of the entries active on the given date.
    Duplicated ids are collapsed first (see dedupe_entries).
    """
    return [e for e in dedupe_entries(entries) if is_active(e, on, calendar)]
