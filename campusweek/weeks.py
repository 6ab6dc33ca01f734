"""
Calendar arithmetic on iso-weeks.

Every function takes its reference date explicitly. Nothing in here reads
the current time, so results are fully deterministic.

Iso-weekday numbering: Monday=1 ... Sunday=7.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from campusweek.errors import InvalidArgument
from campusweek.model import AcademicCalendarPosition, Parity


def week_start(reference: date) -> date:
    """
    Return the Monday of the iso-week containing reference.
    """
    return reference - timedelta(days=reference.isoweekday() - 1)


def resolve_date(reference: date, iso_weekday: int) -> date:
    """
    Return the date with the given iso-weekday inside reference's iso-week.

    The anchor is always Monday, so a Sunday reference still resolves into
    its own week. Raises InvalidArgument if iso_weekday is not in 1..7.
    """
    # bool is an int subclass, but True/False are never weekdays
    if isinstance(iso_weekday, bool) or not isinstance(iso_weekday, int) or not 1 <= iso_weekday <= 7:
        raise InvalidArgument(f"iso_weekday must be an int in 1..7, got {iso_weekday!r}")
    return week_start(reference) + timedelta(days=iso_weekday - 1)


def week_dates(reference: date) -> List[date]:
    """
    The seven dates Monday..Sunday of reference's iso-week.
    """
    return [resolve_date(reference, d) for d in range(1, 8)]


def month_dates(reference: date, pad_weeks: bool = False) -> List[date]:
    """
    Every date of reference's month.

    With pad_weeks the range is widened to whole iso-weeks (Monday on/before
    the 1st through Sunday on/after the last day).
    """
    first = reference.replace(day=1)
    last = reference.replace(day=calendar.monthrange(reference.year, reference.month)[1])
    if pad_weeks:
        first = week_start(first)
        last = resolve_date(last, 7)
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def same_iso_week(a: date, b: date) -> bool:
    return week_start(a) == week_start(b)


@dataclass(frozen=True)
class SemesterCalendar:
    """
    Per-date academic week lookup for one semester.

    Academic week 1 is the iso-week containing start_date; week n starts
    n - 1 weeks after that Monday. Dates before the start, or after
    length_weeks when given, are outside the semester (week 0).

    Instances are callable, so one can be passed straight to
    projector.project(..., week_lookup=...).
    """

    start_date: date
    length_weeks: Optional[int] = None

    def week_number(self, on: date) -> int:
        delta = (week_start(on) - week_start(self.start_date)).days
        if delta < 0:
            return 0
        n = delta // 7 + 1
        if self.length_weeks is not None and n > self.length_weeks:
            return 0
        return n

    def position(self, on: date) -> AcademicCalendarPosition:
        n = self.week_number(on)
        # week 0 has no real parity; EVEN keeps the value well-formed
        parity = Parity.for_week(n) if n else Parity.EVEN
        return AcademicCalendarPosition(week_number=n, parity=parity, as_of=on)

    def __call__(self, on: date) -> AcademicCalendarPosition:
        return self.position(on)
