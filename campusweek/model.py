"""
Central data model definitions used across the project.

This module defines the canonical structure of schedule objects so that:
- all modules share the same field names
- every upstream data shape is mapped once (see normalize.py) and never leaks further
- the resolution code only ever deals with clean, immutable values
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, FrozenSet, Optional


class CourseKind(str, Enum):
    LECTURE = "LECTURE"
    LAB = "LAB"
    SEMINAR = "SEMINAR"


class Parity(str, Enum):
    ALL = "ALL"
    ODD = "ODD"
    EVEN = "EVEN"

    @classmethod
    def for_week(cls, week_number: int) -> "Parity":
        """
        Parity of an academic week: week 1 is ODD, week 2 is EVEN, ...
        """
        return cls.ODD if week_number % 2 else cls.EVEN


class ViewMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class ScheduleEntry:
    """
    One recurring timetable slot as delivered by the schedule service.

    An empty active_weeks set means "every week".
    """

    id: str
    title: str
    code: str
    kind: CourseKind
    start_time: str
    end_time: str
    iso_weekday: int
    room: str = ""
    teacher_name: str = ""
    group_name: str = ""
    subgroup: str = ""
    active_weeks: FrozenSet[int] = field(default_factory=frozenset)
    parity: Parity = Parity.ALL

    def to_dict(self) -> dict[str, Any]:
        """
        Canonical JSON shape. normalize_entry() reads it back unchanged.
        """
        return {
            "id": self.id,
            "title": self.title,
            "code": self.code,
            "type": self.kind.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "weekDay": self.iso_weekday,
            "room": self.room,
            "teacher": self.teacher_name,
            "group": self.group_name,
            "subgroup": self.subgroup,
            "weeks": sorted(self.active_weeks),
            "parity": self.parity.value,
        }


@dataclass(frozen=True)
class AcademicCalendarPosition:
    """
    Where the institution's calendar stands: academic week number and parity.

    week_number == 0 means the date lies outside the semester.
    as_of is the date the position was computed for, when known.
    """

    week_number: int
    parity: Parity
    as_of: Optional[date] = None

    @property
    def outside_semester(self) -> bool:
        return self.week_number == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekNumber": self.week_number,
            "parity": self.parity.value,
            "asOf": self.as_of.isoformat() if self.as_of else None,
        }


@dataclass(frozen=True)
class CourseOccurrence:
    """
    One concrete, dated instance of a ScheduleEntry. Built fresh on every
    projection and never stored.
    """

    id: str
    title: str
    code: str
    kind: CourseKind
    start_time: str
    end_time: str
    room: str
    teacher_name: str
    group_name: str
    subgroup: str
    date: date
    duration_minutes: int
    # False when the academic week of this date was unknown and only the weekday was checked
    week_filtered: bool = True

    @classmethod
    def from_entry(cls, entry: ScheduleEntry, on: date, week_filtered: bool = True) -> "CourseOccurrence":
        """
        Raises ValueError if the entry's times are unusable.
        """
        return cls(
            id=entry.id,
            title=entry.title,
            code=entry.code,
            kind=entry.kind,
            start_time=entry.start_time,
            end_time=entry.end_time,
            room=entry.room,
            teacher_name=entry.teacher_name,
            group_name=entry.group_name,
            subgroup=entry.subgroup,
            date=on,
            duration_minutes=minutes_between(entry.start_time, entry.end_time),
            week_filtered=week_filtered,
        )

    @property
    def time_range(self) -> str:
        start = parse_time_of_day(self.start_time).strftime("%H:%M")
        end = parse_time_of_day(self.end_time).strftime("%H:%M")
        return f"{start} - {end}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "code": self.code,
            "type": self.kind.value,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMinutes": self.duration_minutes,
            "room": self.room,
            "teacher": self.teacher_name,
            "group": self.group_name,
            "subgroup": self.subgroup,
            "weekFiltered": self.week_filtered,
        }


@dataclass(frozen=True)
class ScheduleView:
    """
    What the UI asks for: a mode and the date it is anchored on.

    pad_weeks only affects month mode: the range is extended to whole
    iso-weeks, like a calendar grid that starts on Monday.
    """

    mode: ViewMode
    anchor_date: date
    pad_weeks: bool = False


_TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def parse_time_of_day(text: str) -> time:
    """
    Parse 'HH:MM' or 'HH:MM:SS' into a time.
    Raises ValueError for anything else.
    """
    raw = str(text).strip()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format: {text!r}")


def minutes_between(start: str, end: str) -> int:
    """
    Whole minutes from start to end on the same day.
    Raises ValueError if either time is invalid or end is not after start.
    """
    s = parse_time_of_day(start)
    e = parse_time_of_day(end)
    s_sec = s.hour * 3600 + s.minute * 60 + s.second
    e_sec = e.hour * 3600 + e.minute * 60 + e.second
    if e_sec <= s_sec:
        raise ValueError(f"End time {end!r} is not after start time {start!r}")
    return (e_sec - s_sec) // 60
