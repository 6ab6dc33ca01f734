"""
Normalization (raw API records -> canonical model objects).

The portal backend and older app screens deliver schedule records in several
shapes, e.g.:
- 'weekDay' vs 'weekday' vs a day name
- 'weeks' as a list, a JSON string "[1,2,3]" or a range string "1-7,9"
- one combined 'time' field "10:00 - 11:30" vs separate startTime/endTime
- 'teacher' vs 'teacherName', 'title' vs 'courseTitle', ...

Everything is mapped here, once. The rest of the package only sees
ScheduleEntry / AcademicCalendarPosition.

Rules:
- a record that cannot be understood is skipped (logged), never fatal
- times are kept as strings; the projector decides if they are usable
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from campusweek.model import AcademicCalendarPosition, CourseKind, Parity, ScheduleEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field aliases
# ---------------------------------------------------------------------------

ID_KEYS = ("id", "scheduleId", "schedule_id")
TITLE_KEYS = ("title", "courseTitle", "course_title")
CODE_KEYS = ("code", "courseCode", "course_code")
KIND_KEYS = ("type", "courseType", "course_type", "kind")
START_KEYS = ("startTime", "start_time")
END_KEYS = ("endTime", "end_time")
ROOM_KEYS = ("room", "location")
TEACHER_KEYS = ("teacher", "teacherName", "teacher_name")
GROUP_KEYS = ("group", "groupName", "group_name")
SUBGROUP_KEYS = ("subgroup", "subgroupIndex", "subgroup_index")
WEEKDAY_KEYS = ("weekDay", "weekday", "isoWeekday", "iso_weekday", "day")
WEEKS_KEYS = ("weeks", "activeWeeks", "active_weeks")

# No academic year has more iso-weeks than this
MAX_WEEK = 53

DAY_NAMES: Dict[str, int] = {
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
    "sunday": 7,
}


def _first(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """
    Return the value of the first alias present (and not None) in raw.
    """
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _text(raw: Mapping[str, Any], keys: Sequence[str]) -> str:
    value = _first(raw, keys)
    return "" if value is None else str(value).strip()


# ---------------------------------------------------------------------------
# Single field parsers
# ---------------------------------------------------------------------------


def normalize_kind(value: Any) -> CourseKind:
    """
    Map the many spellings of a course type onto CourseKind.
    Unknown values fall back to LECTURE.
    """
    text = "" if value is None else str(value).strip().upper()
    if text in ("LAB", "LABORATORY", "COURSE"):
        return CourseKind.LAB
    if text == "SEMINAR":
        return CourseKind.SEMINAR
    return CourseKind.LECTURE


def normalize_parity(value: Any) -> Parity:
    """
    'odd'/'even' in any case; 'all', 'both' or nothing mean every week.
    """
    text = "" if value is None else str(value).strip().upper()
    if text == "ODD":
        return Parity.ODD
    if text == "EVEN":
        return Parity.EVEN
    return Parity.ALL


def parse_weekday(value: Any) -> Optional[int]:
    """
    Parse an iso-weekday from an int, a numeric string or an English day name.

    Out-of-range numbers are returned as-is (they simply never match later).
    Returns None if the value cannot be read at all.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value

    text = str(value).strip().lower()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass

    # full names and three-letter abbreviations ("mon", "tue", ...)
    for name, number in DAY_NAMES.items():
        if text == name or (len(text) == 3 and name.startswith(text)):
            return number
    return None


def _parse_week_token(token: str) -> List[int]:
    token = token.strip()
    if not token:
        return []
    if "-" in token:
        a, b = [int(x) for x in token.split("-", 1)]
        if b < a or b > MAX_WEEK:
            raise ValueError(f"Invalid week range: {token!r}")
        return list(range(a, b + 1))
    return [int(token)]


def parse_weeks(value: Any) -> frozenset:
    """
    Parse the set of academic weeks an entry runs in.

    Accepts a list of ints/numeric strings, a JSON array string, or a
    comma-separated string with ranges ("1-7,9"). None or empty -> empty set
    (= every week). Raises ValueError if the value cannot be parsed.
    """
    if value is None:
        return frozenset()

    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(int(str(w).strip()) for w in value)

    text = str(value).strip()
    if not text:
        return frozenset()

    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid weeks value: {value!r}") from exc
        if not isinstance(items, list):
            raise ValueError(f"Invalid weeks value: {value!r}")
        return frozenset(int(str(w).strip()) for w in items)

    weeks: set = set()
    for token in text.split(","):
        weeks.update(_parse_week_token(token))
    return frozenset(weeks)


def parse_time_range(text: str) -> Tuple[str, str]:
    """
    Split a combined time field like "10:00 - 11:30" into (start, end).
    Raises ValueError if there is no '-' separator.
    """
    raw = str(text).replace("Uhr", "").strip()
    if "-" not in raw:
        raise ValueError(f"Invalid time range: {text!r}")
    start, end = [t.strip() for t in raw.split("-", 1)]
    return start, end


def _parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def normalize_entry(raw: Mapping[str, Any]) -> Optional[ScheduleEntry]:
    """
    Map one raw schedule record onto a ScheduleEntry.

    Returns None (and logs why) if the id, weekday or weeks are unusable.
    """
    entry_id = _text(raw, ID_KEYS)
    if not entry_id:
        logger.warning("Dropping schedule record without id: %r", raw)
        return None

    weekday = parse_weekday(_first(raw, WEEKDAY_KEYS))
    if weekday is None:
        logger.warning("Dropping schedule record %s: unreadable weekday", entry_id)
        return None

    try:
        weeks = parse_weeks(_first(raw, WEEKS_KEYS))
    except (TypeError, ValueError):
        logger.warning("Dropping schedule record %s: unreadable weeks %r", entry_id, _first(raw, WEEKS_KEYS))
        return None

    start = _text(raw, START_KEYS)
    end = _text(raw, END_KEYS)

    # Older payloads only carry the combined "time" field
    if not (start and end) and raw.get("time"):
        try:
            start, end = parse_time_range(str(raw["time"]))
        except ValueError:
            logger.debug("Record %s has an unreadable time range %r", entry_id, raw["time"])

    return ScheduleEntry(
        id=entry_id,
        title=_text(raw, TITLE_KEYS),
        code=_text(raw, CODE_KEYS),
        kind=normalize_kind(_first(raw, KIND_KEYS)),
        start_time=start,
        end_time=end,
        iso_weekday=weekday,
        room=_text(raw, ROOM_KEYS),
        teacher_name=_text(raw, TEACHER_KEYS),
        group_name=_text(raw, GROUP_KEYS),
        subgroup=_text(raw, SUBGROUP_KEYS),
        active_weeks=weeks,
        parity=normalize_parity(raw.get("parity")),
    )


def normalize_entries(raws: Iterable[Any]) -> List[ScheduleEntry]:
    """
    Normalize a list of raw records, skipping anything unusable.
    """
    out: List[ScheduleEntry] = []
    for raw in raws:
        if not isinstance(raw, Mapping):
            logger.warning("Ignoring non-object schedule record: %r", raw)
            continue
        entry = normalize_entry(raw)
        if entry is not None:
            out.append(entry)
    return out


def normalize_calendar(raw: Any) -> Optional[AcademicCalendarPosition]:
    """
    Map an academic calendar payload onto AcademicCalendarPosition.

    A missing or non-definite parity ('BOTH', 'ALL') is derived from the
    week number. Returns None if there is no usable week number.
    """
    if not isinstance(raw, Mapping):
        return None

    week_raw = _first(raw, ("weekNumber", "week_number", "week"))
    if week_raw is None or isinstance(week_raw, bool):
        return None
    try:
        week_number = int(str(week_raw).strip())
    except ValueError:
        return None
    if week_number < 0:
        return None

    parity = normalize_parity(raw.get("parity"))
    if parity == Parity.ALL:
        parity = Parity.for_week(week_number) if week_number else Parity.EVEN

    as_of = _parse_date(_first(raw, ("asOf", "as_of", "date")))
    return AcademicCalendarPosition(week_number=week_number, parity=parity, as_of=as_of)
