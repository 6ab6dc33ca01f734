"""
Local cache for the last fetched schedule and academic calendar.

This module manages two files inside the cache directory:

    schedule.json   the recurring timetable entries
    calendar.json   the academic calendar position

Design rationale:
- the CLI can render day/week/month views offline from the last fetch
- the calendar position is shown from cache first, then refreshed
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from campusweek.config import load_settings
from campusweek.model import AcademicCalendarPosition, ScheduleEntry
from campusweek.normalize import normalize_calendar, normalize_entries

logger = logging.getLogger(__name__)

SCHEDULE_FILE = "schedule.json"
CALENDAR_FILE = "calendar.json"


def _default_path(filename: str) -> Path:
    """
    Return the default location of a cache file.

    Using a function instead of a constant lets tests and the environment
    (CAMPUSWEEK_CACHE_DIR) override the directory.
    """
    return load_settings().cache_dir / filename


def _read_json(path: Path) -> object:
    """
    Read JSON from path, or None if the file is missing or broken.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
        return None


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def load_entries(path: str | Path | None = None) -> list[ScheduleEntry]:
    """
    Load cached schedule entries.

    Returns an empty list if the file does not exist or is invalid.
    """
    entries_path = Path(path) if path is not None else _default_path(SCHEDULE_FILE)
    data = _read_json(entries_path)

    # Accept a bare list and the API envelopes {"data": [...]} and {"data": {"courses": [...]}}
    if isinstance(data, dict):
        data = data.get("courses", data.get("data"))
    if isinstance(data, dict):
        data = data.get("courses")
    if not isinstance(data, list):
        return []
    return normalize_entries(data)


def save_entries(entries: Iterable[ScheduleEntry], path: str | Path | None = None) -> None:
    """
    Save schedule entries in their canonical JSON shape.
    """
    entries_path = Path(path) if path is not None else _default_path(SCHEDULE_FILE)
    _write_json(entries_path, [e.to_dict() for e in entries])


def load_calendar(path: str | Path | None = None) -> Optional[AcademicCalendarPosition]:
    """
    Load the cached academic calendar position, or None if there is none.
    """
    calendar_path = Path(path) if path is not None else _default_path(CALENDAR_FILE)
    return normalize_calendar(_read_json(calendar_path))


def save_calendar(position: AcademicCalendarPosition, path: str | Path | None = None) -> None:
    calendar_path = Path(path) if path is not None else _default_path(CALENDAR_FILE)
    _write_json(calendar_path, position.to_dict())
