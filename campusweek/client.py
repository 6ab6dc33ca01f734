"""
HTTP client for the student portal API.

Only fetching lives here. Responses are handed to normalize.py straight
away, so callers always get canonical model objects back.

There is no retry logic: a failed request raises ScheduleServiceError and
the caller decides what to show.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from campusweek.config import (
    ACADEMIC_CALENDAR_PATH,
    DEFAULT_HEADERS,
    SCHEDULE_MY_PATH,
    SCHEDULE_WEEKLY_PATH,
    Settings,
    load_settings,
)
from campusweek.errors import ScheduleServiceError
from campusweek.model import AcademicCalendarPosition, Parity, ScheduleEntry
from campusweek.normalize import normalize_calendar, normalize_entries

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error. Please try again later."
GENERIC_ERROR_MESSAGE = "An error occurred while fetching the schedule"
NETWORK_ERROR_MESSAGE = "A network error occurred while fetching the schedule"
INVALID_DATA_MESSAGE = "Invalid schedule data received from server"


@dataclass
class WeeklySchedule:
    """
    Result of the weekly schedule endpoint: entries plus the calendar
    position the server reported alongside them.
    """

    entries: List[ScheduleEntry]
    calendar: AcademicCalendarPosition


# ---------------------------------------------------------------------------
# Core request helper
# ---------------------------------------------------------------------------


def _error_from_response(resp: requests.Response) -> ScheduleServiceError:
    if resp.status_code == 500:
        return ScheduleServiceError(SERVER_ERROR_MESSAGE, status_code=500)
    message = GENERIC_ERROR_MESSAGE
    try:
        payload = resp.json()
        if isinstance(payload, dict) and payload.get("message"):
            message = str(payload["message"])
    except ValueError:
        pass
    return ScheduleServiceError(message, status_code=resp.status_code)


def _get_json(
    url: str,
    settings: Settings,
    params: Optional[Dict[str, Any]] = None,
    token: Optional[str] = None,
) -> Any:
    """
    GET url and return the decoded JSON body.
    Raises ScheduleServiceError for network errors, HTTP errors and non-JSON bodies.
    """
    headers = dict(DEFAULT_HEADERS)
    if token:
        headers["Authorization"] = f"Bearer {token}"

    logger.debug("GET %s params=%r", url, params)
    try:
        resp = requests.get(url, params=params, headers=headers, timeout=settings.timeout)
    except requests.RequestException as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        raise ScheduleServiceError(NETWORK_ERROR_MESSAGE) from exc

    try:
        resp.raise_for_status()
    except requests.HTTPError as exc:
        logger.warning("Request to %s returned HTTP %s", url, resp.status_code)
        raise _error_from_response(resp) from exc

    try:
        return resp.json()
    except ValueError as exc:
        raise ScheduleServiceError(INVALID_DATA_MESSAGE, status_code=resp.status_code) from exc


def _unwrap(payload: Any) -> Any:
    """
    The API wraps results as {"success": ..., "data": ...}.
    """
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fetch_academic_calendar(settings: Optional[Settings] = None) -> AcademicCalendarPosition:
    """
    Fetch the current academic week number and parity.
    """
    settings = settings or load_settings()
    data = _unwrap(_get_json(settings.url(ACADEMIC_CALENDAR_PATH), settings))
    position = normalize_calendar(data)
    if position is None:
        raise ScheduleServiceError(INVALID_DATA_MESSAGE)
    logger.info("Academic week %s (%s)", position.week_number, position.parity.value)
    return position


def fetch_weekly_schedule(
    faculty_id: str,
    specialization: str,
    study_year: int,
    group_name: str,
    subgroup: Optional[str] = None,
    week: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> WeeklySchedule:
    """
    Fetch the recurring timetable of one group (and optionally subgroup).
    """
    settings = settings or load_settings()

    path = f"{SCHEDULE_WEEKLY_PATH}/{faculty_id}/{specialization}/{study_year}/{group_name}"
    if subgroup and subgroup.strip():
        path += f"/{subgroup.strip()}"
    params = {"week": week} if week else None

    data = _unwrap(_get_json(settings.url(path), settings, params=params))
    if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
        raise ScheduleServiceError(INVALID_DATA_MESSAGE)

    entries = normalize_entries(data["courses"])

    # The server sometimes omits the position; week 1 is what the app assumed
    calendar = normalize_calendar(data)
    if calendar is None:
        calendar = AcademicCalendarPosition(week_number=1, parity=Parity.ODD)

    logger.info("Fetched %d schedule entries for %s", len(entries), group_name)
    return WeeklySchedule(entries=entries, calendar=calendar)


def fetch_my_schedule(token: str, settings: Optional[Settings] = None) -> List[ScheduleEntry]:
    """
    Fetch the signed-in student's own timetable.
    """
    settings = settings or load_settings()
    data = _unwrap(_get_json(settings.url(SCHEDULE_MY_PATH), settings, token=token))
    if not isinstance(data, list):
        raise ScheduleServiceError(INVALID_DATA_MESSAGE)
    return normalize_entries(data)
