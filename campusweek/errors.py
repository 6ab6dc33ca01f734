"""
Exception types shared across the package.
"""

from __future__ import annotations

from typing import Optional


class CampusWeekError(Exception):
    """Base class for all campusweek errors."""


class InvalidArgument(CampusWeekError, ValueError):
    """
    Raised for caller bugs, e.g. an iso-weekday outside 1..7 passed to
    resolve_date(). Bad upstream data is skipped instead, never raised.
    """


class ScheduleServiceError(CampusWeekError):
    """
    Raised by the HTTP client when the portal API cannot deliver data.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
