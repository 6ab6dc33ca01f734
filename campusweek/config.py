"""
Runtime configuration.

Settings come from environment variables so the CLI and tests can point
the client at another API or cache directory without code changes:

    CAMPUSWEEK_API_URL    base URL of the portal API
    CAMPUSWEEK_TIMEOUT    request timeout in seconds
    CAMPUSWEEK_CACHE_DIR  where cached schedule/calendar JSON is kept
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CACHE_DIR = PACKAGE_DIR / "data" / "cache"

# Endpoint paths, relative to the API base URL
ACADEMIC_CALENDAR_PATH = "/time/academic-calendar"
SCHEDULE_WEEKLY_PATH = "/schedule"
SCHEDULE_MY_PATH = "/schedule/my"

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    cache_dir: Path = DEFAULT_CACHE_DIR

    def url(self, path: str) -> str:
        return self.api_url.rstrip("/") + path


def _read_timeout(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid CAMPUSWEEK_TIMEOUT=%r, using %s", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    if value <= 0:
        logger.warning("Ignoring non-positive CAMPUSWEEK_TIMEOUT=%r, using %s", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment (or from the given mapping, for tests).
    """
    source = os.environ if env is None else env
    api_url = (source.get("CAMPUSWEEK_API_URL") or "").strip() or DEFAULT_API_URL
    cache_dir_raw = (source.get("CAMPUSWEEK_CACHE_DIR") or "").strip()
    return Settings(
        api_url=api_url,
        timeout=_read_timeout(source.get("CAMPUSWEEK_TIMEOUT")),
        cache_dir=Path(cache_dir_raw) if cache_dir_raw else DEFAULT_CACHE_DIR,
    )
