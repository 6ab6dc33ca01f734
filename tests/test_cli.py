"""
Tests for CLI entry points.

These tests focus on:
- argument validation (bad dates, negative weeks)
- JSON output of the day/week/month views from a temporary entries file
- the "no calendar" path, using an empty temporary cache directory
  (to avoid touching real cached data during tests)
"""

import contextlib
import io
import json
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest import mock

from campusweek.cli import main
from campusweek.client import WeeklySchedule
from campusweek.errors import ScheduleServiceError
from campusweek.model import AcademicCalendarPosition, Parity
from campusweek.storage import load_calendar

ENTRIES = [
    {"id": "E1", "title": "Algorithms", "startTime": "10:00", "endTime": "11:30", "weekDay": 3, "weeks": [5, 6, 7], "parity": "ODD"},
    {"id": "E2", "title": "Calculus", "startTime": "08:00", "endTime": "09:00", "weekDay": 1},
]


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.entries_path = self.tmp / "entries.json"
        self.entries_path.write_text(json.dumps(ENTRIES), encoding="utf-8")
        env = mock.patch.dict("os.environ", {"CAMPUSWEEK_CACHE_DIR": str(self.tmp / "cache")})
        env.start()
        self.addCleanup(env.stop)
        self.addCleanup(self._tmp.cleanup)

    def run_cli(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(list(argv))
        return ctx.exception.code, out.getvalue()

    def test_day_json(self) -> None:
        code, out = self.run_cli(
            "day", "--date", "2026-10-21", "--entries", str(self.entries_path), "--week", "6", "--parity", "ODD", "--json"
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual([o["id"] for o in data], ["E1"])
        self.assertEqual(data[0]["durationMinutes"], 90)
        self.assertEqual(data[0]["date"], "2026-10-21")

    def test_week_json_sorted(self) -> None:
        code, out = self.run_cli(
            "week", "--date", "2026-10-25", "--entries", str(self.entries_path), "--week", "6", "--parity", "ODD", "--json"
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual([(o["date"], o["id"]) for o in data], [("2026-10-19", "E2"), ("2026-10-21", "E1")])

    def test_month_with_semester_start(self) -> None:
        code, out = self.run_cli(
            "month", "--date", "2026-10-21", "--entries", str(self.entries_path),
            "--semester-start", "2026-09-14", "--json",
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        # week 5 = 2026-10-12, week 7 = 2026-10-26; E1 only runs in odd weeks 5 and 7
        e1_dates = [o["date"] for o in data if o["id"] == "E1"]
        self.assertEqual(e1_dates, ["2026-10-14", "2026-10-28"])

    def test_rendered_day_output(self) -> None:
        code, _ = self.run_cli("day", "--date", "2026-10-21", "--entries", str(self.entries_path), "--week", "6")
        self.assertEqual(code, 0)

    def test_missing_calendar_exits_nonzero(self) -> None:
        code, _ = self.run_cli("day", "--date", "2026-10-21", "--entries", str(self.entries_path))
        self.assertEqual(code, 1)

    def test_bad_date_is_rejected(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["day", "--date", "21.10.2026"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_negative_week_is_rejected(self) -> None:
        code, _ = self.run_cli("day", "--entries", str(self.entries_path), "--week", "-1")
        self.assertEqual(code, 2)

    @mock.patch("campusweek.cli.fetch_academic_calendar")
    def test_calendar_command_caches_position(self, fetch: mock.Mock) -> None:
        fetch.return_value = AcademicCalendarPosition(week_number=6, parity=Parity.EVEN)
        code, _ = self.run_cli("calendar")
        self.assertEqual(code, 0)
        # the cached position is now used by the views
        code, out = self.run_cli("day", "--date", "2026-10-19", "--entries", str(self.entries_path), "--json")
        self.assertEqual(code, 0)
        self.assertEqual([o["id"] for o in json.loads(out)], ["E2"])

    @mock.patch("campusweek.cli._today", return_value=date(2026, 10, 21))
    @mock.patch("campusweek.cli.fetch_academic_calendar")
    def test_cached_calendar_keeps_its_date_for_later_months(self, fetch: mock.Mock, _today: mock.Mock) -> None:
        fetch.return_value = AcademicCalendarPosition(week_number=6, parity=Parity.ODD)
        code, _ = self.run_cli("calendar")
        self.assertEqual(code, 0)
        cached = load_calendar()
        assert cached is not None
        self.assertEqual(cached.as_of, date(2026, 10, 21))

        even_wednesday = self.tmp / "even.json"
        even_wednesday.write_text(
            json.dumps([{"id": "W", "startTime": "10:00", "endTime": "11:00", "weekDay": 3, "parity": "EVEN"}]),
            encoding="utf-8",
        )
        # January lies outside the cached iso-week, so no Wednesday is filtered by parity
        code, out = self.run_cli("month", "--date", "2027-01-13", "--entries", str(even_wednesday), "--json")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual([o["date"] for o in data], ["2027-01-06", "2027-01-13", "2027-01-20", "2027-01-27"])
        self.assertTrue(all(o["weekFiltered"] is False for o in data))

    @mock.patch("campusweek.cli._today", return_value=date(2026, 10, 21))
    @mock.patch("campusweek.cli.fetch_weekly_schedule")
    def test_fetch_caches_entries_and_dated_calendar(self, fetch: mock.Mock, _today: mock.Mock) -> None:
        fetch.return_value = WeeklySchedule(entries=[], calendar=AcademicCalendarPosition(week_number=6, parity=Parity.ODD))
        code, _ = self.run_cli("fetch", "--faculty", "FI", "--specialization", "CS", "--year", "2", "--group", "CS21")
        self.assertEqual(code, 0)
        cached = load_calendar()
        assert cached is not None
        self.assertEqual((cached.week_number, cached.as_of), (6, date(2026, 10, 21)))

    @mock.patch("campusweek.cli.fetch_weekly_schedule")
    def test_fetch_for_explicit_week_leaves_calendar_alone(self, fetch: mock.Mock) -> None:
        fetch.return_value = WeeklySchedule(entries=[], calendar=AcademicCalendarPosition(week_number=3, parity=Parity.ODD))
        code, _ = self.run_cli(
            "fetch", "--faculty", "FI", "--specialization", "CS", "--year", "2", "--group", "CS21", "--week", "3"
        )
        self.assertEqual(code, 0)
        self.assertIsNone(load_calendar())

    def test_month_outside_semester_marks_weekday_only_rows(self) -> None:
        code, out = self.run_cli("month", "--date", "2026-10-21", "--entries", str(self.entries_path), "--week", "0")
        self.assertEqual(code, 0)
        self.assertIn("Outside semester", out)
        self.assertIn("unverified", out)

    @mock.patch("campusweek.cli.fetch_weekly_schedule")
    def test_fetch_command_reports_service_error(self, fetch: mock.Mock) -> None:
        fetch.side_effect = ScheduleServiceError("Server error. Please try again later.", status_code=500)
        code, _ = self.run_cli("fetch", "--faculty", "FI", "--specialization", "CS", "--year", "2", "--group", "CS21")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
