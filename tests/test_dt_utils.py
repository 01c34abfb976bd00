"""Unit tests for utils/dt_utils.py calendar-date helpers.

Pure functions: no Home Assistant fixtures needed.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from custom_components.team_planner.utils import dt_utils


class TestParsing:
    """Safe parsing and validation."""

    def test_parse_accepts_iso_and_datetime_strings(self) -> None:
        """Dates and datetime strings both parse to their calendar date."""
        assert dt_utils.dt_parse_date("2026-03-11") == date(2026, 3, 11)
        assert dt_utils.dt_parse_date("2026-03-11T23:15:00+01:00") == date(2026, 3, 11)
        assert dt_utils.dt_parse_date(date(2026, 3, 11)) == date(2026, 3, 11)
        assert dt_utils.dt_parse_date(datetime(2026, 3, 11, 8)) == date(2026, 3, 11)

    @pytest.mark.parametrize("value", [None, "", "  ", "2026-13-01", "soon", 42, []])
    def test_parse_returns_none_for_garbage(self, value: object) -> None:
        """Malformed values never raise."""
        assert dt_utils.dt_parse_date(value) is None  # type: ignore[arg-type]

    def test_is_iso_date_is_strict(self) -> None:
        """Only YYYY-MM-DD strings qualify."""
        assert dt_utils.dt_is_iso_date("2026-02-28")
        assert not dt_utils.dt_is_iso_date("2026-02-30")
        assert not dt_utils.dt_is_iso_date("2026-02-28T00:00:00")
        assert not dt_utils.dt_is_iso_date(None)

    @pytest.mark.parametrize(
        ("value", "valid"),
        [("09:30", True), ("00:00", True), ("23:59", True), ("24:00", False),
         ("9:30", False), ("09:60", False), ("", False), (None, False)],
    )
    def test_time_validation(self, value: object, valid: bool) -> None:
        """HH:MM with a 24h clock."""
        assert dt_utils.dt_is_valid_time(value) is valid


class TestArithmetic:
    """Day/month arithmetic."""

    def test_add_days_crosses_year(self) -> None:
        """Year boundary."""
        assert dt_utils.dt_add_days("2025-12-31", 1) == "2026-01-01"
        assert dt_utils.dt_add_days("2026-03-01", -1) == "2026-02-28"

    @pytest.mark.parametrize(
        ("start", "expected"),
        [("2026-01-31", "2026-02-28"), ("2028-01-31", "2028-02-29"),
         ("2026-03-31", "2026-04-30"), ("2026-12-15", "2027-01-15")],
    )
    def test_add_months_clamps_to_month_end(self, start: str, expected: str) -> None:
        """Month-end clamping, including leap years."""
        assert dt_utils.dt_add_months(start, 1) == expected

    def test_days_between_never_negative(self) -> None:
        """Reversed ranges count as zero days."""
        assert dt_utils.dt_days_between("2026-03-10", "2026-03-12") == 2
        assert dt_utils.dt_days_between("2026-03-12", "2026-03-10") == 0

    def test_range_is_inclusive(self) -> None:
        """Both ends belong to the range."""
        assert dt_utils.dt_is_date_in_range("2026-03-10", "2026-03-10", "2026-03-12")
        assert dt_utils.dt_is_date_in_range("2026-03-12", "2026-03-10", "2026-03-12")
        assert not dt_utils.dt_is_date_in_range("2026-03-13", "2026-03-10", "2026-03-12")


class TestWeeksAndMonths:
    """Monday-based week and month helpers."""

    def test_week_boundaries(self) -> None:
        """2026-03-11 is a Wednesday."""
        assert dt_utils.dt_start_of_week("2026-03-11") == "2026-03-09"
        assert dt_utils.dt_end_of_week("2026-03-11") == "2026-03-15"
        assert dt_utils.dt_week_days("2026-03-15")[0] == "2026-03-09"
        assert len(dt_utils.dt_week_days("2026-03-15")) == 7

    def test_iso_week_number_at_year_start(self) -> None:
        """2027-01-01 (Friday) still belongs to ISO week 53 of 2026."""
        assert dt_utils.dt_iso_week_number("2027-01-01") == 53
        assert dt_utils.dt_iso_week_number("2026-03-11") == 11

    def test_month_boundaries(self) -> None:
        """First and last day of the month."""
        assert dt_utils.dt_start_of_month("2026-02-17") == "2026-02-01"
        assert dt_utils.dt_end_of_month("2026-02-17") == "2026-02-28"
        assert dt_utils.dt_end_of_month("2028-02-01") == "2028-02-29"

    def test_month_grid_has_six_monday_weeks(self) -> None:
        """March 2026 starts on a Sunday, so the grid starts Monday Feb 23."""
        grid = dt_utils.dt_month_grid(2026, 3)
        assert len(grid) == dt_utils.MONTH_GRID_CELLS
        assert grid[0] == "2026-02-23"
        assert grid[6] == "2026-03-01"
        assert grid[-1] == "2026-04-05"
        assert date.fromisoformat(grid[0]).weekday() == 0

    def test_iter_days(self) -> None:
        """Inclusive day iteration, empty when reversed."""
        assert dt_utils.dt_iter_days("2026-02-27", "2026-03-01") == [
            "2026-02-27",
            "2026-02-28",
            "2026-03-01",
        ]
        assert dt_utils.dt_iter_days("2026-03-02", "2026-03-01") == []


class TestToday:
    """Today depends on the configured timezone."""

    @freeze_time("2026-03-11 23:30:00", tz_offset=0)
    def test_today_follows_timezone(self) -> None:
        """Late UTC evening is already tomorrow in Berlin."""
        assert dt_utils.dt_today_iso(ZoneInfo("UTC")) == "2026-03-11"
        assert dt_utils.dt_today_iso(ZoneInfo("Europe/Berlin")) == "2026-03-12"

    @freeze_time("2026-03-11 12:00:00", tz_offset=0)
    def test_now_iso_is_utc(self) -> None:
        """Timestamps carry an explicit UTC offset."""
        assert dt_utils.dt_now_iso().startswith("2026-03-11T12:00:00")
        assert dt_utils.dt_now_iso().endswith("+00:00")
