# File: utils/dt_utils.py
"""Calendar-date utilities for Team Planner.

Pure Python date functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Every planner date is a timezone-naive calendar date stored as an ISO string
("2025-04-07"). The only place a timezone matters is "today", which is taken
in the configured default timezone.

Functions:
    - dt_today_local / dt_today_iso: Today's date in the default timezone
    - dt_now_iso: Current timestamp (used for createdAt / doneAt / lastSavedAt)
    - dt_parse_date: Parse ISO strings (and date objects) safely
    - dt_is_iso_date: Validate an ISO date string
    - dt_add_days / dt_add_months: Calendar arithmetic with month-end clamping
    - dt_days_between: Whole days between two ISO dates
    - dt_iso_week_number: ISO-8601 week number
    - dt_start_of_week / dt_end_of_week: Monday..Sunday boundaries
    - dt_start_of_month / dt_end_of_month: Month boundaries
    - dt_month_grid: 42 ISO dates of a Monday-based month grid
    - dt_is_date_in_range: Inclusive ISO range check
    - dt_parse_time / dt_is_valid_time: "HH:MM" validation
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
import re
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Month grids always show six full weeks
MONTH_GRID_CELLS = 42

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone used to determine "today".

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in the local timezone as a `datetime.date`.

    Example:
        datetime.date(2025, 4, 7)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's date in the local timezone as ISO string (YYYY-MM-DD)."""
    return dt_today_local(tz).isoformat()


def dt_now_iso() -> str:
    """Return the current UTC timestamp as an ISO 8601 string.

    Example:
        "2025-04-07T12:30:00.123456+00:00"
    """
    return datetime.now(UTC).isoformat()


# ==============================================================================
# Parsing / Validation
# ==============================================================================


def dt_parse_date(value: str | date | None) -> date | None:
    """Safely parse an ISO date string into a `datetime.date`.

    Datetime strings are accepted and truncated to their date part. Anything
    else (wrong type, malformed text) yields None rather than an exception.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        _LOGGER.debug("dt_parse_date: could not parse '%s'", value)
        return None


def dt_is_iso_date(value: object) -> bool:
    """Return True if value is a strict YYYY-MM-DD string."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def dt_normalize_iso(value: str | date | None) -> str | None:
    """Return value as a YYYY-MM-DD string, or None when it is not a date."""
    parsed = dt_parse_date(value)
    return parsed.isoformat() if parsed else None


def dt_parse_time(value: object) -> time | None:
    """Parse a "HH:MM" string into a `datetime.time`, or None."""
    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def dt_is_valid_time(value: object) -> bool:
    """Return True if value is a valid "HH:MM" string."""
    return dt_parse_time(value) is not None


# ==============================================================================
# Arithmetic
# ==============================================================================


def dt_add_days(iso: str, days: int) -> str:
    """Add (or subtract) whole days to an ISO date."""
    return (date.fromisoformat(iso) + timedelta(days=days)).isoformat()


def dt_add_months(iso: str, months: int) -> str:
    """Add calendar months, clamping to the last day of the target month.

    Example:
        dt_add_months("2025-01-31", 1) -> "2025-02-28"
    """
    return (date.fromisoformat(iso) + relativedelta(months=months)).isoformat()


def dt_days_between(start_iso: str, end_iso: str) -> int:
    """Return the number of days from start to end (never negative)."""
    delta = date.fromisoformat(end_iso) - date.fromisoformat(start_iso)
    return max(0, delta.days)


def dt_is_date_in_range(day_iso: str, start_iso: str, end_iso: str) -> bool:
    """Inclusive range check on ISO strings (lexicographic order is date order)."""
    return start_iso <= day_iso <= end_iso


# ==============================================================================
# Week / Month Boundaries
# ==============================================================================


def dt_iso_week_number(iso: str) -> int:
    """Return the ISO-8601 week number of a date."""
    return date.fromisoformat(iso).isocalendar().week


def dt_start_of_week(iso: str) -> str:
    """Return the Monday of the week containing the date."""
    day = date.fromisoformat(iso)
    return (day - timedelta(days=day.weekday())).isoformat()


def dt_end_of_week(iso: str) -> str:
    """Return the Sunday of the week containing the date."""
    return dt_add_days(dt_start_of_week(iso), 6)


def dt_start_of_month(iso: str) -> str:
    """Return the first day of the month containing the date."""
    return date.fromisoformat(iso).replace(day=1).isoformat()


def dt_end_of_month(iso: str) -> str:
    """Return the last day of the month containing the date."""
    first = date.fromisoformat(iso).replace(day=1)
    return (first + relativedelta(months=1) - timedelta(days=1)).isoformat()


def dt_week_days(iso: str) -> list[str]:
    """Return the seven ISO dates (Monday..Sunday) of the date's week."""
    start = dt_start_of_week(iso)
    return [dt_add_days(start, offset) for offset in range(7)]


def dt_month_grid(year: int, month: int) -> list[str]:
    """Return the 42 ISO dates of a Monday-based month grid.

    The grid starts on the Monday on or before the first of the month and
    always spans six weeks, so leading/trailing cells belong to the
    neighbouring months.
    """
    first = date(year, month, 1)
    grid_start = first - timedelta(days=first.weekday())
    return [
        (grid_start + timedelta(days=offset)).isoformat()
        for offset in range(MONTH_GRID_CELLS)
    ]


def dt_iter_days(start_iso: str, end_iso: str) -> list[str]:
    """Return every ISO date from start to end inclusive (empty if end < start)."""
    total = (date.fromisoformat(end_iso) - date.fromisoformat(start_iso)).days
    return [dt_add_days(start_iso, offset) for offset in range(total + 1)]
