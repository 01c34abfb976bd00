# File: helpers/__init__.py
"""Helper functions for Team Planner.

Submodules:
    - export_helpers: Display labels, CSV/JSON export text (pure)
    - holiday_helpers: Public/school holiday lookups over HTTP (needs hass)

Usage:
    from .helpers import export_helpers as exh
    from .helpers.holiday_helpers import HolidayCalendar
"""

from . import export_helpers, holiday_helpers

__all__ = [
    "export_helpers",
    "holiday_helpers",
]
