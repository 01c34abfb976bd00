# File: helpers/holiday_helpers.py
"""Public and school holiday lookups for Team Planner.

Holidays are decoration only: lookups are best effort, cached per year, and a
failing fetch yields empty results (logged, never raised).

Sources:
    - Public holidays: Nager.Date (`/api/v3/PublicHolidays/{year}/{country}`)
    - School holidays: ferien-api.de (`/api/v1/holidays/{region}/{year}`)
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .. import const
from ..utils.dt_utils import dt_is_date_in_range, dt_normalize_iso, dt_parse_date

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..type_defs import ISODate, SchoolHolidayRange


async def _fetch_json(hass: HomeAssistant, url: str) -> Any:
    """Fetch and decode a JSON payload.

    Raises:
        HomeAssistantError: If the request returns a non-200 status.
        TimeoutError: If the request times out.
    """
    session = async_get_clientsession(hass)
    async with asyncio.timeout(const.HOLIDAY_FETCH_TIMEOUT):
        async with session.get(url) as response:
            if response.status != 200:
                raise HomeAssistantError(f"HTTP {response.status} fetching {url}")
            return await response.json(content_type=None)


def parse_public_holidays(payload: Any) -> dict[ISODate, str]:
    """Map Nager.Date entries to {iso_date: local name}."""
    result: dict[ISODate, str] = {}
    if not isinstance(payload, list):
        return result
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        day = dt_normalize_iso(entry.get("date"))
        name = entry.get("localName") or entry.get("name")
        if day and isinstance(name, str) and day not in result:
            result[day] = name
    return result


def parse_school_holidays(payload: Any) -> list[SchoolHolidayRange]:
    """Map ferien-api.de entries to sorted {name, start, end} ranges."""
    ranges: list[SchoolHolidayRange] = []
    if not isinstance(payload, list):
        return ranges
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        start = dt_normalize_iso(entry.get("start"))
        end = dt_normalize_iso(entry.get("end"))
        name = entry.get("name")
        if not start or not end or not isinstance(name, str):
            continue
        ranges.append({"name": name.title(), "start": start, "end": max(start, end)})
    ranges.sort(key=lambda item: (item["start"], item["end"]))
    return ranges


class HolidayCalendar:
    """Per-year cache of public and school holidays."""

    def __init__(
        self,
        hass: HomeAssistant,
        country: str | None = None,
        school_region: str | None = None,
    ) -> None:
        """Initialize the holiday calendar."""
        self.hass = hass
        self.country = (country or "").strip().upper() or None
        self.school_region = (school_region or "").strip().upper() or None
        self._public: dict[int, dict[ISODate, str]] = {}
        self._school: dict[int, list[SchoolHolidayRange]] = {}

    @property
    def enabled(self) -> bool:
        """Return True if any holiday source is configured."""
        return bool(self.country or self.school_region)

    async def async_ensure_year(self, year: int) -> None:
        """Fetch and cache the holidays of a year (no-op once cached).

        A failed fetch caches an empty result, so the year is not requested
        again until the integration is reloaded.
        """
        if self.country and year not in self._public:
            url = const.PUBLIC_HOLIDAYS_API_URL.format(year=year, country=self.country)
            try:
                self._public[year] = parse_public_holidays(
                    await _fetch_json(self.hass, url)
                )
            except (TimeoutError, ClientError, HomeAssistantError, ValueError) as err:
                const.LOGGER.warning(
                    "WARNING: Public holidays for %s/%s unavailable: %s",
                    self.country,
                    year,
                    err,
                )
                self._public[year] = {}

        if self.school_region and year not in self._school:
            url = const.SCHOOL_HOLIDAYS_API_URL.format(
                year=year, region=self.school_region
            )
            try:
                self._school[year] = parse_school_holidays(
                    await _fetch_json(self.hass, url)
                )
            except (TimeoutError, ClientError, HomeAssistantError, ValueError) as err:
                const.LOGGER.warning(
                    "WARNING: School holidays for %s/%s unavailable: %s",
                    self.school_region,
                    year,
                    err,
                )
                self._school[year] = []

    def get_public_holiday_name(self, day: ISODate) -> str | None:
        """Return the public holiday name of a cached day, if any."""
        parsed = dt_parse_date(day)
        if parsed is None:
            return None
        return self._public.get(parsed.year, {}).get(parsed.isoformat())

    def get_school_holiday_ranges(self, year: int) -> list[SchoolHolidayRange]:
        """Return the cached school holiday ranges of a year."""
        return list(self._school.get(year, []))

    def get_holiday_name(self, day: ISODate) -> str | None:
        """Return a label for the day: public holiday first, then school holiday."""
        name = self.get_public_holiday_name(day)
        if name:
            return name
        parsed = dt_parse_date(day)
        if parsed is None:
            return None
        for item in self._school.get(parsed.year, []):
            if dt_is_date_in_range(parsed.isoformat(), item["start"], item["end"]):
                return item["name"]
        return None

    def public_holidays(self, year: int) -> dict[ISODate, str]:
        """Return the cached public holidays of a year."""
        return dict(self._public.get(year, {}))
