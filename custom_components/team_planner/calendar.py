"""Calendar platform for Team Planner integration.

Provides one read-only calendar per person/group listing the open tasks
visible from it, including the projected future occurrences of recurring
tasks, plus a holiday calendar when a holiday source is configured.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from homeassistant.components.calendar import CalendarEntity, CalendarEvent
from homeassistant.util import dt as dt_util

from . import const
from .engines import RecurrenceEngine
from .entity import PlannerCoordinatorEntity, async_track_new_people
from .helpers.export_helpers import assignee_names
from .utils.dt_utils import dt_parse_time, dt_today_iso

if TYPE_CHECKING:
    from collections.abc import Iterable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import PlannerCoordinator
    from .helpers.holiday_helpers import HolidayCalendar
    from .type_defs import PersonData, TaskData

# Coordinator-based entities that don't poll
PARALLEL_UPDATES = 0


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the Team Planner calendar platform."""
    coordinator: PlannerCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    async_track_new_people(
        coordinator,
        entry,
        async_add_entities,
        lambda person: [PlannerCalendar(coordinator, person, entry)],
    )

    holidays: HolidayCalendar | None = hass.data[const.DOMAIN][entry.entry_id][
        const.HOLIDAY_CALENDAR
    ]
    if holidays is not None and holidays.enabled:
        async_add_entities([HolidayCalendarEntity(holidays, entry)])


# ==============================================================================
# Event construction
# ==============================================================================


def _to_datetime(day: str, hhmm: str | None, tz: datetime.tzinfo) -> datetime.datetime:
    parsed = dt_parse_time(hhmm) or datetime.time.min
    return datetime.datetime.combine(
        datetime.date.fromisoformat(day), parsed, tzinfo=tz
    )


def build_task_events(
    tasks: Iterable[TaskData],
    window_start: str,
    window_end: str,
    tz: datetime.tzinfo,
    people_by_id: dict[str, PersonData] | None = None,
) -> list[CalendarEvent]:
    """Return calendar events of open tasks overlapping [window_start, window_end].

    Tasks become all-day events spanning start..end; appointments with a
    start time become timed events (one hour when no end time is set).
    Recurring tasks contribute every projected occurrence in the window.
    """
    events: list[CalendarEvent] = []
    for task in tasks:
        if task[const.DATA_TASK_STATUS] == const.TASK_STATUS_DONE:
            continue
        for occ_start, occ_end in RecurrenceEngine.project_occurrences(
            task, window_start, window_end
        ):
            description = task[const.DATA_TASK_NOTE]
            if people_by_id is not None:
                names = ", ".join(assignee_names(task, people_by_id))
                description = f"{names}\n{description}".strip()

            time_start = task[const.DATA_TASK_TIME_START]
            if task[const.DATA_TASK_KIND] == const.TASK_KIND_APPOINTMENT and time_start:
                start: datetime.date = _to_datetime(occ_start, time_start, tz)
                time_end = task[const.DATA_TASK_TIME_END]
                end: datetime.date = (
                    _to_datetime(occ_end, time_end, tz)
                    if time_end and time_end != time_start
                    else start + datetime.timedelta(hours=1)
                )
            else:
                start = datetime.date.fromisoformat(occ_start)
                end = datetime.date.fromisoformat(occ_end) + datetime.timedelta(days=1)

            events.append(
                CalendarEvent(
                    summary=task[const.DATA_TASK_TITLE],
                    start=start,
                    end=end,
                    description=description or None,
                    uid=f"{task[const.DATA_TASK_ID]}_{occ_start}",
                )
            )

    events.sort(key=lambda event: (event.start_datetime_local, event.summary))
    return events


def _window(start_date: datetime.datetime, end_date: datetime.datetime) -> tuple[str, str]:
    """Return the inclusive ISO date window covered by a datetime range."""
    start = dt_util.as_local(start_date).date()
    end = dt_util.as_local(end_date).date()
    return start.isoformat(), max(start, end).isoformat()


# ==============================================================================
# Entities
# ==============================================================================


class PlannerCalendar(PlannerCoordinatorEntity, CalendarEntity):
    """Calendar of the tasks visible from one person or group."""

    def __init__(
        self,
        coordinator: PlannerCoordinator,
        person: PersonData,
        config_entry: ConfigEntry,
    ) -> None:
        """Initialize the calendar entity."""
        super().__init__(coordinator, person, config_entry, const.CALENDAR_UID_SUFFIX)
        self._attr_name = None

    def _events(self, window_start: str, window_end: str) -> list[CalendarEvent]:
        if self.person is None:
            return []
        return build_task_events(
            self.coordinator.tasks_visible_to(self._person_id),
            window_start,
            window_end,
            dt_util.get_default_time_zone(),
            self.coordinator.people_by_id,
        )

    @property
    def event(self) -> CalendarEvent | None:
        """Return the current or next upcoming event."""
        today = dt_today_iso()
        window_end = (
            datetime.date.fromisoformat(today)
            + datetime.timedelta(days=const.DEFAULT_CALENDAR_SHOW_PERIOD)
        ).isoformat()
        now = dt_util.now()
        for event in self._events(today, window_end):
            if event.end_datetime_local > now:
                return event
        return None

    async def async_get_events(
        self,
        hass: HomeAssistant,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
    ) -> list[CalendarEvent]:
        """Return events overlapping [start_date, end_date]."""
        window_start, window_end = _window(start_date, end_date)
        return self._events(window_start, window_end)


class HolidayCalendarEntity(CalendarEntity):
    """Public and school holidays as all-day events."""

    _attr_has_entity_name = True
    _attr_translation_key = "holiday_calendar"

    def __init__(self, holidays: HolidayCalendar, config_entry: ConfigEntry) -> None:
        """Initialize the holiday calendar."""
        self._holidays = holidays
        self._attr_unique_id = (
            f"{config_entry.entry_id}{const.CALENDAR_HOLIDAY_UID_SUFFIX}"
        )
        self._event: CalendarEvent | None = None

    @property
    def event(self) -> CalendarEvent | None:
        """Return today's holiday, if known."""
        return self._event

    async def async_update(self) -> None:
        """Refresh today's holiday."""
        today = dt_today_iso()
        await self._holidays.async_ensure_year(int(today[:4]))
        name = self._holidays.get_holiday_name(today)
        self._event = None
        if name:
            day = datetime.date.fromisoformat(today)
            self._event = CalendarEvent(
                summary=name, start=day, end=day + datetime.timedelta(days=1)
            )

    async def async_get_events(
        self,
        hass: HomeAssistant,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
    ) -> list[CalendarEvent]:
        """Return holidays overlapping [start_date, end_date]."""
        window_start, window_end = _window(start_date, end_date)
        for year in range(int(window_start[:4]), int(window_end[:4]) + 1):
            await self._holidays.async_ensure_year(year)

        events: list[CalendarEvent] = []
        seen_ranges: set[tuple[str, str, str]] = set()
        for year in range(int(window_start[:4]), int(window_end[:4]) + 1):
            for day, name in self._holidays.public_holidays(year).items():
                if window_start <= day <= window_end:
                    start = datetime.date.fromisoformat(day)
                    events.append(
                        CalendarEvent(
                            summary=name,
                            start=start,
                            end=start + datetime.timedelta(days=1),
                            uid=f"public_{day}",
                        )
                    )
            for item in self._holidays.get_school_holiday_ranges(year):
                if item["end"] < window_start or item["start"] > window_end:
                    continue
                # Ranges across New Year are listed by both years
                range_key = (item["start"], item["end"], item["name"])
                if range_key in seen_ranges:
                    continue
                seen_ranges.add(range_key)
                events.append(
                    CalendarEvent(
                        summary=item["name"],
                        start=datetime.date.fromisoformat(item["start"]),
                        end=datetime.date.fromisoformat(item["end"])
                        + datetime.timedelta(days=1),
                        uid=f"school_{item['start']}_{item['end']}",
                    )
                )
        events.sort(key=lambda event: event.start_datetime_local)
        return events
