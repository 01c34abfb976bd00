"""Sensor platform for Team Planner integration.

One sensor per person/group: the state is the number of open tasks
(planned + in progress) visible from it, the attributes carry the status
bucket counts and today's task titles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass

from . import const
from .entity import PlannerCoordinatorEntity, async_track_new_people
from .utils.dt_utils import dt_today_iso

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import PlannerCoordinator
    from .type_defs import PersonData

# Coordinator-based entities that don't poll
PARALLEL_UPDATES = 0


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors for Team Planner integration."""
    coordinator: PlannerCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    async_track_new_people(
        coordinator,
        entry,
        async_add_entities,
        lambda person: [OpenTasksSensor(coordinator, person, entry)],
    )


class OpenTasksSensor(PlannerCoordinatorEntity, SensorEntity):
    """Number of open tasks visible from a person or group."""

    _attr_translation_key = "open_tasks"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:clipboard-list-outline"

    def __init__(
        self,
        coordinator: PlannerCoordinator,
        person: PersonData,
        config_entry: ConfigEntry,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(
            coordinator, person, config_entry, const.SENSOR_UID_SUFFIX_OPEN_TASKS
        )

    @property
    def native_value(self) -> int | None:
        """Return planned + in-progress task count."""
        if self.person is None:
            return None
        counts = self.coordinator.bucket_counts(self._person_id)
        return (
            counts[const.TASK_STATUS_PLANNED] + counts[const.TASK_STATUS_IN_PROGRESS]
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return bucket counts, membership and today's tasks."""
        person = self.person
        if person is None:
            return {}
        today = dt_today_iso()
        people_by_id = self.coordinator.people_by_id
        return {
            const.ATTR_PERSON_ID: self._person_id,
            const.ATTR_PERSON_TYPE: person[const.DATA_PERSON_TYPE],
            const.ATTR_MEMBERS: [
                people_by_id[member_id][const.DATA_PERSON_NAME]
                for member_id in person[const.DATA_PERSON_MEMBERS]
                if member_id in people_by_id
            ],
            const.ATTR_BUCKETS: dict(self.coordinator.bucket_counts(self._person_id)),
            const.ATTR_TODAY: [
                task[const.DATA_TASK_TITLE]
                for task in self.coordinator.tasks_for_day(self._person_id, today)
            ],
        }
