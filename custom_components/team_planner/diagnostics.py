"""Diagnostics support for Team Planner integration.

The diagnostics JSON returns the raw planner document, identical to the
team_planner_data storage payload, so it can be re-imported directly with
the import_data service.
"""

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceEntry

from . import const
from .coordinator import PlannerCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: PlannerCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    return dict(coordinator.store.data)


async def async_get_device_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry, device: DeviceEntry
) -> dict[str, Any]:
    """Return the person/group of a device and the tasks visible from it."""
    coordinator: PlannerCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    person_id = None
    for identifier in device.identifiers:
        if identifier[0] == const.DOMAIN:
            person_id = identifier[1]
            break

    person = coordinator.find_person(person_id) if person_id else None
    if person is None:
        return {"error": "Person or group not found for device"}

    return {
        "person": person,
        "effective_assignee_ids": sorted(
            coordinator.effective_assignee_ids(person[const.DATA_PERSON_ID])
        ),
        "tasks": coordinator.tasks_visible_to(person[const.DATA_PERSON_ID]),
    }
