"""Base entity classes for Team Planner integration."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import PlannerCoordinator

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.helpers.entity import Entity

    from .type_defs import PersonData


def create_person_device_info(person: PersonData, config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info for a person or group profile."""
    model = (
        "Group Profile"
        if person[const.DATA_PERSON_TYPE] == const.PERSON_TYPE_GROUP
        else "Person Profile"
    )
    return DeviceInfo(
        identifiers={(const.DOMAIN, person[const.DATA_PERSON_ID])},
        name=f"{person[const.DATA_PERSON_NAME]} ({config_entry.title})",
        manufacturer=const.TEAM_PLANNER_TITLE,
        model=model,
        entry_type=DeviceEntryType.SERVICE,
    )


class PlannerCoordinatorEntity(CoordinatorEntity[PlannerCoordinator]):
    """Base entity bound to one person or group of the planner document.

    The entity becomes unavailable once its person/group is deleted.
    """

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: PlannerCoordinator,
        person: PersonData,
        config_entry: ConfigEntry,
        unique_id_suffix: str,
    ) -> None:
        """Initialize the entity for a person/group."""
        super().__init__(coordinator)
        self._person_id = person[const.DATA_PERSON_ID]
        self._config_entry = config_entry
        self._attr_unique_id = (
            f"{config_entry.entry_id}_{self._person_id}{unique_id_suffix}"
        )
        self._attr_device_info = create_person_device_info(person, config_entry)

    @property
    def person(self) -> PersonData | None:
        """Return the current record of the entity's person/group."""
        return self.coordinator.find_person(self._person_id)

    @property
    def available(self) -> bool:
        """Return True while the person/group exists."""
        return super().available and self.person is not None


def async_track_new_people(
    coordinator: PlannerCoordinator,
    config_entry: ConfigEntry,
    async_add_entities: Callable[[list[Entity]], None],
    build: Callable[[PersonData], list[Entity]],
) -> None:
    """Add entities for existing people now and for people created later."""
    known_ids: set[str] = set()

    @callback
    def _async_add_new() -> None:
        new_entities: list[Entity] = []
        for person in coordinator.people:
            if person[const.DATA_PERSON_ID] in known_ids:
                continue
            known_ids.add(person[const.DATA_PERSON_ID])
            new_entities.extend(build(person))
        if new_entities:
            async_add_entities(new_entities)

    _async_add_new()
    config_entry.async_on_unload(coordinator.async_add_listener(_async_add_new))
