# File: __init__.py
"""Initialization file for the Team Planner integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and preparing the coordinator for data handling.

Key Features:
- Config entry setup and unload support.
- Storage loading (with one-time migration of the legacy document).
- Coordinator initialization, services and platforms.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import PlannerCoordinator
from .helpers.holiday_helpers import HolidayCalendar
from .services import async_setup_services, async_unload_services
from .store import PlannerStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Team Planner entry: %s", entry.entry_id)

    # Set the home assistant configured timezone for date operations
    # Must be done early before anything asks for "today"
    const.set_default_timezone(hass)

    store = PlannerStore(hass)
    await store.async_initialize()

    holidays = HolidayCalendar(
        hass,
        entry.options.get(const.CONF_HOLIDAY_COUNTRY),
        entry.options.get(const.CONF_SCHOOL_HOLIDAY_REGION),
    )

    coordinator = PlannerCoordinator(hass, entry, store, holidays)

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to refresh coordinator data: %s", e)
        raise

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
        const.HOLIDAY_CALENDAR: holidays,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    const.LOGGER.info("INFO: Team Planner setup complete for entry: %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry, writing any pending change first."""
    const.LOGGER.info("INFO: Unloading Team Planner entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
        store: PlannerStore = entry_data[const.STORE]
        await store.async_flush()

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by deleting its storage."""
    const.LOGGER.info("INFO: Removing Team Planner entry: %s", entry.entry_id)

    store = PlannerStore(hass)
    await store.async_delete_storage()

    const.LOGGER.info("INFO: Team Planner entry data cleared: %s", entry.entry_id)
