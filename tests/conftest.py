"""Shared fixtures for Team Planner tests."""

from typing import Any

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.team_planner import const
from custom_components.team_planner.coordinator import PlannerCoordinator

from tests.helpers.setup import SetupResult, setup_from_yaml, storage_payload

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry without holiday sources."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title=const.TEAM_PLANNER_TITLE,
        data={},
        options={
            const.CONF_HOLIDAY_COUNTRY: "",
            const.CONF_SCHOOL_HOLIDAY_REGION: "",
        },
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


@pytest.fixture
def mock_storage_data() -> dict[str, Any]:
    """Return an empty current-generation planner document."""
    return {
        const.DATA_VERSION: const.SCHEMA_VERSION_CURRENT,
        const.DATA_PEOPLE: [],
        const.DATA_TASKS: [],
        const.DATA_LAST_SAVED_AT: None,
    }


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_storage_data: dict[str, Any],  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the Team Planner integration with mocked storage."""
    hass_storage[const.STORAGE_KEY] = storage_payload(
        const.STORAGE_KEY, mock_storage_data
    )
    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()
    return mock_config_entry


@pytest.fixture
def coordinator(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> PlannerCoordinator:
    """Return the coordinator of the loaded entry."""
    return hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]


@pytest.fixture
async def scenario_team(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> SetupResult:
    """Load the team scenario (persons, nested groups, mixed tasks)."""
    return await setup_from_yaml(
        hass, hass_storage, mock_config_entry, "scenario_team.yaml"
    )
