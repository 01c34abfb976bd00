"""Tests for Team Planner config flow."""

from unittest.mock import patch

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.team_planner.const import (
    CONF_HOLIDAY_COUNTRY,
    CONF_SCHOOL_HOLIDAY_REGION,
    DOMAIN,
)


async def test_form_user_flow_success(hass: HomeAssistant) -> None:
    """Test successful user config flow; holiday codes are upper-cased."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.FORM
    assert result.get("step_id") == "user"

    with patch(
        "custom_components.team_planner.async_setup_entry",
        return_value=True,
    ) as mock_setup_entry:
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"),
            user_input={
                "title": " Studio Planner ",
                CONF_HOLIDAY_COUNTRY: "de",
                CONF_SCHOOL_HOLIDAY_REGION: " by",
            },
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result.get("title") == "Studio Planner"
    assert result.get("data") == {}
    assert result.get("options") == {
        CONF_HOLIDAY_COUNTRY: "DE",
        CONF_SCHOOL_HOLIDAY_REGION: "BY",
    }
    assert len(mock_setup_entry.mock_calls) == 1


async def test_form_without_holidays(hass: HomeAssistant) -> None:
    """Blank holiday fields are allowed."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    with patch(
        "custom_components.team_planner.async_setup_entry",
        return_value=True,
    ):
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"), user_input={"title": "Team Planner"}
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result.get("options") == {
        CONF_HOLIDAY_COUNTRY: "",
        CONF_SCHOOL_HOLIDAY_REGION: "",
    }


async def test_form_invalid_input(hass: HomeAssistant) -> None:
    """Invalid codes and a blank title are reported per field."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result.get("flow_id"),
        user_input={
            "title": "  ",
            CONF_HOLIDAY_COUNTRY: "Germany",
            CONF_SCHOOL_HOLIDAY_REGION: "B1",
        },
    )
    assert result.get("type") == FlowResultType.FORM
    assert result.get("errors") == {
        "title": "invalid_title",
        CONF_HOLIDAY_COUNTRY: "invalid_country",
        CONF_SCHOOL_HOLIDAY_REGION: "invalid_region",
    }


async def test_single_instance(hass: HomeAssistant) -> None:
    """A second entry is refused."""
    MockConfigEntry(domain=DOMAIN, title="Team Planner", data={}).add_to_hass(hass)

    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.ABORT
    assert result.get("reason") in ("single_instance_allowed", "already_configured")
