# File: config_flow.py
"""Config flow for the Team Planner integration.

Single instance. The planner data itself lives in storage, so the entry only
carries its title and the optional holiday sources.
"""

from __future__ import annotations

import re
from typing import Any

import voluptuous as vol
from homeassistant import config_entries

from . import const

_COUNTRY_PATTERN = re.compile(r"^[A-Za-z]{2}$")
_REGION_PATTERN = re.compile(r"^[A-Za-z]{2}$")


def build_user_schema(defaults: dict[str, Any] | None = None) -> vol.Schema:
    """Return the schema of the user step."""
    defaults = defaults or {}
    return vol.Schema(
        {
            vol.Required(
                "title", default=defaults.get("title", const.TEAM_PLANNER_TITLE)
            ): str,
            vol.Optional(
                const.CONF_HOLIDAY_COUNTRY,
                default=defaults.get(const.CONF_HOLIDAY_COUNTRY, ""),
            ): str,
            vol.Optional(
                const.CONF_SCHOOL_HOLIDAY_REGION,
                default=defaults.get(const.CONF_SCHOOL_HOLIDAY_REGION, ""),
            ): str,
        }
    )


def validate_user_input(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate the user step; returns {field: error_key}."""
    errors: dict[str, str] = {}
    if not str(user_input.get("title", "")).strip():
        errors["title"] = "invalid_title"
    country = str(user_input.get(const.CONF_HOLIDAY_COUNTRY, "")).strip()
    if country and not _COUNTRY_PATTERN.match(country):
        errors[const.CONF_HOLIDAY_COUNTRY] = "invalid_country"
    region = str(user_input.get(const.CONF_SCHOOL_HOLIDAY_REGION, "")).strip()
    if region and not _REGION_PATTERN.match(region):
        errors[const.CONF_SCHOOL_HOLIDAY_REGION] = "invalid_region"
    return errors


class TeamPlannerConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Team Planner."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Handle the initial step."""
        if self._async_current_entries():
            return self.async_abort(reason="single_instance_allowed")

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = validate_user_input(user_input)
            if not errors:
                title = user_input["title"].strip()
                const.LOGGER.info("INFO: Creating Team Planner entry '%s'", title)
                return self.async_create_entry(
                    title=title,
                    data={},
                    options={
                        const.CONF_HOLIDAY_COUNTRY: user_input.get(
                            const.CONF_HOLIDAY_COUNTRY, ""
                        )
                        .strip()
                        .upper(),
                        const.CONF_SCHOOL_HOLIDAY_REGION: user_input.get(
                            const.CONF_SCHOOL_HOLIDAY_REGION, ""
                        )
                        .strip()
                        .upper(),
                    },
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=build_user_schema(user_input),
            errors=errors,
        )
