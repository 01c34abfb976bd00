# File: services.py
"""Defines custom services for the Team Planner integration.

These services expose every planner mutation and query to scripts,
automations and dashboards. Validation failures, invalid status transitions
and malformed imports surface as HomeAssistantError.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import PlannerCoordinator
from .data_builders import EntityValidationError
from .engines import InvalidTransitionError
from .helpers import export_helpers as exh
from .migration import ImportFailedError

_OPTIONAL_DATE = vol.Any(None, cv.date)
_OPTIONAL_STRING = vol.Any(None, cv.string)

# --- Service Schemas ---
UPSERT_PERSON_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_PERSON_ID): cv.string,
        vol.Optional(const.FIELD_PERSON_NAME): cv.string,
        vol.Optional(const.FIELD_PERSON_TYPE): vol.In(const.PERSON_TYPES),
        vol.Optional(const.FIELD_PERSON_ROLE): cv.string,
        vol.Optional(const.FIELD_PERSON_MEMBERS): vol.All(
            cv.ensure_list, [cv.string]
        ),
    }
)

DELETE_PERSON_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PERSON_ID): cv.string,
    }
)

UPSERT_TASK_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_TASK_ID): cv.string,
        vol.Optional(const.FIELD_TITLE): cv.string,
        vol.Optional(const.FIELD_NOTE): cv.string,
        vol.Optional(const.FIELD_PRIORITY): vol.All(
            vol.Coerce(int), vol.Range(min=const.PRIORITY_MIN, max=const.PRIORITY_MAX)
        ),
        vol.Optional(const.FIELD_KIND): vol.In(const.TASK_KINDS),
        vol.Optional(const.FIELD_IS_BACKLOG): cv.boolean,
        vol.Optional(const.FIELD_START): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_END): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_TIME_START): _OPTIONAL_STRING,
        vol.Optional(const.FIELD_TIME_END): _OPTIONAL_STRING,
        vol.Optional(const.FIELD_REPEAT): vol.In(const.REPEAT_OPTIONS),
        vol.Optional(const.FIELD_REPEAT_UNTIL): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_ASSIGNEES): vol.All(cv.ensure_list, [cv.string]),
    }
)

DELETE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TASK_ID): cv.string,
    }
)

SET_TASK_STATUS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TASK_ID): cv.string,
        vol.Required(const.FIELD_ACTION): vol.In(const.TASK_ACTIONS),
    }
)

IMPORT_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PAYLOAD): vol.Any(cv.string, dict),
        vol.Optional(const.FIELD_MODE, default=const.IMPORT_MODE_MERGE): vol.In(
            const.IMPORT_MODES
        ),
    }
)

EXPORT_DATA_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_FORMAT, default=const.EXPORT_FORMAT_JSON): vol.In(
            const.EXPORT_FORMATS
        ),
        vol.Optional(const.FIELD_VIEW_ROOT): cv.string,
        vol.Optional(const.FIELD_QUERY): cv.string,
    }
)

QUERY_TASKS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_VIEW_ROOT): cv.string,
        vol.Optional(const.FIELD_DAY): cv.date,
        vol.Optional(const.FIELD_QUERY): cv.string,
    }
)

SAVE_NOW_SCHEMA = vol.Schema({})

# Service field -> document key
_PERSON_FIELD_MAP = {
    const.FIELD_PERSON_NAME: const.DATA_PERSON_NAME,
    const.FIELD_PERSON_TYPE: const.DATA_PERSON_TYPE,
    const.FIELD_PERSON_ROLE: const.DATA_PERSON_ROLE,
    const.FIELD_PERSON_MEMBERS: const.DATA_PERSON_MEMBERS,
}

_TASK_FIELD_MAP = {
    const.FIELD_TITLE: const.DATA_TASK_TITLE,
    const.FIELD_NOTE: const.DATA_TASK_NOTE,
    const.FIELD_PRIORITY: const.DATA_TASK_PRIORITY,
    const.FIELD_KIND: const.DATA_TASK_KIND,
    const.FIELD_IS_BACKLOG: const.DATA_TASK_IS_BACKLOG,
    const.FIELD_START: const.DATA_TASK_START,
    const.FIELD_END: const.DATA_TASK_END,
    const.FIELD_TIME_START: const.DATA_TASK_TIME_START,
    const.FIELD_TIME_END: const.DATA_TASK_TIME_END,
    const.FIELD_REPEAT: const.DATA_TASK_REPEAT,
    const.FIELD_REPEAT_UNTIL: const.DATA_TASK_REPEAT_UNTIL,
    const.FIELD_ASSIGNEES: const.DATA_TASK_ASSIGNEES,
}

ALL_SERVICES = (
    const.SERVICE_UPSERT_PERSON,
    const.SERVICE_DELETE_PERSON,
    const.SERVICE_UPSERT_TASK,
    const.SERVICE_DELETE_TASK,
    const.SERVICE_SET_TASK_STATUS,
    const.SERVICE_IMPORT_DATA,
    const.SERVICE_EXPORT_DATA,
    const.SERVICE_QUERY_TASKS,
    const.SERVICE_SAVE_NOW,
)


def map_service_fields(data: dict[str, Any], field_map: dict[str, str]) -> dict[str, Any]:
    """Translate service fields to document keys; dates become ISO strings."""
    result: dict[str, Any] = {}
    for field, data_key in field_map.items():
        if field not in data:
            continue
        value = data[field]
        if isinstance(value, date):
            value = value.isoformat()
        result[data_key] = value
    return result


def _get_coordinator(hass: HomeAssistant) -> PlannerCoordinator:
    """Return the coordinator of the (single) loaded entry."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        const.LOGGER.warning("WARNING: %s", const.MSG_NO_ENTRY_FOUND)
        raise HomeAssistantError(const.MSG_NO_ENTRY_FOUND)
    entry_id = next(iter(domain_entries))
    return domain_entries[entry_id][const.COORDINATOR]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Team Planner services."""

    async def handle_upsert_person(call: ServiceCall) -> ServiceResponse:
        """Create or update a person/group."""
        coordinator = _get_coordinator(hass)
        person_id = call.data.get(const.FIELD_PERSON_ID)
        user_input = map_service_fields(dict(call.data), _PERSON_FIELD_MAP)
        try:
            person = coordinator.upsert_person(user_input, person_id)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Upsert Person: %s", err.message)
            raise HomeAssistantError(err.message) from err
        return {const.FIELD_PERSON_ID: person[const.DATA_PERSON_ID]}

    async def handle_delete_person(call: ServiceCall) -> None:
        """Delete a person/group and clean up its references."""
        coordinator = _get_coordinator(hass)
        coordinator.delete_person(call.data[const.FIELD_PERSON_ID])

    async def handle_upsert_task(call: ServiceCall) -> ServiceResponse:
        """Create or update a task."""
        coordinator = _get_coordinator(hass)
        task_id = call.data.get(const.FIELD_TASK_ID)
        user_input = map_service_fields(dict(call.data), _TASK_FIELD_MAP)
        try:
            task = coordinator.upsert_task(user_input, task_id)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Upsert Task: %s", err.message)
            raise HomeAssistantError(err.message) from err
        return {const.FIELD_TASK_ID: task[const.DATA_TASK_ID]}

    async def handle_delete_task(call: ServiceCall) -> None:
        """Delete a task."""
        coordinator = _get_coordinator(hass)
        coordinator.delete_task(call.data[const.FIELD_TASK_ID])

    async def handle_set_task_status(call: ServiceCall) -> ServiceResponse:
        """Start, pause, complete or restore a task."""
        coordinator = _get_coordinator(hass)
        task_id = call.data[const.FIELD_TASK_ID]
        try:
            outcome = coordinator.set_task_status(task_id, call.data[const.FIELD_ACTION])
        except InvalidTransitionError as err:
            const.LOGGER.warning("WARNING: Set Task Status: %s", err)
            raise HomeAssistantError(str(err)) from err
        task = coordinator.get_task(task_id)
        return {
            "outcome": outcome,
            "status": task[const.DATA_TASK_STATUS],
            "start": task[const.DATA_TASK_START],
            "end": task[const.DATA_TASK_END],
        }

    async def handle_import_data(call: ServiceCall) -> ServiceResponse:
        """Merge or replace the document with imported data."""
        coordinator = _get_coordinator(hass)
        try:
            document = coordinator.import_document(
                call.data[const.FIELD_PAYLOAD], call.data[const.FIELD_MODE]
            )
        except ImportFailedError as err:
            const.LOGGER.warning("WARNING: Import Data: %s", err.message)
            raise HomeAssistantError(err.message) from err
        return {
            "people": len(document[const.DATA_PEOPLE]),
            "tasks": len(document[const.DATA_TASKS]),
        }

    async def handle_export_data(call: ServiceCall) -> ServiceResponse:
        """Return the document as JSON or the visible tasks as CSV."""
        coordinator = _get_coordinator(hass)
        export_format = call.data[const.FIELD_FORMAT]
        view_root = call.data.get(const.FIELD_VIEW_ROOT)
        if view_root:
            coordinator.get_person(view_root)
        content = coordinator.export_document(
            export_format, view_root, call.data.get(const.FIELD_QUERY)
        )
        return {const.FIELD_FORMAT: export_format, "content": content}

    async def handle_query_tasks(call: ServiceCall) -> ServiceResponse:
        """Return bucket counts and lists (or one day's tasks) for a view root."""
        coordinator = _get_coordinator(hass)
        view_root = call.data[const.FIELD_VIEW_ROOT]
        coordinator.get_person(view_root)
        query = call.data.get(const.FIELD_QUERY)
        people_by_id = coordinator.people_by_id

        response: dict[str, Any] = {
            "counts": dict(coordinator.bucket_counts(view_root, query)),
        }
        day = call.data.get(const.FIELD_DAY)
        if day is not None:
            response[const.FIELD_DAY] = day.isoformat()
            response[const.DATA_TASKS] = [
                exh.task_summary(task, people_by_id)
                for task in coordinator.tasks_for_day(view_root, day.isoformat(), query)
            ]
        else:
            response["buckets"] = {
                status: [exh.task_summary(task, people_by_id) for task in tasks]
                for status, tasks in coordinator.bucket_lists(view_root, query).items()
            }
        return response

    async def handle_save_now(call: ServiceCall) -> None:
        """Write the document immediately."""
        await _get_coordinator(hass).async_save_now()

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UPSERT_PERSON,
        handle_upsert_person,
        schema=UPSERT_PERSON_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELETE_PERSON,
        handle_delete_person,
        schema=DELETE_PERSON_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UPSERT_TASK,
        handle_upsert_task,
        schema=UPSERT_TASK_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELETE_TASK,
        handle_delete_task,
        schema=DELETE_TASK_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_TASK_STATUS,
        handle_set_task_status,
        schema=SET_TASK_STATUS_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_IMPORT_DATA,
        handle_import_data,
        schema=IMPORT_DATA_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_EXPORT_DATA,
        handle_export_data,
        schema=EXPORT_DATA_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_QUERY_TASKS,
        handle_query_tasks,
        schema=QUERY_TASKS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SAVE_NOW,
        handle_save_now,
        schema=SAVE_NOW_SCHEMA,
    )

    const.LOGGER.debug("DEBUG: Team Planner services registered")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Team Planner services when unloading the integration."""
    for service in ALL_SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Team Planner services have been unregistered")
