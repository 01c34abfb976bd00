"""Tests for the Team Planner services (schemas, responses, error mapping)."""

import json

from freezegun import freeze_time
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
import pytest
import voluptuous as vol

from custom_components.team_planner import const
from tests.helpers import SetupResult


async def _call(hass: HomeAssistant, service: str, data: dict, response: bool = True):
    return await hass.services.async_call(
        const.DOMAIN, service, data, blocking=True, return_response=response
    )


@freeze_time("2026-03-11 12:00:00", tz_offset=0)
class TestPersonServices:
    """upsert_person / delete_person."""

    async def test_upsert_person_returns_id(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Creating a group returns its id."""
        response = await _call(
            hass,
            const.SERVICE_UPSERT_PERSON,
            {
                const.FIELD_PERSON_NAME: "Print",
                const.FIELD_PERSON_TYPE: const.PERSON_TYPE_GROUP,
                const.FIELD_PERSON_MEMBERS: [scenario_team.person_ids["Sam"]],
            },
        )
        group = scenario_team.coordinator.get_person(response[const.FIELD_PERSON_ID])
        assert group[const.DATA_PERSON_MEMBERS] == [scenario_team.person_ids["Sam"]]

    async def test_validation_error_surfaces(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Duplicate names become HomeAssistantError."""
        with pytest.raises(HomeAssistantError, match="already exists"):
            await _call(
                hass, const.SERVICE_UPSERT_PERSON, {const.FIELD_PERSON_NAME: "sam"}
            )

    async def test_delete_person(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Deleting removes the person."""
        sam_id = scenario_team.person_ids["Sam"]
        await _call(
            hass,
            const.SERVICE_DELETE_PERSON,
            {const.FIELD_PERSON_ID: sam_id},
            response=False,
        )
        assert scenario_team.coordinator.find_person(sam_id) is None


@freeze_time("2026-03-11 12:00:00", tz_offset=0)
class TestTaskServices:
    """upsert_task / delete_task / set_task_status."""

    async def test_upsert_task_converts_dates(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Service dates are stored as ISO strings."""
        response = await _call(
            hass,
            const.SERVICE_UPSERT_TASK,
            {
                const.FIELD_TITLE: "Client call",
                const.FIELD_KIND: const.TASK_KIND_APPOINTMENT,
                const.FIELD_START: "2026-03-12",
                const.FIELD_TIME_START: "14:00",
                const.FIELD_TIME_END: "15:00",
                const.FIELD_ASSIGNEES: [scenario_team.person_ids["Alex"]],
            },
        )
        task = scenario_team.coordinator.get_task(response[const.FIELD_TASK_ID])
        assert task[const.DATA_TASK_START] == "2026-03-12"
        assert task[const.DATA_TASK_END] == "2026-03-12"
        assert task[const.DATA_TASK_TIME_START] == "14:00"

    async def test_invalid_priority_rejected_by_schema(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Priorities outside 0..3 fail schema validation."""
        with pytest.raises(vol.Invalid):
            await _call(
                hass,
                const.SERVICE_UPSERT_TASK,
                {
                    const.FIELD_TITLE: "X",
                    const.FIELD_PRIORITY: 5,
                    const.FIELD_ASSIGNEES: [scenario_team.person_ids["Alex"]],
                },
            )

    async def test_missing_assignees(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Business validation errors are HomeAssistantErrors."""
        with pytest.raises(HomeAssistantError, match="at least one person"):
            await _call(
                hass,
                const.SERVICE_UPSERT_TASK,
                {const.FIELD_TITLE: "Nobody's", const.FIELD_START: "2026-03-12"},
            )

    async def test_set_task_status_complete_recurring(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """The response tells an advance from a completion."""
        response = await _call(
            hass,
            const.SERVICE_SET_TASK_STATUS,
            {
                const.FIELD_TASK_ID: scenario_team.task_ids["Team sync"],
                const.FIELD_ACTION: const.TASK_ACTION_COMPLETE,
            },
        )
        assert response == {
            "outcome": const.COMPLETION_ADVANCED,
            "status": const.TASK_STATUS_PLANNED,
            "start": "2026-03-18",
            "end": "2026-03-18",
        }

    async def test_invalid_transition(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Starting a done task fails."""
        with pytest.raises(HomeAssistantError, match="Cannot start"):
            await _call(
                hass,
                const.SERVICE_SET_TASK_STATUS,
                {
                    const.FIELD_TASK_ID: scenario_team.task_ids["Archive invoices"],
                    const.FIELD_ACTION: const.TASK_ACTION_START,
                },
            )

    async def test_unknown_task(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Unknown ids are reported."""
        with pytest.raises(HomeAssistantError, match="not found"):
            await _call(
                hass,
                const.SERVICE_DELETE_TASK,
                {const.FIELD_TASK_ID: "nope"},
                response=False,
            )


@freeze_time("2026-03-11 12:00:00", tz_offset=0)
class TestDataServices:
    """import / export / query / save_now."""

    async def test_query_tasks_for_day(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Day view returns summaries in display order."""
        response = await _call(
            hass,
            const.SERVICE_QUERY_TASKS,
            {
                const.FIELD_VIEW_ROOT: scenario_team.person_ids["Alex"],
                const.FIELD_DAY: "2026-03-11",
            },
        )
        assert response[const.FIELD_DAY] == "2026-03-11"
        titles = [task["title"] for task in response["tasks"]]
        assert titles == ["Review brief", "Draft logo", "Team sync"]
        sync = response["tasks"][2]
        assert sync["timeText"] == "09:30–10:00"
        assert sync["assigneeNames"] == ["Studio"]
        assert response["counts"][const.TASK_STATUS_PLANNED] == 2

    async def test_query_tasks_buckets(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Without a day, all buckets are listed."""
        response = await _call(
            hass,
            const.SERVICE_QUERY_TASKS,
            {
                const.FIELD_VIEW_ROOT: scenario_team.person_ids["Sam"],
                const.FIELD_QUERY: "paper",
            },
        )
        assert list(response["buckets"]) == list(const.BUCKET_ORDER)
        backlog = response["buckets"][const.TASK_STATUS_BACKLOG]
        assert [task["rangeText"] for task in backlog] == [const.LABEL_UNDATED]

    async def test_query_unknown_root(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Unknown view roots are rejected."""
        with pytest.raises(HomeAssistantError):
            await _call(
                hass, const.SERVICE_QUERY_TASKS, {const.FIELD_VIEW_ROOT: "ghost"}
            )

    async def test_export_json_then_import_replace(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """An export can be imported back unchanged."""
        exported = await _call(hass, const.SERVICE_EXPORT_DATA, {})
        assert exported[const.FIELD_FORMAT] == const.EXPORT_FORMAT_JSON
        document = json.loads(exported["content"])
        assert len(document[const.DATA_TASKS]) == 5

        response = await _call(
            hass,
            const.SERVICE_IMPORT_DATA,
            {
                const.FIELD_PAYLOAD: exported["content"],
                const.FIELD_MODE: const.IMPORT_MODE_REPLACE,
            },
        )
        assert response == {"people": 4, "tasks": 5}

    async def test_export_csv(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """CSV export starts with the BOM and header."""
        response = await _call(
            hass,
            const.SERVICE_EXPORT_DATA,
            {
                const.FIELD_FORMAT: const.EXPORT_FORMAT_CSV,
                const.FIELD_VIEW_ROOT: scenario_team.person_ids["Alex"],
            },
        )
        assert response["content"].startswith(
            const.CSV_BOM + ";".join(const.CSV_HEADER)
        )

    async def test_import_garbage(
        self, hass: HomeAssistant, scenario_team: SetupResult
    ) -> None:
        """Unrecognised payloads fail with the import message."""
        with pytest.raises(HomeAssistantError, match="Import failed"):
            await _call(
                hass, const.SERVICE_IMPORT_DATA, {const.FIELD_PAYLOAD: '{"a": 1}'}
            )

    async def test_save_now(
        self,
        hass: HomeAssistant,
        hass_storage: dict,
        scenario_team: SetupResult,
    ) -> None:
        """save_now writes pending changes immediately."""
        scenario_team.coordinator.upsert_person({const.DATA_PERSON_NAME: "Kim"})
        await _call(hass, const.SERVICE_SAVE_NOW, {}, response=False)
        saved = hass_storage[const.STORAGE_KEY]["data"]
        assert "Kim" in [p[const.DATA_PERSON_NAME] for p in saved[const.DATA_PEOPLE]]
        assert not scenario_team.coordinator.store.save_pending


async def test_services_removed_on_unload(
    hass: HomeAssistant, scenario_team: SetupResult
) -> None:
    """Unloading the only entry unregisters every service."""
    assert hass.services.has_service(const.DOMAIN, const.SERVICE_QUERY_TASKS)
    assert await hass.config_entries.async_unload(scenario_team.config_entry.entry_id)
    await hass.async_block_till_done()
    assert not hass.services.has_service(const.DOMAIN, const.SERVICE_QUERY_TASKS)
