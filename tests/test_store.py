"""Tests for store.PlannerStore: load chain and debounced writes."""

from datetime import timedelta
from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util
from pytest_homeassistant_custom_component.common import async_fire_time_changed

from custom_components.team_planner import const
from custom_components.team_planner.store import PlannerStore
from tests.helpers import make_document, make_person, make_task, storage_payload

LEGACY_DOCUMENT = {
    const.DATA_VERSION: const.SCHEMA_VERSION_LEGACY,
    const.DATA_PEOPLE: [
        {
            "id": "p1",
            "name": "Alex",
            "tasks": [{"id": "t1", "title": "Draft logo", "start": "2026-03-11"}],
        }
    ],
}


# =============================================================================
# Loading
# =============================================================================


class TestInitialize:
    """Startup load chain."""

    async def test_empty_storage(
        self, hass: HomeAssistant, hass_storage: dict[str, Any]
    ) -> None:
        """Nothing stored: empty document, nothing written."""
        store = PlannerStore(hass)
        assert await store.async_initialize() is False
        assert store.data[const.DATA_PEOPLE] == []
        assert const.STORAGE_KEY not in hass_storage

    async def test_current_document(
        self, hass: HomeAssistant, hass_storage: dict[str, Any]
    ) -> None:
        """A stored current document is loaded."""
        document = make_document([make_person("Alex")], [make_task("A", ["p-alex"])])
        hass_storage[const.STORAGE_KEY] = storage_payload(const.STORAGE_KEY, document)

        store = PlannerStore(hass)
        assert await store.async_initialize() is False
        assert store.data[const.DATA_TASKS][0][const.DATA_TASK_TITLE] == "A"

    async def test_legacy_document_is_migrated_and_persisted(
        self, hass: HomeAssistant, hass_storage: dict[str, Any]
    ) -> None:
        """Legacy data is migrated once and written under the current key."""
        hass_storage[const.STORAGE_KEY_LEGACY] = storage_payload(
            const.STORAGE_KEY_LEGACY, LEGACY_DOCUMENT
        )

        store = PlannerStore(hass)
        assert await store.async_initialize() is True

        saved = hass_storage[const.STORAGE_KEY]["data"]
        assert saved[const.DATA_VERSION] == const.SCHEMA_VERSION_CURRENT
        assert saved[const.DATA_TASKS][0][const.DATA_TASK_ASSIGNEES] == ["p1"]
        assert saved[const.DATA_LAST_SAVED_AT] is not None

    async def test_unrecognised_current_falls_back_to_legacy(
        self, hass: HomeAssistant, hass_storage: dict[str, Any]
    ) -> None:
        """A wrongly shaped current document is ignored."""
        hass_storage[const.STORAGE_KEY] = storage_payload(
            const.STORAGE_KEY, {"version": 9, "whatever": []}
        )
        hass_storage[const.STORAGE_KEY_LEGACY] = storage_payload(
            const.STORAGE_KEY_LEGACY, LEGACY_DOCUMENT
        )

        store = PlannerStore(hass)
        assert await store.async_initialize() is True
        assert store.data[const.DATA_PEOPLE][0][const.DATA_PERSON_NAME] == "Alex"


# =============================================================================
# Debounced writes
# =============================================================================


class TestDebounce:
    """Trailing-edge write coalescing."""

    async def test_burst_produces_one_write(self, hass: HomeAssistant) -> None:
        """Several schedule_save calls within the window write once."""
        store = PlannerStore(hass)
        await store.async_initialize()

        with patch.object(Store, "async_save", autospec=True) as mock_save:
            store.schedule_save()
            store.schedule_save()
            store.schedule_save()
            assert store.save_pending
            assert mock_save.call_count == 0

            async_fire_time_changed(hass, dt_util.utcnow() + timedelta(seconds=1))
            await hass.async_block_till_done()

        assert mock_save.call_count == 1
        assert not store.save_pending

    async def test_save_now_cancels_pending_write(self, hass: HomeAssistant) -> None:
        """An immediate save replaces the scheduled one."""
        store = PlannerStore(hass)
        await store.async_initialize()

        with patch.object(Store, "async_save", autospec=True) as mock_save:
            store.schedule_save()
            await store.async_save_now()
            assert mock_save.call_count == 1
            assert not store.save_pending

            async_fire_time_changed(hass, dt_util.utcnow() + timedelta(seconds=1))
            await hass.async_block_till_done()

        assert mock_save.call_count == 1

    async def test_flush_only_when_pending(self, hass: HomeAssistant) -> None:
        """Unload writes only if something is pending."""
        store = PlannerStore(hass)
        await store.async_initialize()

        with patch.object(Store, "async_save", autospec=True) as mock_save:
            await store.async_flush()
            assert mock_save.call_count == 0
            store.schedule_save()
            await store.async_flush()
            assert mock_save.call_count == 1

    async def test_write_failure_is_logged(self, hass: HomeAssistant, caplog) -> None:
        """File system errors do not propagate."""
        store = PlannerStore(hass)
        await store.async_initialize()

        with patch.object(Store, "async_save", side_effect=OSError("disk full")):
            await store.async_save_now()

        assert "disk full" in caplog.text


# =============================================================================
# Removal
# =============================================================================


async def test_delete_storage_removes_both_keys(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """Removing the entry deletes current and legacy data."""
    hass_storage[const.STORAGE_KEY] = storage_payload(
        const.STORAGE_KEY, make_document([make_person("Alex")])
    )
    hass_storage[const.STORAGE_KEY_LEGACY] = storage_payload(
        const.STORAGE_KEY_LEGACY, LEGACY_DOCUMENT
    )

    store = PlannerStore(hass)
    await store.async_initialize()
    await store.async_delete_storage()

    assert const.STORAGE_KEY not in hass_storage
    assert const.STORAGE_KEY_LEGACY not in hass_storage
    assert store.data[const.DATA_PEOPLE] == []
