# File: store.py
"""Handles persistent data storage for the Team Planner integration.

Uses Home Assistant's Storage helper to save and load the planner document
(people and tasks), ensuring the state is preserved across restarts.

Writes are coalesced by a small state machine:

    idle --schedule_save()--> pending --timer fires--> write --> idle
                              pending --schedule_save()--> pending (timer re-armed)
                              pending --async_save_now()--> write --> idle

The legacy (generation 1) document lives under its own storage key and is
only read once, when no current document exists.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_call_later
from homeassistant.helpers.storage import Store

from . import const, data_builders as db, migration
from .utils.dt_utils import dt_now_iso

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from .type_defs import DocumentData


class PlannerStore:
    """Handles persistent storage operations for Team Planner data.

    Thin wrapper around Home Assistant's Store API holding the in-memory
    document and owning the debounced write timer.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        storage_key: str = const.STORAGE_KEY,
        legacy_storage_key: str = const.STORAGE_KEY_LEGACY,
        save_delay: float = const.SAVE_DEBOUNCE_SECONDS,
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key of the current document (default: const.STORAGE_KEY).
            legacy_storage_key: Key of the generation 1 document.
            save_delay: Debounce window for scheduled writes, in seconds.

        """
        self.hass = hass
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._legacy_store: Store = Store(
            hass, const.STORAGE_VERSION, legacy_storage_key
        )
        self._save_delay = save_delay
        self._data: DocumentData = db.build_default_document()
        self._cancel_pending_save: CALLBACK_TYPE | None = None

    async def _async_load_raw(self, store: Store) -> Any:
        """Load one storage key; unreadable data is treated as absent."""
        try:
            return await store.async_load()
        except HomeAssistantError as err:
            const.LOGGER.warning(
                "WARNING: Could not read storage %s, treating it as empty: %s",
                store.path,
                err,
            )
            return None

    async def async_initialize(self) -> bool:
        """Load the document during startup.

        Tries the current document, then the legacy document (migrated and
        written back immediately), then starts with an empty document.

        Returns:
            True if a legacy document was migrated.
        """
        const.LOGGER.debug("DEBUG: PlannerStore: Loading data from storage")
        raw_current = await self._async_load_raw(self._store)

        raw_legacy = None
        if not migration.is_current_shape(raw_current):
            raw_legacy = await self._async_load_raw(self._legacy_store)

        document, migrated = migration.load_document(raw_current, raw_legacy)
        self._data = document

        if migrated:
            const.LOGGER.info("INFO: Persisting migrated planner document")
            await self.async_save()

        const.LOGGER.debug(
            "DEBUG: Loaded planner document: %s people, %s tasks",
            len(self._data[const.DATA_PEOPLE]),
            len(self._data[const.DATA_TASKS]),
        )
        return migrated

    @property
    def data(self) -> DocumentData:
        """Retrieve the in-memory document."""
        return self._data

    def set_data(self, new_data: DocumentData) -> None:
        """Replace the entire in-memory document."""
        const.LOGGER.debug(
            "DEBUG: PlannerStore set_data called with: %s people, %s tasks",
            len(new_data[const.DATA_PEOPLE]),
            len(new_data[const.DATA_TASKS]),
        )
        self._data = new_data

    # -------------------------------------------------------------------------
    # Debounced writes
    # -------------------------------------------------------------------------

    @property
    def save_pending(self) -> bool:
        """Return True while a scheduled write has not happened yet."""
        return self._cancel_pending_save is not None

    @callback
    def schedule_save(self) -> None:
        """Schedule a write at the trailing edge of the debounce window.

        Each call cancels and re-arms the timer, so a burst of mutations
        produces a single write.
        """
        self._cancel_timer()
        self._cancel_pending_save = async_call_later(
            self.hass, self._save_delay, self._async_handle_save_timer
        )

    async def _async_handle_save_timer(self, _now: datetime) -> None:
        self._cancel_pending_save = None
        await self.async_save()

    @callback
    def _cancel_timer(self) -> None:
        if self._cancel_pending_save is not None:
            self._cancel_pending_save()
            self._cancel_pending_save = None

    async def async_save_now(self) -> None:
        """Cancel any pending write and write immediately."""
        self._cancel_timer()
        await self.async_save()

    async def async_flush(self) -> None:
        """Write now if a write is pending (used on unload)."""
        if self.save_pending:
            await self.async_save_now()

    async def async_save(self) -> None:
        """Stamp lastSavedAt and save the document to storage.

        Raises:
            No exceptions raised - errors are logged but do not stop execution.
            OSError: Logged when file system issues prevent saving.
            TypeError: Logged when data contains non-serializable types.
            ValueError: Logged when data is invalid for JSON serialization.
        """
        self._data[const.DATA_LAST_SAVED_AT] = dt_now_iso()
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Data saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s. "
                "Data contains types that cannot be converted to JSON",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data format: %s. "
                "Data structure may be corrupted",
                err,
            )

    async def async_delete_storage(self) -> None:
        """Delete the storage files (current and legacy) from disk."""
        self._cancel_timer()
        self._data = db.build_default_document()

        for store in (self._store, self._legacy_store):
            try:
                await store.async_remove()
                const.LOGGER.info("INFO: Storage file removed successfully: %s", store.path)
            except OSError as err:
                const.LOGGER.error(
                    "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                    store.path,
                    err,
                )
