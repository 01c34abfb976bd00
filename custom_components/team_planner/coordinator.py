# File: coordinator.py
"""Coordinator for the Team Planner integration.

Owns the planner document for one config entry. Every query goes through the
pure engines; every mutation validates first, then changes the document,
repairs references, schedules a debounced write and notifies entities.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const, data_builders as db, migration
from .engines import GroupEngine, QueryEngine, TaskEngine
from .helpers import export_helpers as exh
from .utils.dt_utils import dt_today_iso

if TYPE_CHECKING:
    from collections.abc import Iterable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .helpers.holiday_helpers import HolidayCalendar
    from .store import PlannerStore
    from .type_defs import (
        BucketCounts,
        DocumentData,
        ISODate,
        PersonData,
        PersonId,
        TaskData,
        TaskId,
    )


class PlannerCoordinator(DataUpdateCoordinator["DocumentData"]):
    """Coordinator for Team Planner integration.

    There is no polling: data only changes through the mutation methods,
    which push the new document to listeners.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: PlannerStore,
        holidays: HolidayCalendar | None = None,
    ) -> None:
        """Initialize the PlannerCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.store = store
        self.holidays = holidays

    async def _async_update_data(self) -> DocumentData:
        """Return the in-memory document (loaded by the store at setup)."""
        return self.store.data

    # -------------------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------------------

    @property
    def document(self) -> DocumentData:
        """Return the live document."""
        return self.store.data

    @property
    def people(self) -> list[PersonData]:
        """Return all persons and groups."""
        return self.document[const.DATA_PEOPLE]

    @property
    def tasks(self) -> list[TaskData]:
        """Return all tasks."""
        return self.document[const.DATA_TASKS]

    @property
    def people_by_id(self) -> dict[PersonId, PersonData]:
        """Return persons and groups keyed by id."""
        return GroupEngine.index_people(self.people)

    def find_person(self, person_id: PersonId) -> PersonData | None:
        """Return a person/group by id, or None."""
        return self.people_by_id.get(person_id)

    def get_person(self, person_id: PersonId) -> PersonData:
        """Return a person/group by id or raise HomeAssistantError."""
        person = self.find_person(person_id)
        if person is None:
            raise HomeAssistantError(const.ERROR_PERSON_NOT_FOUND_FMT.format(person_id))
        return person

    def find_task(self, task_id: TaskId) -> TaskData | None:
        """Return a task by id, or None."""
        for task in self.tasks:
            if task[const.DATA_TASK_ID] == task_id:
                return task
        return None

    def get_task(self, task_id: TaskId) -> TaskData:
        """Return a task by id or raise HomeAssistantError."""
        task = self.find_task(task_id)
        if task is None:
            raise HomeAssistantError(const.ERROR_TASK_NOT_FOUND_FMT.format(task_id))
        return task

    # -------------------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------------------

    def effective_assignee_ids(self, root_id: PersonId) -> set[PersonId]:
        """Return every assignee id whose tasks are visible from root_id."""
        return GroupEngine.effective_assignee_ids(self.people, root_id)

    def tasks_visible_to(self, root_id: PersonId) -> list[TaskData]:
        """Return tasks visible from a person/group."""
        return QueryEngine.tasks_visible_to(self.document, root_id)

    def tasks_for_day(
        self, root_id: PersonId, day: ISODate, query: str | None = None
    ) -> list[TaskData]:
        """Return the sorted open tasks of a day."""
        return QueryEngine.tasks_for_day(self.document, root_id, day, query)

    def bucket_counts(self, root_id: PersonId, query: str | None = None) -> BucketCounts:
        """Return status bucket counts."""
        return QueryEngine.bucket_counts(self.document, root_id, query)

    def bucket_lists(
        self, root_id: PersonId, query: str | None = None
    ) -> dict[str, list[TaskData]]:
        """Return sorted status bucket lists."""
        return QueryEngine.bucket_lists(self.document, root_id, query)

    def day_counts(
        self, root_id: PersonId, days: Iterable[ISODate], query: str | None = None
    ) -> dict[ISODate, int]:
        """Return per-day open task counts."""
        return QueryEngine.day_counts(self.document, root_id, days, query)

    # -------------------------------------------------------------------------------------
    # People & Groups
    # -------------------------------------------------------------------------------------

    def upsert_person(
        self, user_input: dict[str, Any], person_id: PersonId | None = None
    ) -> PersonData:
        """Create a person/group, or update one when person_id is given.

        Raises:
            EntityValidationError: If the input fails validation.
            HomeAssistantError: If person_id does not exist.
        """
        existing = self.get_person(person_id) if person_id else None
        candidate = {**(existing or {}), **user_input}
        errors = db.validate_person_data(
            candidate, self.people, current_person_id=person_id
        )
        if errors:
            raise db.EntityValidationError.from_errors(errors)

        person = db.build_person(user_input, existing)
        if existing is None:
            self.people.append(person)
            const.LOGGER.info(
                "INFO: Created %s '%s' (%s)",
                person[const.DATA_PERSON_TYPE],
                person[const.DATA_PERSON_NAME],
                person[const.DATA_PERSON_ID],
            )
        else:
            index = self.people.index(existing)
            self.people[index] = person
            const.LOGGER.debug("DEBUG: Updated person '%s'", person[const.DATA_PERSON_ID])

        self._persist()
        return person

    def delete_person(self, person_id: PersonId) -> int:
        """Delete a person/group.

        The id is removed from every task's assignees and every group's
        members; tasks left without assignees are deleted.

        Returns:
            Number of tasks removed along with the person.
        """
        person = self.get_person(person_id)
        tasks_before = len(self.tasks)
        self.people.remove(person)
        self._persist()
        removed = tasks_before - len(self.tasks)
        const.LOGGER.info(
            "INFO: Deleted '%s' (%s), %s orphaned tasks removed",
            person[const.DATA_PERSON_NAME],
            person_id,
            removed,
        )
        return removed

    # -------------------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------------------

    def upsert_task(
        self, user_input: dict[str, Any], task_id: TaskId | None = None
    ) -> TaskData:
        """Create a task, or update one when task_id is given.

        Raises:
            EntityValidationError: If the input fails validation.
            HomeAssistantError: If task_id does not exist.
        """
        existing = self.get_task(task_id) if task_id else None
        candidate = {**(existing or {}), **user_input}
        today = dt_today_iso()
        errors = db.validate_task_data(
            candidate, self.people, is_update=existing is not None, today=today
        )
        if errors:
            raise db.EntityValidationError.from_errors(errors)

        task = db.build_task(user_input, existing, today=today)
        if existing is None:
            self.tasks.append(task)
            const.LOGGER.info(
                "INFO: Created task '%s' (%s)",
                task[const.DATA_TASK_TITLE],
                task[const.DATA_TASK_ID],
            )
        else:
            index = self.tasks.index(existing)
            self.tasks[index] = task
            const.LOGGER.debug("DEBUG: Updated task '%s'", task[const.DATA_TASK_ID])

        self._persist()
        return task

    def delete_task(self, task_id: TaskId) -> None:
        """Delete a task."""
        task = self.get_task(task_id)
        self.tasks.remove(task)
        const.LOGGER.info("INFO: Deleted task '%s'", task[const.DATA_TASK_TITLE])
        self._persist()

    def set_task_status(self, task_id: TaskId, action: str) -> str | None:
        """Apply a TASK_ACTION_* to a task.

        Returns:
            For completion, COMPLETION_ADVANCED or COMPLETION_COMPLETED.

        Raises:
            InvalidTransitionError: If the action is not allowed; the task
                is left unchanged.
        """
        task = self.get_task(task_id)
        outcome = TaskEngine.apply(task, action)
        if outcome == const.COMPLETION_ADVANCED:
            const.LOGGER.info(
                "INFO: Recurring task '%s' advanced to %s",
                task[const.DATA_TASK_TITLE],
                task[const.DATA_TASK_START],
            )
        self._persist()
        return outcome

    def start_task(self, task_id: TaskId) -> None:
        """planned -> inprogress."""
        self.set_task_status(task_id, const.TASK_ACTION_START)

    def pause_task(self, task_id: TaskId) -> None:
        """inprogress -> planned."""
        self.set_task_status(task_id, const.TASK_ACTION_PAUSE)

    def complete_task(self, task_id: TaskId) -> str:
        """Complete a task; returns COMPLETION_ADVANCED or COMPLETION_COMPLETED."""
        outcome = self.set_task_status(task_id, const.TASK_ACTION_COMPLETE)
        return outcome or const.COMPLETION_COMPLETED

    def restore_task(self, task_id: TaskId) -> None:
        """done -> planned (dated) or backlog (undated)."""
        self.set_task_status(task_id, const.TASK_ACTION_RESTORE)

    # -------------------------------------------------------------------------------------
    # Import / Export
    # -------------------------------------------------------------------------------------

    def import_document(
        self, raw: Any, mode: str = const.IMPORT_MODE_MERGE
    ) -> DocumentData:
        """Import a document (JSON text or decoded dict) of any generation.

        Raises:
            ImportFailedError: If the payload is not a planner document; the
                current document is left untouched.
        """
        today = dt_today_iso()
        incoming = migration.prepare_import(raw, today=today)

        if mode == const.IMPORT_MODE_REPLACE:
            document = incoming
            const.LOGGER.info("INFO: Import replaced the planner document")
        else:
            document = migration.merge_import(self.document, incoming, today=today)

        self.store.set_data(document)
        self._persist()
        return document

    def export_document(
        self,
        export_format: str = const.EXPORT_FORMAT_JSON,
        root_id: PersonId | None = None,
        query: str | None = None,
    ) -> str:
        """Return the document as JSON, or the visible tasks as CSV.

        For CSV, root_id limits rows to the tasks visible from that person or
        group (all tasks when omitted); rows are in display order.
        """
        if export_format == const.EXPORT_FORMAT_CSV:
            tasks = self.tasks_visible_to(root_id) if root_id else self.tasks
            rows = QueryEngine.sort_tasks(
                task for task in tasks if QueryEngine.matches_query(task, query)
            )
            return exh.build_csv(self.document, rows)
        return exh.build_json(copy.deepcopy(self.document))

    async def async_save_now(self) -> None:
        """Write the document immediately, cancelling any pending write."""
        await self.store.async_save_now()

    # -------------------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------------------

    def _persist(self) -> None:
        """Repair references, schedule a debounced save and notify listeners."""
        db.cleanup_references(self.document)
        self.store.schedule_save()
        self.async_set_updated_data(self.document)
