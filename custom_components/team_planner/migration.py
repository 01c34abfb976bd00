"""Document loading, schema migration and import merging.

Generations:
    - v1 (legacy): tasks embedded per person (`people[].tasks`)
    - v2 (current): flat `tasks` list, each task with its own `assignees`

Everything in this module is pure: it takes raw JSON-compatible values and
returns new documents. Persisting the result is the caller's job (see
store.PlannerStore.async_load_document()).
"""

from __future__ import annotations

import copy
import json
from typing import Any
import uuid

from . import const, data_builders as db
from .type_defs import DocumentData, PersonData

# ================================================================================================
# Exceptions
# ================================================================================================


class ImportFailedError(Exception):
    """Raised when an import payload is not a recognisable planner document."""

    def __init__(self, message: str = const.ERROR_IMPORT_FAILED) -> None:
        """Initialize ImportFailedError."""
        self.message = message
        super().__init__(message)


# ================================================================================================
# Shape Detection
# ================================================================================================


def parse_json_safely(raw: Any) -> Any:
    """Parse JSON text; anything unparsable is treated as absent (None).

    Already-decoded values (dicts, lists) pass through unchanged.
    """
    if raw is None:
        return None
    if not isinstance(raw, (str, bytes, bytearray)):
        return raw
    try:
        return json.loads(raw)
    except ValueError as err:
        const.LOGGER.debug("DEBUG: Ignoring unparsable JSON document: %s", err)
        return None


def is_current_shape(raw: Any) -> bool:
    """Return True for a {version: 2, people: [...], tasks: [...]} document."""
    return (
        isinstance(raw, dict)
        and raw.get(const.DATA_VERSION) == const.SCHEMA_VERSION_CURRENT
        and isinstance(raw.get(const.DATA_PEOPLE), list)
        and isinstance(raw.get(const.DATA_TASKS), list)
    )


def is_legacy_shape(raw: Any) -> bool:
    """Return True for a {version: 1, people: [...]} document."""
    return (
        isinstance(raw, dict)
        and raw.get(const.DATA_VERSION) == const.SCHEMA_VERSION_LEGACY
        and isinstance(raw.get(const.DATA_PEOPLE), list)
    )


def detect_schema_generation(raw: Any) -> int | None:
    """Return the schema generation of a raw document, or None if unknown."""
    if is_current_shape(raw):
        return const.SCHEMA_VERSION_CURRENT
    if is_legacy_shape(raw):
        return const.SCHEMA_VERSION_LEGACY
    return None


# ================================================================================================
# v1 -> v2
# ================================================================================================


def migrate_v1_to_v2(
    legacy: dict[str, Any], *, today: str | None = None, cleanup: bool = True
) -> DocumentData:
    """Lift tasks embedded per person into the flat task collection.

    Each embedded task gets its owner as sole assignee. Two legacy persons
    may have reused the same task id: the first occurrence keeps it, later
    ones get a fresh id. `lastSavedAt` is carried over.
    """
    document = db.build_default_document()
    used_task_ids: set[str] = set()

    for raw_person in legacy.get(const.DATA_PEOPLE) or []:
        if not isinstance(raw_person, dict):
            raw_person = {}
        person = db.normalize_person(
            {
                const.DATA_PERSON_ID: raw_person.get(const.DATA_PERSON_ID),
                const.DATA_PERSON_NAME: raw_person.get(const.DATA_PERSON_NAME),
                const.DATA_PERSON_ROLE: raw_person.get(const.DATA_PERSON_ROLE),
                const.DATA_PERSON_CREATED_AT: raw_person.get(
                    const.DATA_PERSON_CREATED_AT
                ),
            }
        )
        document[const.DATA_PEOPLE].append(person)

        embedded = raw_person.get(const.DATA_PERSON_TASKS_LEGACY)
        for raw_task in embedded if isinstance(embedded, list) else []:
            task = db.normalize_task(
                dict(raw_task) if isinstance(raw_task, dict) else {}, today=today
            )
            if task[const.DATA_TASK_ID] in used_task_ids:
                task[const.DATA_TASK_ID] = str(uuid.uuid4())
            used_task_ids.add(task[const.DATA_TASK_ID])
            task[const.DATA_TASK_ASSIGNEES] = [person[const.DATA_PERSON_ID]]
            document[const.DATA_TASKS].append(task)

    last_saved = legacy.get(const.DATA_LAST_SAVED_AT)
    document[const.DATA_LAST_SAVED_AT] = last_saved if isinstance(last_saved, str) else None

    const.LOGGER.info(
        "INFO: Migrated v1 document: %s people, %s tasks",
        len(document[const.DATA_PEOPLE]),
        len(document[const.DATA_TASKS]),
    )
    return db.cleanup_references(document) if cleanup else document


def normalize_incoming(
    raw: Any, *, today: str | None = None, cleanup: bool = True
) -> DocumentData | None:
    """Return a normalized v2 document from any generation, or None.

    With cleanup=False, references to people outside the document are kept,
    so they can still be resolved against another document.
    """
    generation = detect_schema_generation(raw)
    if generation == const.SCHEMA_VERSION_CURRENT:
        return db.normalize_document(raw, today=today, cleanup=cleanup)
    if generation == const.SCHEMA_VERSION_LEGACY:
        return migrate_v1_to_v2(raw, today=today, cleanup=cleanup)
    return None


def load_document(
    raw_current: Any, raw_legacy: Any = None, *, today: str | None = None
) -> tuple[DocumentData, bool]:
    """Resolve the document to use at startup.

    Order: current-generation data -> legacy data (migrated) -> empty.
    Unparsable or wrongly shaped data is treated as absent.

    Returns:
        (document, migrated): migrated is True when the legacy data was
        upgraded and should be persisted immediately.
    """
    current = parse_json_safely(raw_current)
    if is_current_shape(current):
        return db.normalize_document(current, today=today), False
    if current is not None:
        const.LOGGER.warning(
            "WARNING: Stored planner document has an unrecognised shape, ignoring it"
        )

    legacy = parse_json_safely(raw_legacy)
    if is_legacy_shape(legacy):
        return migrate_v1_to_v2(legacy, today=today), True

    const.LOGGER.debug("DEBUG: No stored planner document, starting empty")
    return db.build_default_document(), False


# ================================================================================================
# Import
# ================================================================================================


def prepare_import(raw: Any, *, today: str | None = None) -> DocumentData:
    """Parse and normalize an import payload or raise ImportFailedError.

    Assignees and members are not checked here: a merge resolves them
    against the current people, a replace is repaired when persisted.
    """
    incoming = normalize_incoming(parse_json_safely(raw), today=today, cleanup=False)
    if incoming is None:
        raise ImportFailedError
    return incoming


def merge_import(
    current: DocumentData, incoming: DocumentData, *, today: str | None = None
) -> DocumentData:
    """Merge an incoming document into a copy of the current one.

    People match existing ones by id, then by case-insensitive name; unmatched
    people are inserted. A name match makes the incoming id an alias of the
    existing id, so its tasks and memberships follow.

    Tasks never overwrite: an id collision gets a fresh id. Assignees are
    filtered to the merged people set; a task without surviving assignee is
    dropped.
    """
    merged: DocumentData = copy.deepcopy(current)
    by_id: dict[str, PersonData] = {
        person[const.DATA_PERSON_ID]: person for person in merged[const.DATA_PEOPLE]
    }
    by_name: dict[str, PersonData] = {
        person[const.DATA_PERSON_NAME].casefold(): person
        for person in merged[const.DATA_PEOPLE]
    }
    aliases: dict[str, str] = {}
    inserted: list[PersonData] = []

    for person_in in incoming[const.DATA_PEOPLE]:
        incoming_id = person_in[const.DATA_PERSON_ID]
        target = by_id.get(incoming_id) or by_name.get(
            person_in[const.DATA_PERSON_NAME].casefold()
        )
        if target is not None:
            aliases[incoming_id] = target[const.DATA_PERSON_ID]
            continue
        person_new = db.normalize_person(copy.deepcopy(person_in))
        merged[const.DATA_PEOPLE].append(person_new)
        inserted.append(person_new)
        by_id[incoming_id] = person_new
        by_name[person_new[const.DATA_PERSON_NAME].casefold()] = person_new

    def resolve(person_id: str) -> str:
        return aliases.get(person_id, person_id)

    for person in inserted:
        person[const.DATA_PERSON_MEMBERS] = db.normalize_person(
            {
                **person,
                const.DATA_PERSON_MEMBERS: [
                    resolve(member) for member in person[const.DATA_PERSON_MEMBERS]
                ],
            }
        )[const.DATA_PERSON_MEMBERS]

    known_ids = set(by_id)
    existing_task_ids = {task[const.DATA_TASK_ID] for task in merged[const.DATA_TASKS]}
    added = dropped = 0

    for task_in in incoming[const.DATA_TASKS]:
        task = db.normalize_task(copy.deepcopy(task_in), today=today)
        task[const.DATA_TASK_ASSIGNEES] = [
            assignee
            for assignee in dict.fromkeys(
                resolve(a) for a in task[const.DATA_TASK_ASSIGNEES]
            )
            if assignee in known_ids
        ]
        if not task[const.DATA_TASK_ASSIGNEES]:
            dropped += 1
            continue
        if task[const.DATA_TASK_ID] in existing_task_ids:
            task[const.DATA_TASK_ID] = str(uuid.uuid4())
        existing_task_ids.add(task[const.DATA_TASK_ID])
        merged[const.DATA_TASKS].append(task)
        added += 1

    const.LOGGER.info(
        "INFO: Import merged: %s new people, %s tasks added, %s tasks dropped",
        len(inserted),
        added,
        dropped,
    )
    return db.cleanup_references(merged)
