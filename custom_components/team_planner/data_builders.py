"""Entity normalization, building and validation.

This module is the SINGLE SOURCE OF TRUTH for:
- Person/task field defaults and shape invariants (normalize_*)
- Referential integrity of the document (cleanup_references)
- Building entities for create/update operations (build_*)
- Business rule validation of user input (validate_*_data)

### Normalize Functions
`normalize_person()` / `normalize_task()` accept any raw value (persisted
JSON, imported JSON, merged user input) and return a complete record that
satisfies every invariant. They never raise and are idempotent: generated
ids and timestamps are only filled in when absent.

### Build Functions
`build_person()` / `build_task()` merge user input (DATA_* keys) over an
existing record (update) or over defaults (create) and normalize the result.

### Validation Functions
`validate_person_data()` / `validate_task_data()` return a dict of
{field: message}; an empty dict means the input may be applied.

Consumers:
- migration.py (load, v1 migration, import)
- coordinator.py (mutations)
- services.py (via coordinator)
"""

from __future__ import annotations

from typing import Any
import uuid

from . import const
from .type_defs import DocumentData, PersonData, TaskData
from .utils import dt_utils

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _clean_str(value: Any) -> str:
    """Return value as a trimmed string ("" for None and non-scalar values)."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _normalize_id_list(value: Any, exclude: str | None = None) -> list[str]:
    """Return a de-duplicated list of non-empty id strings, keeping order.

    A bare string is treated as a single id rather than iterated character by
    character.
    """
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []

    result: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item or item == exclude:
            continue
        if item not in result:
            result.append(item)
    return result


def _coerce_priority(value: Any) -> int:
    """Coerce priority to an int clamped to PRIORITY_MIN..PRIORITY_MAX."""
    if isinstance(value, bool):
        return const.DEFAULT_PRIORITY
    try:
        priority = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return const.DEFAULT_PRIORITY
    return max(const.PRIORITY_MIN, min(const.PRIORITY_MAX, priority))


def _normalize_time(value: Any) -> str | None:
    """Return a "HH:MM" string or None."""
    parsed = dt_utils.dt_parse_time(value)
    return parsed.strftime("%H:%M") if parsed else None


def _ensure_id(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if isinstance(value, str) and value:
        return value
    return str(uuid.uuid4())


def _ensure_timestamp(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return dt_utils.dt_now_iso()


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised by the coordinator when a mutation's input fails business rule
    validation. The document is never touched when this is raised.

    Attributes:
        field: The DATA_* key of the offending field
        message: Human readable error message (ERROR_* constant)
        placeholders: Optional dict of values referenced by the message

    Example:
        raise EntityValidationError(
            field=const.DATA_TASK_TITLE,
            message=const.ERROR_TITLE_REQUIRED,
        )
    """

    def __init__(
        self,
        field: str,
        message: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.message = message
        self.placeholders = placeholders or {}
        super().__init__(message)

    @classmethod
    def from_errors(cls, errors: dict[str, str]) -> EntityValidationError:
        """Build the error for the first failure of a validate_*_data() result."""
        field, message = next(iter(errors.items()))
        return cls(field=field, message=message)


# ==============================================================================
# PEOPLE & GROUPS
# ==============================================================================


def normalize_person(raw: Any) -> PersonData:
    """Return a complete, invariant-satisfying person record.

    - id/createdAt generated only when missing
    - name trimmed, empty -> DEFAULT_PERSON_NAME
    - unknown type -> person
    - members only kept for groups: de-duplicated strings, self removed
    """
    if not isinstance(raw, dict):
        raw = {}

    person_id = _ensure_id(raw, const.DATA_PERSON_ID)
    person_type = raw.get(const.DATA_PERSON_TYPE)
    if person_type not in const.PERSON_TYPES:
        person_type = const.PERSON_TYPE_PERSON

    members: list[str] = []
    if person_type == const.PERSON_TYPE_GROUP:
        members = _normalize_id_list(
            raw.get(const.DATA_PERSON_MEMBERS), exclude=person_id
        )

    return PersonData(
        id=person_id,
        name=_clean_str(raw.get(const.DATA_PERSON_NAME)) or const.DEFAULT_PERSON_NAME,
        type=person_type,
        role=_clean_str(raw.get(const.DATA_PERSON_ROLE)),
        members=members,
        createdAt=_ensure_timestamp(raw.get(const.DATA_PERSON_CREATED_AT)),
    )


def validate_person_data(
    data: dict[str, Any],
    existing_people: list[PersonData] | None = None,
    *,
    current_person_id: str | None = None,
) -> dict[str, str]:
    """Validate person/group business rules.

    Args:
        data: Person data dict with DATA_* keys (already merged for updates)
        existing_people: All existing people for duplicate/membership checks
        current_person_id: ID of the person being updated (excluded from
            duplicate checks; a group may not list this id as member)

    Returns:
        Dict of errors: {field: message}. Empty dict means validation passed.

    Validation Rules:
        1. Name not empty
        2. Name not a case-insensitive duplicate of another person/group
        3. Group members exist and do not include the group itself
    """
    errors: dict[str, str] = {}
    people = existing_people or []

    # === 1. Name validation ===
    name = _clean_str(data.get(const.DATA_PERSON_NAME))
    if not name:
        errors[const.DATA_PERSON_NAME] = const.ERROR_NAME_REQUIRED
        return errors

    # === 2. Duplicate name check ===
    folded = name.casefold()
    for person in people:
        if person[const.DATA_PERSON_ID] == current_person_id:
            continue  # Skip self when updating
        if person[const.DATA_PERSON_NAME].casefold() == folded:
            errors[const.DATA_PERSON_NAME] = const.ERROR_NAME_DUPLICATE
            return errors

    # === 3. Group membership ===
    if data.get(const.DATA_PERSON_TYPE) == const.PERSON_TYPE_GROUP:
        members = _normalize_id_list(data.get(const.DATA_PERSON_MEMBERS))
        if current_person_id and current_person_id in members:
            errors[const.DATA_PERSON_MEMBERS] = const.ERROR_MEMBER_SELF
            return errors
        known_ids = {person[const.DATA_PERSON_ID] for person in people}
        if any(member_id not in known_ids for member_id in members):
            errors[const.DATA_PERSON_MEMBERS] = const.ERROR_MEMBER_UNKNOWN
            return errors

    return errors


def build_person(
    user_input: dict[str, Any],
    existing: PersonData | None = None,
) -> PersonData:
    """Build person data for create or update operations.

    One function handles both create (existing=None) and update
    (existing=PersonData). Fields missing from user_input keep their
    existing value (update) or fall back to defaults (create).
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged: dict[str, Any] = {
        const.DATA_PERSON_ID: existing[const.DATA_PERSON_ID] if existing else None,
        const.DATA_PERSON_NAME: get_field(const.DATA_PERSON_NAME, ""),
        const.DATA_PERSON_TYPE: get_field(
            const.DATA_PERSON_TYPE, const.PERSON_TYPE_PERSON
        ),
        const.DATA_PERSON_ROLE: get_field(const.DATA_PERSON_ROLE, ""),
        const.DATA_PERSON_MEMBERS: get_field(const.DATA_PERSON_MEMBERS, []),
        const.DATA_PERSON_CREATED_AT: (
            existing[const.DATA_PERSON_CREATED_AT] if existing else None
        ),
    }
    return normalize_person(merged)


# ==============================================================================
# TASKS
# ==============================================================================


def normalize_task(raw: Any, *, today: str | None = None) -> TaskData:
    """Return a complete, invariant-satisfying task record.

    Args:
        raw: Any value; non-dicts normalize to an empty task
        today: ISO date used as default start (defaults to today in the
            configured timezone)

    Invariants enforced:
        - backlog tasks carry no dates, times or recurrence and are either
          backlog or done
        - dated tasks default start to today and end to start, end >= start,
          and are never in status backlog
        - appointments/milestones are single-day; only appointments keep times
        - repeatUntil >= start, and null when repeat is none
        - doneAt only set for done tasks
    """
    if not isinstance(raw, dict):
        raw = {}

    kind = raw.get(const.DATA_TASK_KIND)
    if kind not in const.TASK_KINDS:
        kind = const.TASK_KIND_TASK

    repeat = raw.get(const.DATA_TASK_REPEAT)
    if repeat not in const.REPEAT_OPTIONS:
        repeat = const.REPEAT_NONE

    is_backlog = bool(raw.get(const.DATA_TASK_IS_BACKLOG))
    status = raw.get(const.DATA_TASK_STATUS)
    if status not in const.TASK_STATUSES:
        status = const.TASK_STATUS_BACKLOG if is_backlog else const.TASK_STATUS_PLANNED

    start = dt_utils.dt_normalize_iso(raw.get(const.DATA_TASK_START))
    end = dt_utils.dt_normalize_iso(raw.get(const.DATA_TASK_END))
    repeat_until = dt_utils.dt_normalize_iso(raw.get(const.DATA_TASK_REPEAT_UNTIL))
    time_start = _normalize_time(raw.get(const.DATA_TASK_TIME_START))
    time_end = _normalize_time(raw.get(const.DATA_TASK_TIME_END))

    if is_backlog:
        start = end = repeat_until = None
        time_start = time_end = None
        repeat = const.REPEAT_NONE
        if status != const.TASK_STATUS_DONE:
            status = const.TASK_STATUS_BACKLOG
    else:
        start = start or today or dt_utils.dt_today_iso()
        if end is None or end < start or kind in const.SINGLE_DAY_KINDS:
            end = start
        if status == const.TASK_STATUS_BACKLOG:
            status = const.TASK_STATUS_PLANNED
        if repeat_until is not None and repeat_until < start:
            repeat_until = start

    if repeat == const.REPEAT_NONE:
        repeat_until = None

    if kind != const.TASK_KIND_APPOINTMENT:
        time_start = time_end = None
    elif time_start and time_end and time_end < time_start:
        time_end = time_start

    done_at = raw.get(const.DATA_TASK_DONE_AT)
    if status != const.TASK_STATUS_DONE or not isinstance(done_at, str):
        done_at = None

    return TaskData(
        id=_ensure_id(raw, const.DATA_TASK_ID),
        title=_clean_str(raw.get(const.DATA_TASK_TITLE)) or const.DEFAULT_TASK_TITLE,
        note=_clean_str(raw.get(const.DATA_TASK_NOTE)),
        priority=_coerce_priority(raw.get(const.DATA_TASK_PRIORITY)),
        kind=kind,
        isBacklog=is_backlog,
        start=start,
        end=end,
        timeStart=time_start,
        timeEnd=time_end,
        repeat=repeat,
        repeatUntil=repeat_until,
        status=status,
        doneAt=done_at,
        assignees=_normalize_id_list(raw.get(const.DATA_TASK_ASSIGNEES)),
        createdAt=_ensure_timestamp(raw.get(const.DATA_TASK_CREATED_AT)),
    )


def validate_task_data(
    data: dict[str, Any],
    existing_people: list[PersonData] | None = None,
    *,
    is_update: bool = False,
    today: str | None = None,
) -> dict[str, str]:
    """Validate task business rules.

    Works on raw (not yet normalized) input with DATA_* keys so that
    malformed values are reported instead of silently repaired.

    Args:
        data: Task data dict with DATA_* keys (already merged for updates)
        existing_people: All people; assignees must reference them
        is_update: Past start dates are only rejected on create
        today: ISO date considered "today" (defaults to the configured timezone)

    Returns:
        Dict of errors: {field: message}. Empty dict means validation passed.

    Validation Rules:
        1. Title not empty
        2. At least one assignee, all existing
        3. Dated tasks need a start date; not in the past on create
        4. end >= start, repeatUntil >= start
        5. Appointment times are HH:MM and timeEnd >= timeStart
    """
    errors: dict[str, str] = {}
    today_iso = today or dt_utils.dt_today_iso()

    # === 1. Title ===
    if not _clean_str(data.get(const.DATA_TASK_TITLE)):
        errors[const.DATA_TASK_TITLE] = const.ERROR_TITLE_REQUIRED
        return errors

    # === 2. Assignees ===
    assignees = _normalize_id_list(data.get(const.DATA_TASK_ASSIGNEES))
    if not assignees:
        errors[const.DATA_TASK_ASSIGNEES] = const.ERROR_ASSIGNEES_REQUIRED
        return errors
    known_ids = {person[const.DATA_PERSON_ID] for person in existing_people or []}
    if any(assignee not in known_ids for assignee in assignees):
        errors[const.DATA_TASK_ASSIGNEES] = const.ERROR_ASSIGNEE_UNKNOWN
        return errors

    if data.get(const.DATA_TASK_IS_BACKLOG):
        return errors

    # === 3. Start date ===
    start = dt_utils.dt_normalize_iso(data.get(const.DATA_TASK_START))
    if start is None:
        errors[const.DATA_TASK_START] = const.ERROR_START_REQUIRED
        return errors
    if not is_update and start < today_iso:
        errors[const.DATA_TASK_START] = const.ERROR_START_IN_PAST
        return errors

    # === 4. End / repeat bound ===
    end = dt_utils.dt_normalize_iso(data.get(const.DATA_TASK_END))
    if end is not None and end < start:
        errors[const.DATA_TASK_END] = const.ERROR_END_BEFORE_START
        return errors

    if data.get(const.DATA_TASK_REPEAT, const.REPEAT_NONE) != const.REPEAT_NONE:
        repeat_until = dt_utils.dt_normalize_iso(
            data.get(const.DATA_TASK_REPEAT_UNTIL)
        )
        if repeat_until is not None and repeat_until < start:
            errors[const.DATA_TASK_REPEAT_UNTIL] = const.ERROR_REPEAT_UNTIL_BEFORE_START
            return errors

    # === 5. Appointment times ===
    if data.get(const.DATA_TASK_KIND) == const.TASK_KIND_APPOINTMENT:
        times: dict[str, str | None] = {}
        for key in (const.DATA_TASK_TIME_START, const.DATA_TASK_TIME_END):
            value = data.get(key)
            if value in (None, ""):
                times[key] = None
                continue
            if not dt_utils.dt_is_valid_time(value):
                errors[key] = const.ERROR_TIME_INVALID
                return errors
            times[key] = _normalize_time(value)
        time_start = times[const.DATA_TASK_TIME_START]
        time_end = times[const.DATA_TASK_TIME_END]
        if time_start and time_end and time_end < time_start:
            errors[const.DATA_TASK_TIME_END] = const.ERROR_TIME_END_BEFORE_START
            return errors

    return errors


def build_task(
    user_input: dict[str, Any],
    existing: TaskData | None = None,
    *,
    today: str | None = None,
) -> TaskData:
    """Build task data for create or update operations.

    One function handles both create (existing=None) and update
    (existing=TaskData). Identity fields (id, createdAt) and runtime fields
    (status, doneAt) are preserved on update; everything else follows
    user_input > existing > default.
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged: dict[str, Any] = {
        key: get_field(key, default)
        for key, default in (
            (const.DATA_TASK_TITLE, ""),
            (const.DATA_TASK_NOTE, ""),
            (const.DATA_TASK_PRIORITY, const.DEFAULT_PRIORITY),
            (const.DATA_TASK_KIND, const.TASK_KIND_TASK),
            (const.DATA_TASK_IS_BACKLOG, False),
            (const.DATA_TASK_START, None),
            (const.DATA_TASK_END, None),
            (const.DATA_TASK_TIME_START, None),
            (const.DATA_TASK_TIME_END, None),
            (const.DATA_TASK_REPEAT, const.REPEAT_NONE),
            (const.DATA_TASK_REPEAT_UNTIL, None),
            (const.DATA_TASK_ASSIGNEES, []),
        )
    }

    if existing is not None:
        merged[const.DATA_TASK_ID] = existing[const.DATA_TASK_ID]
        merged[const.DATA_TASK_CREATED_AT] = existing[const.DATA_TASK_CREATED_AT]
        merged[const.DATA_TASK_STATUS] = existing[const.DATA_TASK_STATUS]
        merged[const.DATA_TASK_DONE_AT] = existing[const.DATA_TASK_DONE_AT]
        # Leaving the backlog: an undated backlog item becomes planned
        was_backlog = existing[const.DATA_TASK_IS_BACKLOG]
        if was_backlog and not merged[const.DATA_TASK_IS_BACKLOG]:
            if merged[const.DATA_TASK_STATUS] == const.TASK_STATUS_BACKLOG:
                merged[const.DATA_TASK_STATUS] = const.TASK_STATUS_PLANNED
    else:
        merged[const.DATA_TASK_STATUS] = (
            const.TASK_STATUS_BACKLOG
            if merged[const.DATA_TASK_IS_BACKLOG]
            else const.TASK_STATUS_PLANNED
        )

    return normalize_task(merged, today=today)


# ==============================================================================
# DOCUMENT
# ==============================================================================


def build_default_document() -> DocumentData:
    """Return a fresh, empty current-generation document."""
    return DocumentData(
        version=const.SCHEMA_VERSION_CURRENT,
        people=[],
        tasks=[],
        lastSavedAt=None,
    )


def cleanup_references(document: DocumentData) -> DocumentData:
    """Repair referential integrity of a document in place.

    - group members referencing unknown ids (or the group itself) are dropped
    - task assignees referencing unknown ids are dropped
    - tasks left without any assignee are removed

    Dangling ids are never an error. Returns the same document for chaining.
    """
    known_ids = {person[const.DATA_PERSON_ID] for person in document[const.DATA_PEOPLE]}

    for person in document[const.DATA_PEOPLE]:
        if person[const.DATA_PERSON_TYPE] != const.PERSON_TYPE_GROUP:
            person[const.DATA_PERSON_MEMBERS] = []
            continue
        person[const.DATA_PERSON_MEMBERS] = [
            member_id
            for member_id in person[const.DATA_PERSON_MEMBERS]
            if member_id in known_ids and member_id != person[const.DATA_PERSON_ID]
        ]

    surviving: list[TaskData] = []
    for task in document[const.DATA_TASKS]:
        task[const.DATA_TASK_ASSIGNEES] = [
            assignee
            for assignee in task[const.DATA_TASK_ASSIGNEES]
            if assignee in known_ids
        ]
        if task[const.DATA_TASK_ASSIGNEES]:
            surviving.append(task)
        else:
            const.LOGGER.debug(
                "DEBUG: Dropping orphaned task '%s' (%s)",
                task[const.DATA_TASK_TITLE],
                task[const.DATA_TASK_ID],
            )
    document[const.DATA_TASKS] = surviving
    return document


def normalize_document(
    raw: dict[str, Any], *, today: str | None = None, cleanup: bool = True
) -> DocumentData:
    """Normalize a current-generation document shape.

    The caller is responsible for checking the shape (version and list
    fields); this function normalizes every entity and, unless cleanup is
    False, runs cleanup_references().
    """
    last_saved = raw.get(const.DATA_LAST_SAVED_AT)
    document = DocumentData(
        version=const.SCHEMA_VERSION_CURRENT,
        people=[normalize_person(p) for p in raw.get(const.DATA_PEOPLE) or []],
        tasks=[
            normalize_task(t, today=today) for t in raw.get(const.DATA_TASKS) or []
        ],
        lastSavedAt=last_saved if isinstance(last_saved, str) else None,
    )
    return cleanup_references(document) if cleanup else document
