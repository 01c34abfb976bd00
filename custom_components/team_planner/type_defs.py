"""Type definitions for Team Planner data structures.

The persisted document is plain JSON, so every record is a TypedDict whose
keys match the on-disk (camelCase) field names. TypedDict is static analysis
only: runtime shape guarantees come from the normalizers in data_builders.py,
which run on every load and every write.

IMPORTANT: This file must NOT import from coordinator.py, *helpers.py, or
any file that imports coordinator to avoid circular dependencies.
Only import typing machinery here.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

PersonId = str  # UUID string (person or group)
TaskId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"
HHMM = str  # 24h wall-clock time "09:30"

PersonType = Literal["person", "group"]
TaskKind = Literal["task", "appointment", "milestone"]
RepeatRule = Literal["none", "daily", "weekly", "monthly"]
TaskStatus = Literal["planned", "inprogress", "backlog", "done"]


# =============================================================================
# Entity Types
# =============================================================================


class PersonData(TypedDict):
    """A person or a group.

    Groups list member ids (persons or other groups) in `members`; for plain
    persons the list is always empty.
    """

    id: PersonId
    name: str
    type: PersonType
    role: str
    members: list[PersonId]
    createdAt: ISODatetime


class TaskData(TypedDict):
    """A task, appointment or milestone.

    Backlog tasks carry no dates. A recurring task is a single record whose
    start/end describe the current occurrence of the series.
    """

    id: TaskId
    title: str
    note: str
    priority: int  # 0 (none) .. 3 (high)
    kind: TaskKind
    isBacklog: bool
    start: ISODate | None
    end: ISODate | None
    timeStart: HHMM | None  # appointments only
    timeEnd: HHMM | None  # appointments only
    repeat: RepeatRule
    repeatUntil: ISODate | None
    status: TaskStatus
    doneAt: ISODatetime | None
    assignees: list[PersonId]
    createdAt: ISODatetime


class LegacyPersonData(TypedDict):
    """Generation 1 person with its tasks embedded."""

    id: NotRequired[PersonId]
    name: NotRequired[str]
    tasks: NotRequired[list[dict[str, Any]]]


class DocumentData(TypedDict):
    """The persisted planner document (generation 2)."""

    version: int
    people: list[PersonData]
    tasks: list[TaskData]
    lastSavedAt: ISODatetime | None


class LegacyDocumentData(TypedDict):
    """The persisted planner document (generation 1)."""

    version: int
    people: list[LegacyPersonData]
    lastSavedAt: NotRequired[ISODatetime | None]


# =============================================================================
# Query / Collaborator Result Types
# =============================================================================


class BucketCounts(TypedDict):
    """Task counts per status bucket."""

    inprogress: int
    planned: int
    backlog: int
    done: int


class SchoolHolidayRange(TypedDict):
    """A named school holiday spanning an inclusive date range."""

    name: str
    start: ISODate
    end: ISODate
