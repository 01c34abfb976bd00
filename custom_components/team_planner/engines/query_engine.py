"""Query Engine - Pure logic for filtering, sorting and bucketing tasks.

Everything a view needs is derived from the document and a view root (a
person or group id): the tasks visible from that root, the ones active on a
given day, per-status buckets and per-day counts for a month grid.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
"""

from __future__ import annotations

from collections.abc import Iterable
import locale
from typing import TYPE_CHECKING

from .. import const
from .group_engine import GroupEngine

if TYPE_CHECKING:
    from ..type_defs import BucketCounts, DocumentData, ISODate, PersonId, TaskData


class QueryEngine:
    """Pure logic engine for task queries.

    All methods are static - no instance state.
    """

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    @staticmethod
    def is_visible_day(task: TaskData, day: ISODate) -> bool:
        """Return True if an open, dated task spans the day (inclusive)."""
        if task[const.DATA_TASK_IS_BACKLOG]:
            return False
        if task[const.DATA_TASK_STATUS] == const.TASK_STATUS_DONE:
            return False
        start = task[const.DATA_TASK_START]
        if start is None:
            return False
        end = task[const.DATA_TASK_END] or start
        return start <= day <= end

    @staticmethod
    def matches_query(task: TaskData, query: str | None) -> bool:
        """Case-insensitive substring match on title and note; blank matches all."""
        needle = (query or "").strip().casefold()
        if not needle:
            return True
        haystack = f"{task[const.DATA_TASK_TITLE]} {task[const.DATA_TASK_NOTE] or ''}"
        return needle in haystack.casefold()

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    @staticmethod
    def sort_key(task: TaskData) -> tuple[int, str, str, str, str]:
        """Return the total ordering key for task lists.

        priority desc, then due key asc (backlog last), then appointment
        start time asc, then title asc (locale-aware, case-insensitive first).
        """
        if task[const.DATA_TASK_IS_BACKLOG]:
            due_key = const.SORT_KEY_UNDATED
        else:
            due_key = (
                task[const.DATA_TASK_END]
                or task[const.DATA_TASK_START]
                or const.SORT_KEY_UNDATED
            )
        time_key = ""
        if task[const.DATA_TASK_KIND] == const.TASK_KIND_APPOINTMENT:
            time_key = task[const.DATA_TASK_TIME_START] or ""
        title = task[const.DATA_TASK_TITLE] or ""
        return (
            -task[const.DATA_TASK_PRIORITY],
            due_key,
            time_key,
            locale.strxfrm(title.casefold()),
            title,
        )

    @staticmethod
    def sort_tasks(tasks: Iterable[TaskData]) -> list[TaskData]:
        """Return tasks in display order (stable)."""
        return sorted(tasks, key=QueryEngine.sort_key)

    # -------------------------------------------------------------------------
    # Document queries
    # -------------------------------------------------------------------------

    @staticmethod
    def tasks_visible_to(document: DocumentData, root_id: PersonId) -> list[TaskData]:
        """Return tasks whose assignees intersect the root's effective set."""
        effective = GroupEngine.effective_assignee_ids(
            document[const.DATA_PEOPLE], root_id
        )
        return [
            task
            for task in document[const.DATA_TASKS]
            if effective.intersection(task[const.DATA_TASK_ASSIGNEES])
        ]

    @staticmethod
    def tasks_for_day(
        document: DocumentData,
        root_id: PersonId,
        day: ISODate,
        query: str | None = None,
    ) -> list[TaskData]:
        """Return the sorted open tasks visible from the root on a day."""
        return QueryEngine.sort_tasks(
            task
            for task in QueryEngine.tasks_visible_to(document, root_id)
            if QueryEngine.is_visible_day(task, day)
            and QueryEngine.matches_query(task, query)
        )

    @staticmethod
    def bucket_counts(
        document: DocumentData, root_id: PersonId, query: str | None = None
    ) -> BucketCounts:
        """Count visible tasks per status bucket."""
        counts: dict[str, int] = dict.fromkeys(const.BUCKET_ORDER, 0)
        for task in QueryEngine.tasks_visible_to(document, root_id):
            if not QueryEngine.matches_query(task, query):
                continue
            status = task[const.DATA_TASK_STATUS]
            if status in counts:
                counts[status] += 1
        return counts  # type: ignore[return-value]

    @staticmethod
    def bucket_lists(
        document: DocumentData, root_id: PersonId, query: str | None = None
    ) -> dict[str, list[TaskData]]:
        """Return visible tasks grouped by status bucket, each list sorted."""
        buckets: dict[str, list[TaskData]] = {
            status: [] for status in const.BUCKET_ORDER
        }
        for task in QueryEngine.tasks_visible_to(document, root_id):
            if QueryEngine.matches_query(task, query):
                buckets[task[const.DATA_TASK_STATUS]].append(task)
        return {
            status: QueryEngine.sort_tasks(tasks) for status, tasks in buckets.items()
        }

    @staticmethod
    def day_counts(
        document: DocumentData,
        root_id: PersonId,
        days: Iterable[ISODate],
        query: str | None = None,
    ) -> dict[ISODate, int]:
        """Return the number of open tasks per day (e.g. for a month grid)."""
        candidates = [
            task
            for task in QueryEngine.tasks_visible_to(document, root_id)
            if QueryEngine.matches_query(task, query)
        ]
        return {
            day: sum(1 for task in candidates if QueryEngine.is_visible_day(task, day))
            for day in days
        }
