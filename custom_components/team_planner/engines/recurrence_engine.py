"""Recurrence Engine for Team Planner.

A recurring task is one record (series identity) whose start/end describe the
current occurrence. Completing it moves the record to the next occurrence
until the optional `repeatUntil` bound is exceeded.

- daily: +1 day, weekly: +7 days
- monthly: +1 calendar month via `dateutil.relativedelta`, clamped to the
  last day of the month (Jan 31 -> Feb 28/29). Each step starts from the
  current (possibly clamped) start, so Jan 31 -> Feb 28 -> Mar 28.

IMPORTANT: This module must NOT import from coordinator.py to avoid circular imports.
Only import from const.py, type_defs.py, and standard libraries.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_add_days, dt_add_months, dt_days_between

if TYPE_CHECKING:
    from ..type_defs import ISODate, TaskData


class RecurrenceEngine:
    """Pure logic engine for repeating tasks.

    All methods are static - no instance state.
    """

    @staticmethod
    def is_recurring(task: TaskData) -> bool:
        """Return True for a dated task with a repeat rule."""
        return (
            not task[const.DATA_TASK_IS_BACKLOG]
            and task[const.DATA_TASK_REPEAT] != const.REPEAT_NONE
            and task[const.DATA_TASK_START] is not None
        )

    @staticmethod
    def next_period_start(start: ISODate, repeat: str) -> ISODate | None:
        """Return the start of the next period, or None for an unknown rule."""
        if repeat == const.REPEAT_DAILY:
            return dt_add_days(start, 1)
        if repeat == const.REPEAT_WEEKLY:
            return dt_add_days(start, 7)
        if repeat == const.REPEAT_MONTHLY:
            return dt_add_months(start, 1)
        return None

    @staticmethod
    def advance(task: TaskData) -> bool:
        """Move a recurring task to its next occurrence in place.

        Returns:
            True if the task now describes the next occurrence (status reset
            to planned), False if the series is exhausted or the task does
            not recur. Exhaustion is detected before any date changes, so the
            dates are untouched when False is returned.
        """
        start = task[const.DATA_TASK_START]
        if start is None or not RecurrenceEngine.is_recurring(task):
            return False

        end = task[const.DATA_TASK_END] or start
        duration = dt_days_between(start, end)

        next_start = RecurrenceEngine.next_period_start(
            start, task[const.DATA_TASK_REPEAT]
        )
        if next_start is None:
            return False

        repeat_until = task[const.DATA_TASK_REPEAT_UNTIL]
        if repeat_until is not None and next_start > repeat_until:
            return False

        task[const.DATA_TASK_START] = next_start
        task[const.DATA_TASK_END] = dt_add_days(next_start, duration)
        task[const.DATA_TASK_STATUS] = const.TASK_STATUS_PLANNED
        task[const.DATA_TASK_DONE_AT] = None
        return True

    @staticmethod
    def iter_occurrences(
        task: TaskData, limit: int = const.MAX_PROJECTED_OCCURRENCES
    ) -> Iterator[tuple[ISODate, ISODate]]:
        """Yield (start, end) of the current and following occurrences.

        Non-recurring dated tasks yield their single occurrence; backlog
        tasks yield nothing. Never mutates the task.
        """
        start = task[const.DATA_TASK_START]
        if task[const.DATA_TASK_IS_BACKLOG] or start is None:
            return
        end = task[const.DATA_TASK_END] or start
        duration = dt_days_between(start, end)
        repeat = task[const.DATA_TASK_REPEAT]
        repeat_until = task[const.DATA_TASK_REPEAT_UNTIL]

        for _ in range(limit):
            yield start, dt_add_days(start, duration)
            if repeat == const.REPEAT_NONE:
                return
            next_start = RecurrenceEngine.next_period_start(start, repeat)
            if next_start is None or (
                repeat_until is not None and next_start > repeat_until
            ):
                return
            start = next_start

    @staticmethod
    def project_occurrences(
        task: TaskData,
        window_start: ISODate,
        window_end: ISODate,
        limit: int = const.MAX_PROJECTED_OCCURRENCES,
    ) -> list[tuple[ISODate, ISODate]]:
        """Return occurrences overlapping the inclusive window.

        At most `limit` occurrences are examined, which bounds open-ended
        daily series.
        """
        result: list[tuple[ISODate, ISODate]] = []
        for occ_start, occ_end in RecurrenceEngine.iter_occurrences(task, limit):
            if occ_start > window_end:
                break
            if occ_end >= window_start:
                result.append((occ_start, occ_end))
        return result
