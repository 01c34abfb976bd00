# File: helpers/export_helpers.py
"""Formatting and export helpers for Team Planner.

Pure functions turning tasks into display strings, CSV rows and JSON text.
Used by the export_data / query_tasks services and the sensor attributes.
"""

from __future__ import annotations

import csv
import io
import json
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import DocumentData, PersonData, TaskData


# ==============================================================================
# Display labels
# ==============================================================================


def priority_label(priority: int) -> str:
    """Return the display label of a priority (0..3)."""
    return const.LABEL_PRIORITY.get(priority, const.LABEL_PRIORITY[0])


def status_label(status: str) -> str:
    """Return the display label of a status."""
    return const.LABEL_STATUS.get(status, status)


def repeat_label(repeat: str) -> str:
    """Return the display label of a repeat rule."""
    return const.LABEL_REPEAT.get(repeat, const.LABEL_EMPTY)


def kind_label(kind: str) -> str:
    """Return the display label of a task kind."""
    return const.LABEL_KIND.get(kind, kind)


def task_range_text(task: TaskData) -> str:
    """Return "start", "start → end" or the undated label."""
    if task[const.DATA_TASK_IS_BACKLOG]:
        return const.LABEL_UNDATED
    start, end = task[const.DATA_TASK_START], task[const.DATA_TASK_END]
    if not start or not end:
        return const.LABEL_EMPTY
    if start == end:
        return start
    return f"{start} → {end}"


def time_range_text(task: TaskData) -> str:
    """Return "HH:MM" or "HH:MM–HH:MM" for appointments, else ""."""
    time_start = task[const.DATA_TASK_TIME_START]
    time_end = task[const.DATA_TASK_TIME_END]
    if not time_start:
        return ""
    if time_end and time_end != time_start:
        return f"{time_start}–{time_end}"
    return time_start


def assignee_names(task: TaskData, people_by_id: dict[str, PersonData]) -> list[str]:
    """Return the display names of a task's assignees."""
    return [
        people_by_id[assignee][const.DATA_PERSON_NAME]
        if assignee in people_by_id
        else const.LABEL_UNKNOWN_PERSON
        for assignee in task[const.DATA_TASK_ASSIGNEES]
    ]


# ==============================================================================
# Export
# ==============================================================================


def build_csv(document: DocumentData, tasks: Iterable[TaskData]) -> str:
    """Return a ';'-delimited CSV (with UTF-8 BOM) of the given tasks.

    Fields containing the delimiter, quotes or newlines are quoted with
    embedded quotes doubled (csv.QUOTE_MINIMAL).
    """
    people_by_id = {
        person[const.DATA_PERSON_ID]: person for person in document[const.DATA_PEOPLE]
    }
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=const.CSV_DELIMITER,
        quotechar='"',
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )
    writer.writerow(const.CSV_HEADER)
    for task in tasks:
        writer.writerow(
            [
                ", ".join(assignee_names(task, people_by_id)),
                kind_label(task[const.DATA_TASK_KIND]),
                status_label(task[const.DATA_TASK_STATUS]),
                priority_label(task[const.DATA_TASK_PRIORITY]),
                task[const.DATA_TASK_START] or "",
                task[const.DATA_TASK_END] or "",
                time_range_text(task),
                repeat_label(task[const.DATA_TASK_REPEAT]),
                task[const.DATA_TASK_TITLE],
                task[const.DATA_TASK_NOTE],
            ]
        )
    return const.CSV_BOM + buffer.getvalue()


def build_json(document: DocumentData) -> str:
    """Return the full document as pretty-printed JSON text."""
    return json.dumps(document, ensure_ascii=False, indent=2)


def task_summary(task: TaskData, people_by_id: dict[str, PersonData]) -> dict[str, Any]:
    """Return a task plus its formatted strings, for service responses."""
    return {
        **task,
        "assigneeNames": assignee_names(task, people_by_id),
        "rangeText": task_range_text(task),
        "timeText": time_range_text(task),
        "priorityLabel": priority_label(task[const.DATA_TASK_PRIORITY]),
    }
