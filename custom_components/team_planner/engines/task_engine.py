"""Task Engine - Pure logic for task status transitions.

Status machine:
    planned <-> inprogress      (start / pause)
    planned | inprogress -> done (complete; recurring tasks advance instead)
    done -> planned | backlog    (restore; backlog when undated)
    backlog -> planned           (happens through an edit that assigns dates,
                                  see data_builders.build_task)

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data. Invalid
transitions raise before anything is mutated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from .. import const
from ..utils.dt_utils import dt_now_iso
from .recurrence_engine import RecurrenceEngine

if TYPE_CHECKING:
    from ..type_defs import TaskData


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed from the task's current status.

    Attributes:
        action: One of TASK_ACTION_*
        status: The task's status when the action was attempted
    """

    def __init__(self, action: str, status: str) -> None:
        """Initialize InvalidTransitionError."""
        self.action = action
        self.status = status
        super().__init__(const.ERROR_INVALID_TRANSITION_FMT.format(action, status))


# =============================================================================
# TASK ENGINE
# =============================================================================


class TaskEngine:
    """Pure logic engine for task status transitions.

    All methods are static - no instance state.
    """

    # Statuses from which each action is allowed
    ALLOWED_FROM: ClassVar[dict[str, frozenset[str]]] = {
        const.TASK_ACTION_START: frozenset({const.TASK_STATUS_PLANNED}),
        const.TASK_ACTION_PAUSE: frozenset({const.TASK_STATUS_IN_PROGRESS}),
        const.TASK_ACTION_COMPLETE: frozenset(
            {const.TASK_STATUS_PLANNED, const.TASK_STATUS_IN_PROGRESS}
        ),
        const.TASK_ACTION_RESTORE: frozenset({const.TASK_STATUS_DONE}),
    }

    @staticmethod
    def can_apply(task: TaskData, action: str) -> bool:
        """Return True if the action is allowed from the task's status."""
        allowed = TaskEngine.ALLOWED_FROM.get(action, frozenset())
        if task[const.DATA_TASK_STATUS] not in allowed:
            return False
        # Backlog items have no schedule to work on; they can only be completed
        if task[const.DATA_TASK_IS_BACKLOG] and action == const.TASK_ACTION_START:
            return False
        return True

    @staticmethod
    def _require(task: TaskData, action: str) -> None:
        if not TaskEngine.can_apply(task, action):
            raise InvalidTransitionError(action, task[const.DATA_TASK_STATUS])

    @staticmethod
    def start(task: TaskData) -> None:
        """planned -> inprogress."""
        TaskEngine._require(task, const.TASK_ACTION_START)
        task[const.DATA_TASK_STATUS] = const.TASK_STATUS_IN_PROGRESS

    @staticmethod
    def pause(task: TaskData) -> None:
        """inprogress -> planned."""
        TaskEngine._require(task, const.TASK_ACTION_PAUSE)
        task[const.DATA_TASK_STATUS] = const.TASK_STATUS_PLANNED

    @staticmethod
    def mark_done(task: TaskData, now: str | None = None) -> str:
        """Complete a task, advancing recurring series instead of closing them.

        Returns:
            COMPLETION_ADVANCED if a recurring task moved to its next
            occurrence (it stays active), COMPLETION_COMPLETED if the task is
            now done. An exhausted series loses its repeat rule first.
        """
        # Backlog tasks are completable from status backlog as well
        if not (
            task[const.DATA_TASK_IS_BACKLOG]
            and task[const.DATA_TASK_STATUS] == const.TASK_STATUS_BACKLOG
        ):
            TaskEngine._require(task, const.TASK_ACTION_COMPLETE)

        if RecurrenceEngine.is_recurring(task):
            if RecurrenceEngine.advance(task):
                return const.COMPLETION_ADVANCED
            task[const.DATA_TASK_REPEAT] = const.REPEAT_NONE
            task[const.DATA_TASK_REPEAT_UNTIL] = None

        task[const.DATA_TASK_STATUS] = const.TASK_STATUS_DONE
        task[const.DATA_TASK_DONE_AT] = now or dt_now_iso()
        return const.COMPLETION_COMPLETED

    @staticmethod
    def restore(task: TaskData) -> None:
        """done -> planned (dated) or backlog (undated)."""
        TaskEngine._require(task, const.TASK_ACTION_RESTORE)
        task[const.DATA_TASK_STATUS] = (
            const.TASK_STATUS_BACKLOG
            if task[const.DATA_TASK_IS_BACKLOG]
            else const.TASK_STATUS_PLANNED
        )
        task[const.DATA_TASK_DONE_AT] = None

    @staticmethod
    def apply(task: TaskData, action: str, now: str | None = None) -> str | None:
        """Dispatch one TASK_ACTION_* to the matching transition.

        Returns the completion outcome for TASK_ACTION_COMPLETE, else None.
        """
        if action == const.TASK_ACTION_START:
            TaskEngine.start(task)
        elif action == const.TASK_ACTION_PAUSE:
            TaskEngine.pause(task)
        elif action == const.TASK_ACTION_COMPLETE:
            return TaskEngine.mark_done(task, now)
        elif action == const.TASK_ACTION_RESTORE:
            TaskEngine.restore(task)
        else:
            raise InvalidTransitionError(action, task[const.DATA_TASK_STATUS])
        return None
