"""Engine modules for Team Planner integration.

Contains the pure computation engines:
- group_engine: Cycle-safe group membership resolution
- recurrence_engine: Advancing and projecting repeating tasks
- task_engine: Task status transitions
- query_engine: Visibility, filtering, sorting and bucketing
"""

# Use relative imports within package to avoid mypy module resolution issues
from .group_engine import GroupEngine
from .query_engine import QueryEngine
from .recurrence_engine import RecurrenceEngine
from .task_engine import InvalidTransitionError, TaskEngine

__all__ = [
    "GroupEngine",
    "InvalidTransitionError",
    "QueryEngine",
    "RecurrenceEngine",
    "TaskEngine",
]
