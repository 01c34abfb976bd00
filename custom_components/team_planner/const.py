# File: const.py
"""Constants for the Team Planner integration.

This file centralizes storage keys, document field names, enumerations,
defaults, service names and user-facing messages so that every module of the
integration agrees on a single spelling.
"""

import logging

import homeassistant.util.dt as dt_util
from homeassistant.const import Platform

from .utils import dt_utils


def set_default_timezone(hass):
    """Set the default timezone based on the Home Assistant configuration."""
    global DEFAULT_TIME_ZONE
    DEFAULT_TIME_ZONE = dt_util.get_time_zone(hass.config.time_zone)
    if DEFAULT_TIME_ZONE is not None:
        dt_utils.set_default_timezone(DEFAULT_TIME_ZONE)


# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
TEAM_PLANNER_TITLE = "Team Planner"

# Integration Domain
DOMAIN = "team_planner"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.CALENDAR,
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
HOLIDAY_CALENDAR = "holiday_calendar"
STORE = "store"

# Default timezone: initially None, to be set once hass is available.
DEFAULT_TIME_ZONE = None

# ------------------------------------------------------------------------------------------------
# Storage and Versioning
# ------------------------------------------------------------------------------------------------
STORAGE_KEY = "team_planner_data"
STORAGE_KEY_LEGACY = "team_planner_data_v1"
STORAGE_VERSION = 1

# Document schema generations
SCHEMA_VERSION_LEGACY = 1
SCHEMA_VERSION_CURRENT = 2

# Trailing-edge debounce for persistence writes (seconds)
SAVE_DEBOUNCE_SECONDS = 0.12

# ------------------------------------------------------------------------------------------------
# Document Keys
# ------------------------------------------------------------------------------------------------
DATA_VERSION = "version"
DATA_PEOPLE = "people"
DATA_TASKS = "tasks"
DATA_LAST_SAVED_AT = "lastSavedAt"

# Person
DATA_PERSON_ID = "id"
DATA_PERSON_NAME = "name"
DATA_PERSON_TYPE = "type"
DATA_PERSON_ROLE = "role"
DATA_PERSON_MEMBERS = "members"
DATA_PERSON_CREATED_AT = "createdAt"
# v1 only: tasks embedded per person
DATA_PERSON_TASKS_LEGACY = "tasks"

# Task
DATA_TASK_ID = "id"
DATA_TASK_TITLE = "title"
DATA_TASK_NOTE = "note"
DATA_TASK_PRIORITY = "priority"
DATA_TASK_KIND = "kind"
DATA_TASK_IS_BACKLOG = "isBacklog"
DATA_TASK_START = "start"
DATA_TASK_END = "end"
DATA_TASK_TIME_START = "timeStart"
DATA_TASK_TIME_END = "timeEnd"
DATA_TASK_REPEAT = "repeat"
DATA_TASK_REPEAT_UNTIL = "repeatUntil"
DATA_TASK_STATUS = "status"
DATA_TASK_DONE_AT = "doneAt"
DATA_TASK_ASSIGNEES = "assignees"
DATA_TASK_CREATED_AT = "createdAt"

# ------------------------------------------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------------------------------------------
PERSON_TYPE_PERSON = "person"
PERSON_TYPE_GROUP = "group"
PERSON_TYPES = (PERSON_TYPE_PERSON, PERSON_TYPE_GROUP)

TASK_KIND_TASK = "task"
TASK_KIND_APPOINTMENT = "appointment"
TASK_KIND_MILESTONE = "milestone"
TASK_KINDS = (TASK_KIND_TASK, TASK_KIND_APPOINTMENT, TASK_KIND_MILESTONE)
SINGLE_DAY_KINDS = frozenset({TASK_KIND_APPOINTMENT, TASK_KIND_MILESTONE})

REPEAT_NONE = "none"
REPEAT_DAILY = "daily"
REPEAT_WEEKLY = "weekly"
REPEAT_MONTHLY = "monthly"
REPEAT_OPTIONS = (REPEAT_NONE, REPEAT_DAILY, REPEAT_WEEKLY, REPEAT_MONTHLY)

TASK_STATUS_PLANNED = "planned"
TASK_STATUS_IN_PROGRESS = "inprogress"
TASK_STATUS_BACKLOG = "backlog"
TASK_STATUS_DONE = "done"
TASK_STATUSES = (
    TASK_STATUS_PLANNED,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_BACKLOG,
    TASK_STATUS_DONE,
)

# Bucket order used by counts and list views
BUCKET_ORDER = (
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_PLANNED,
    TASK_STATUS_BACKLOG,
    TASK_STATUS_DONE,
)

PRIORITY_MIN = 0
PRIORITY_MAX = 3

# Status actions (set_task_status service / TaskEngine)
TASK_ACTION_START = "start"
TASK_ACTION_PAUSE = "pause"
TASK_ACTION_COMPLETE = "complete"
TASK_ACTION_RESTORE = "restore"
TASK_ACTIONS = (
    TASK_ACTION_START,
    TASK_ACTION_PAUSE,
    TASK_ACTION_COMPLETE,
    TASK_ACTION_RESTORE,
)

# Outcomes of completing a task
COMPLETION_ADVANCED = "advanced"
COMPLETION_COMPLETED = "completed"

# Import modes
IMPORT_MODE_MERGE = "merge"
IMPORT_MODE_REPLACE = "replace"
IMPORT_MODES = (IMPORT_MODE_MERGE, IMPORT_MODE_REPLACE)

# Export formats
EXPORT_FORMAT_JSON = "json"
EXPORT_FORMAT_CSV = "csv"
EXPORT_FORMATS = (EXPORT_FORMAT_JSON, EXPORT_FORMAT_CSV)

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_PERSON_NAME = "Unnamed"
DEFAULT_TASK_TITLE = "(untitled)"
DEFAULT_PRIORITY = 0

# Backlog tasks sort after every dated task
SORT_KEY_UNDATED = "9999-12-31"

# Safety limit for projecting recurring occurrences
MAX_PROJECTED_OCCURRENCES = 366

# Calendar window shown for each person/group
DEFAULT_CALENDAR_SHOW_PERIOD = 90

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_HOLIDAY_COUNTRY = "holiday_country"
CONF_SCHOOL_HOLIDAY_REGION = "school_holiday_region"

CONFIG_FLOW_STEP_USER = "user"

# ------------------------------------------------------------------------------------------------
# Holiday Collaborator
# ------------------------------------------------------------------------------------------------
PUBLIC_HOLIDAYS_API_URL = "https://date.nager.at/api/v3/PublicHolidays/{year}/{country}"
SCHOOL_HOLIDAYS_API_URL = "https://ferien-api.de/api/v1/holidays/{region}/{year}"
HOLIDAY_FETCH_TIMEOUT = 10

# ------------------------------------------------------------------------------------------------
# Entity Identifiers
# ------------------------------------------------------------------------------------------------
CALENDAR_UID_SUFFIX = "_calendar"
CALENDAR_HOLIDAY_UID_SUFFIX = "_holidays"
SENSOR_UID_SUFFIX_OPEN_TASKS = "_open_tasks"

ATTR_PERSON_ID = "person_id"
ATTR_PERSON_TYPE = "person_type"
ATTR_MEMBERS = "members"
ATTR_BUCKETS = "buckets"
ATTR_TODAY = "today"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_UPSERT_PERSON = "upsert_person"
SERVICE_DELETE_PERSON = "delete_person"
SERVICE_UPSERT_TASK = "upsert_task"
SERVICE_DELETE_TASK = "delete_task"
SERVICE_SET_TASK_STATUS = "set_task_status"
SERVICE_IMPORT_DATA = "import_data"
SERVICE_EXPORT_DATA = "export_data"
SERVICE_QUERY_TASKS = "query_tasks"
SERVICE_SAVE_NOW = "save_now"

FIELD_PERSON_ID = "person_id"
FIELD_PERSON_NAME = "name"
FIELD_PERSON_TYPE = "type"
FIELD_PERSON_ROLE = "role"
FIELD_PERSON_MEMBERS = "members"
FIELD_TASK_ID = "task_id"
FIELD_TITLE = "title"
FIELD_NOTE = "note"
FIELD_PRIORITY = "priority"
FIELD_KIND = "kind"
FIELD_IS_BACKLOG = "is_backlog"
FIELD_START = "start"
FIELD_END = "end"
FIELD_TIME_START = "time_start"
FIELD_TIME_END = "time_end"
FIELD_REPEAT = "repeat"
FIELD_REPEAT_UNTIL = "repeat_until"
FIELD_ASSIGNEES = "assignees"
FIELD_ACTION = "action"
FIELD_PAYLOAD = "payload"
FIELD_MODE = "mode"
FIELD_FORMAT = "format"
FIELD_VIEW_ROOT = "view_root"
FIELD_QUERY = "query"
FIELD_DAY = "day"

# ------------------------------------------------------------------------------------------------
# Messages
# ------------------------------------------------------------------------------------------------
MSG_NO_ENTRY_FOUND = "No Team Planner entry found"

ERROR_PERSON_NOT_FOUND_FMT = "Person or group '{}' not found"
ERROR_TASK_NOT_FOUND_FMT = "Task '{}' not found"
ERROR_IMPORT_FAILED = "Import failed: unrecognised document format"

ERROR_NAME_REQUIRED = "Please enter a name."
ERROR_NAME_DUPLICATE = "A person or group with this name already exists."
ERROR_MEMBER_UNKNOWN = "Group members must be existing persons or groups."
ERROR_MEMBER_SELF = "A group cannot contain itself."
ERROR_TITLE_REQUIRED = "Please enter a title."
ERROR_ASSIGNEES_REQUIRED = "Please select at least one person."
ERROR_ASSIGNEE_UNKNOWN = "Assignees must be existing persons or groups."
ERROR_START_REQUIRED = "Please set a start date (or put the task in the backlog)."
ERROR_START_IN_PAST = (
    "The start date is in the past. Use the backlog or pick today or a later date."
)
ERROR_END_BEFORE_START = "The end date must be on or after the start date."
ERROR_REPEAT_UNTIL_BEFORE_START = "The repeat end must be on or after the start date."
ERROR_TIME_INVALID = "Times must use the HH:MM format."
ERROR_TIME_END_BEFORE_START = "The end time must not be before the start time."
ERROR_INVALID_TRANSITION_FMT = "Cannot {} a task with status '{}'"

# ------------------------------------------------------------------------------------------------
# Display labels (CSV export, sensor attributes)
# ------------------------------------------------------------------------------------------------
LABEL_PRIORITY = {0: "none", 1: "low", 2: "medium", 3: "high"}
LABEL_STATUS = {
    TASK_STATUS_PLANNED: "planned",
    TASK_STATUS_IN_PROGRESS: "in progress",
    TASK_STATUS_BACKLOG: "backlog",
    TASK_STATUS_DONE: "done",
}
LABEL_REPEAT = {
    REPEAT_NONE: "—",
    REPEAT_DAILY: "daily",
    REPEAT_WEEKLY: "weekly",
    REPEAT_MONTHLY: "monthly",
}
LABEL_KIND = {
    TASK_KIND_TASK: "task",
    TASK_KIND_APPOINTMENT: "appointment",
    TASK_KIND_MILESTONE: "milestone",
}
LABEL_UNDATED = "no date"
LABEL_UNKNOWN_PERSON = "(unknown)"
LABEL_EMPTY = "—"

CSV_DELIMITER = ";"
CSV_BOM = "\ufeff"
CSV_HEADER = [
    "persons",
    "kind",
    "status",
    "priority",
    "start",
    "end",
    "time",
    "repeat",
    "title",
    "note",
]
