"""Test helpers for Team Planner integration tests.

    from tests.helpers import SetupResult, setup_from_yaml

See individual modules for full documentation:
- setup.py: Declarative scenario setup from YAML
- factories.py: Raw person/task/document builders for pure tests
"""

from tests.helpers.factories import make_document, make_group, make_person, make_task
from tests.helpers.setup import (
    SetupResult,
    build_document_from_scenario,
    setup_from_yaml,
    storage_payload,
)

__all__ = [
    "SetupResult",
    "build_document_from_scenario",
    "make_document",
    "make_group",
    "make_person",
    "make_task",
    "setup_from_yaml",
    "storage_payload",
]
