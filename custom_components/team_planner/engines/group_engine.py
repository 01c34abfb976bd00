"""Group Engine - Pure logic for group membership resolution.

Groups list members that may be persons or other groups. Imported data can
contain membership cycles (A contains B, B contains A), so every traversal
here uses an explicit visited set and is guaranteed to terminate. Unknown
ids contribute nothing and are never an error.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import PersonData, PersonId


# =============================================================================
# GROUP ENGINE
# =============================================================================


class GroupEngine:
    """Pure logic engine for group graph traversal.

    All methods are static - no instance state.
    """

    @staticmethod
    def index_people(people: Iterable[PersonData]) -> dict[PersonId, PersonData]:
        """Return people keyed by id."""
        return {person[const.DATA_PERSON_ID]: person for person in people}

    @staticmethod
    def is_group(person: PersonData | None) -> bool:
        """Return True if the record is a group."""
        return (
            person is not None
            and person[const.DATA_PERSON_TYPE] == const.PERSON_TYPE_GROUP
        )

    @staticmethod
    def resolve_group_members(
        people: Iterable[PersonData], group_id: PersonId
    ) -> set[PersonId]:
        """Return the person ids reachable through a group's (nested) members.

        A person id resolves to itself. A group already visited contributes
        nothing when revisited, so for A.members=[B], B.members=[A] the result
        of resolving A is the empty set.
        """
        by_id = GroupEngine.index_people(people)
        root = by_id.get(group_id)
        if root is None:
            return set()
        if not GroupEngine.is_group(root):
            return {group_id}

        result: set[PersonId] = set()
        visited: set[PersonId] = set()

        def walk(current_id: PersonId) -> None:
            if current_id in visited:
                return
            visited.add(current_id)
            for member_id in by_id[current_id][const.DATA_PERSON_MEMBERS]:
                member = by_id.get(member_id)
                if member is None:
                    continue
                if GroupEngine.is_group(member):
                    walk(member_id)
                else:
                    result.add(member_id)

        walk(group_id)
        return result

    @staticmethod
    def reachable_groups(
        people: Iterable[PersonData], group_id: PersonId
    ) -> set[PersonId]:
        """Return the groups reachable through a group's members (excluding itself)."""
        by_id = GroupEngine.index_people(people)
        if not GroupEngine.is_group(by_id.get(group_id)):
            return set()

        visited: set[PersonId] = {group_id}
        queue: deque[PersonId] = deque([group_id])
        while queue:
            current_id = queue.popleft()
            for member_id in by_id[current_id][const.DATA_PERSON_MEMBERS]:
                if member_id in visited or not GroupEngine.is_group(
                    by_id.get(member_id)
                ):
                    continue
                visited.add(member_id)
                queue.append(member_id)

        visited.discard(group_id)
        return visited

    @staticmethod
    def containing_groups(
        people: Iterable[PersonData], person_id: PersonId
    ) -> set[PersonId]:
        """Return every group that contains the id, directly or transitively.

        Breadth-first over groups whose members include an id of the current
        frontier. The id itself is never part of the result.
        """
        groups = [
            person
            for person in people
            if person[const.DATA_PERSON_TYPE] == const.PERSON_TYPE_GROUP
        ]
        found: set[PersonId] = set()
        visited: set[PersonId] = {person_id}
        queue: deque[PersonId] = deque([person_id])

        while queue:
            current_id = queue.popleft()
            for group in groups:
                group_id = group[const.DATA_PERSON_ID]
                if group_id in visited:
                    continue
                if current_id in group[const.DATA_PERSON_MEMBERS]:
                    visited.add(group_id)
                    found.add(group_id)
                    queue.append(group_id)

        return found

    @staticmethod
    def effective_assignee_ids(
        people: Iterable[PersonData], root_id: PersonId
    ) -> set[PersonId]:
        """Return every assignee id whose tasks are visible from a view root.

        - person root: itself plus every group containing it
        - group root: itself plus every person and group reachable through
          its members
        - unknown root: nothing
        """
        people = list(people)
        root = GroupEngine.index_people(people).get(root_id)
        if root is None:
            return set()
        if GroupEngine.is_group(root):
            return (
                {root_id}
                | GroupEngine.resolve_group_members(people, root_id)
                | GroupEngine.reachable_groups(people, root_id)
            )
        return {root_id} | GroupEngine.containing_groups(people, root_id)
