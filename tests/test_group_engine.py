"""Unit tests for engines/group_engine.py.

Covers nested groups, membership cycles and the symmetry between "tasks of
a group visible to its members" and "members' tasks visible to the group".
"""

from custom_components.team_planner.engines import GroupEngine
from tests.helpers import make_group, make_person


def _team() -> list[dict]:
    """Alex in Design, Design and Sam in Studio, Kim unaffiliated."""
    return [
        make_person("Alex"),
        make_person("Sam"),
        make_person("Kim"),
        make_group("Design", ["p-alex"]),
        make_group("Studio", ["g-design", "p-sam"]),
    ]


class TestResolveGroupMembers:
    """Transitive member resolution."""

    def test_nested_groups(self) -> None:
        """Members of nested groups are included."""
        assert GroupEngine.resolve_group_members(_team(), "g-studio") == {
            "p-alex",
            "p-sam",
        }

    def test_person_resolves_to_itself(self) -> None:
        """A person id is its own member set."""
        assert GroupEngine.resolve_group_members(_team(), "p-kim") == {"p-kim"}

    def test_unknown_id(self) -> None:
        """Unknown ids resolve to nothing."""
        assert GroupEngine.resolve_group_members(_team(), "nobody") == set()

    def test_cycle_terminates(self) -> None:
        """A contains B, B contains A: resolving A is empty."""
        people = [make_group("A", ["g-b"]), make_group("B", ["g-a"])]
        assert GroupEngine.resolve_group_members(people, "g-a") == set()
        assert GroupEngine.reachable_groups(people, "g-a") == {"g-b"}
        assert GroupEngine.containing_groups(people, "g-a") == {"g-b"}

    def test_cycle_with_person(self) -> None:
        """Persons inside a cycle are still found."""
        people = [
            make_person("Alex"),
            make_group("A", ["g-b", "p-alex"]),
            make_group("B", ["g-a"]),
        ]
        assert GroupEngine.resolve_group_members(people, "g-b") == {"p-alex"}


class TestEffectiveAssignees:
    """Visibility roots."""

    def test_person_sees_own_and_containing_groups(self) -> None:
        """Alex sees tasks of Design and (through Design) Studio."""
        assert GroupEngine.effective_assignee_ids(_team(), "p-alex") == {
            "p-alex",
            "g-design",
            "g-studio",
        }

    def test_group_sees_members_and_subgroups(self) -> None:
        """Studio sees Sam, Alex and Design."""
        assert GroupEngine.effective_assignee_ids(_team(), "g-studio") == {
            "g-studio",
            "g-design",
            "p-alex",
            "p-sam",
        }

    def test_unaffiliated_person(self) -> None:
        """Kim only sees Kim."""
        assert GroupEngine.effective_assignee_ids(_team(), "p-kim") == {"p-kim"}

    def test_unknown_root(self) -> None:
        """Unknown roots contribute nothing."""
        assert GroupEngine.effective_assignee_ids(_team(), "ghost") == set()

    def test_symmetry(self) -> None:
        """For every person P and group G: G in eff(P) iff P in members(G)."""
        people = _team()
        persons = ["p-alex", "p-sam", "p-kim"]
        groups = ["g-design", "g-studio"]
        for person_id in persons:
            effective = GroupEngine.effective_assignee_ids(people, person_id)
            for group_id in groups:
                members = GroupEngine.resolve_group_members(people, group_id)
                assert (group_id in effective) == (person_id in members)
