"""Unit tests for policies/mutator.py: add_grants, clear_subject, remove_grant."""
from __future__ import annotations

import pytest

from rbac_policy.policies.mutator import ReplaceScope, add_grants, clear_subject, remove_grant
from rbac_policy.policies.parser import parse_policies, serialize_policies
from rbac_policy.policies.records import Effect, Grant, RoleAssignment

POLICY = """\
p, dev, applications, get, default/*, allow
p, dev, applications, sync, prod/*, allow
p, dev, applications, delete, default/guestbook, allow
p, ops, applications, get, default/*, allow
p, dev, applications, get, */*, allow
g, dev, role:dev
"""

NEW_GRANT = Grant("dev", "applications", "sync", "default/*", Effect.ALLOW)


@pytest.fixture()
def records() -> tuple:
    return parse_policies(POLICY)


class TestAddGrants:
    def test_appends_in_order(self, records: tuple) -> None:
        extra = Grant("qa", "applications", "get", "*/*")
        updated = add_grants(records, [NEW_GRANT, extra])
        assert updated[: len(records)] == records
        assert updated[-2:] == (NEW_GRANT, extra)

    def test_duplicates_kept(self, records: tuple) -> None:
        updated = add_grants(records, [records[0]])
        assert updated.count(records[0]) == 2

    def test_input_not_mutated(self, records: tuple) -> None:
        source = list(records)
        add_grants(source, [NEW_GRANT], ReplaceScope("dev", "default"))
        assert tuple(source) == records

    def test_scoped_replace_only_touches_project_pattern(self, records: tuple) -> None:
        updated = add_grants(records, [NEW_GRANT], ReplaceScope("dev", "default"))
        assert Grant("dev", "applications", "get", "default/*") not in updated
        assert Grant("dev", "applications", "sync", "prod/*") in updated
        assert Grant("dev", "applications", "delete", "default/guestbook") in updated
        assert Grant("ops", "applications", "get", "default/*") in updated
        assert Grant("dev", "applications", "get", "*/*") in updated
        assert RoleAssignment("dev", "role:dev") in updated
        assert updated[-1] == NEW_GRANT
        assert len(updated) == len(records)

    def test_scoped_replace_all_projects(self, records: tuple) -> None:
        updated = add_grants(records, [], ReplaceScope("dev", "*"))
        assert Grant("dev", "applications", "get", "*/*") not in updated
        assert Grant("dev", "applications", "get", "default/*") in updated

    def test_scoped_replace_with_no_existing_grants(self) -> None:
        updated = add_grants([], [NEW_GRANT], ReplaceScope("dev", "default"))
        assert updated == (NEW_GRANT,)

    def test_result_serializes(self, records: tuple) -> None:
        updated = add_grants(records, [NEW_GRANT])
        assert serialize_policies(updated).endswith("p, dev, applications, sync, default/*, allow")

    def test_role_assignment_rejected(self, records: tuple) -> None:
        with pytest.raises(TypeError):
            add_grants(records, [RoleAssignment("x", "y")])  # type: ignore[list-item]

    def test_bad_scope_rejected(self, records: tuple) -> None:
        with pytest.raises(TypeError):
            add_grants(records, [NEW_GRANT], {"subject": "dev", "project": "default"})  # type: ignore[arg-type]


class TestReplaceScope:
    def test_object_pattern(self) -> None:
        assert ReplaceScope("dev", "default").object_pattern == "default/*"
        assert ReplaceScope("dev", "*").object_pattern == "*/*"

    def test_none_subject_raises(self) -> None:
        with pytest.raises(TypeError):
            ReplaceScope(None, "default")  # type: ignore[arg-type]


class TestClearSubject:
    def test_removes_grants_and_roles(self, records: tuple) -> None:
        updated = clear_subject(records, "dev")
        assert updated == (Grant("ops", "applications", "get", "default/*"),)

    def test_unknown_subject_is_noop(self, records: tuple) -> None:
        assert clear_subject(records, "nobody") == records

    def test_none_subject_raises(self, records: tuple) -> None:
        with pytest.raises(TypeError):
            clear_subject(records, None)  # type: ignore[arg-type]


class TestRemoveGrant:
    def test_removes_equal_records(self, records: tuple) -> None:
        target = Grant("dev", "applications", "sync", "prod/*")
        updated = remove_grant(add_grants(records, [target]), target)
        assert target not in updated
        assert len(updated) == len(records) - 1
