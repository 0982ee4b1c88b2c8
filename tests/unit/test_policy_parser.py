"""Unit tests for policies/parser.py: parse_policies and serialize_policies."""
from __future__ import annotations

import pytest

from rbac_policy.config.envelope import RBACConfig
from rbac_policy.policies.parser import (
    format_policy,
    parse_policies,
    parse_rbac_config,
    serialize_policies,
)
from rbac_policy.policies.records import Effect, Grant, RoleAssignment


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

FULL_POLICY = """\
# Developers can view and sync in default
p, role:dev, applications, get, default/*, allow
p, role:dev, applications, sync, default/*, allow

p, role:ops, *, *, */*, allow
p, mallory, applications, delete, prod/payments, deny
g, alice, role:dev
g, bob, role:ops
"""


# ---------------------------------------------------------------------------
# parse_policies
# ---------------------------------------------------------------------------


class TestParsePolicies:
    def test_full_policy_record_count(self) -> None:
        records = parse_policies(FULL_POLICY)
        assert len(records) == 6

    def test_source_order_preserved(self) -> None:
        records = parse_policies(FULL_POLICY)
        assert [type(r).__name__ for r in records] == [
            "Grant",
            "Grant",
            "Grant",
            "Grant",
            "RoleAssignment",
            "RoleAssignment",
        ]
        assert records[0].subject == "role:dev"
        assert records[-1] == RoleAssignment("bob", "role:ops")

    def test_grant_fields(self) -> None:
        (grant,) = parse_policies("p, role:dev, applications, get, default/*, allow")
        assert grant == Grant("role:dev", "applications", "get", "default/*", Effect.ALLOW)

    def test_deny_effect_parsed(self) -> None:
        records = parse_policies(FULL_POLICY)
        deny = records[3]
        assert isinstance(deny, Grant)
        assert deny.effect is Effect.DENY
        assert deny.is_deny

    def test_fields_are_trimmed(self) -> None:
        (grant,) = parse_policies("   p ,  dev ,applications,   get , */* ,allow   ")
        assert grant.subject == "dev"
        assert grant.resource == "applications"
        assert grant.object == "*/*"

    def test_comments_and_blank_lines_ignored(self) -> None:
        records = parse_policies("# x\n\np, a, applications, get, */*, allow\n# y")
        assert len(records) == 1
        assert isinstance(records[0], Grant)

    def test_indented_comment_ignored(self) -> None:
        assert parse_policies("    # p, a, applications, get, */*, allow") == ()

    def test_malformed_lines_skipped(self) -> None:
        text = (
            "p, admin, applications, get, */*, allow\n"
            "p, incomplete\n"
            "p, dev, applications, sync, default/app, allow"
        )
        records = parse_policies(text)
        assert len(records) == 2
        assert [r.subject for r in records] == ["admin", "dev"]

    def test_short_role_line_skipped(self) -> None:
        assert parse_policies("g, alice") == ()

    def test_unknown_kind_skipped(self) -> None:
        assert parse_policies("x, alice, role:dev\ng2, bob, role:ops") == ()

    def test_extra_fields_ignored(self) -> None:
        (grant, role) = parse_policies(
            "p, dev, applications, get, */*, allow, extra\ng, alice, role:dev, extra"
        )
        assert grant.effect is Effect.ALLOW
        assert role == RoleAssignment("alice", "role:dev")

    @pytest.mark.parametrize(("token", "effect"), [("Allow", Effect.ALLOW), ("DENY", Effect.DENY)])
    def test_effect_case_insensitive(self, token: str, effect: Effect) -> None:
        (grant,) = parse_policies(f"p, dev, applications, get, */*, {token}")
        assert grant.effect is effect
        assert serialize_policies([grant]).endswith(f", {effect.value}")

    def test_unknown_effect_kept_verbatim(self) -> None:
        (grant,) = parse_policies("p, dev, applications, get, */*, maybe")
        assert grant.effect == "maybe"
        assert not grant.is_allow
        assert not grant.is_deny

    def test_empty_object_kept(self) -> None:
        (grant,) = parse_policies("p, dev, applications, get, , allow")
        assert grant.object == ""

    def test_crlf_line_endings(self) -> None:
        records = parse_policies("g, alice, role:dev\r\ng, bob, role:ops\r\n")
        assert len(records) == 2

    def test_empty_text(self) -> None:
        assert parse_policies("") == ()

    def test_none_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            parse_policies(None)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# serialize_policies
# ---------------------------------------------------------------------------


class TestSerializePolicies:
    def test_grant_line_format(self) -> None:
        grant = Grant("dev", "applications", "sync", "default/*", Effect.ALLOW)
        assert format_policy(grant) == "p, dev, applications, sync, default/*, allow"

    def test_role_line_format(self) -> None:
        assert format_policy(RoleAssignment("alice", "role:dev")) == "g, alice, role:dev"

    def test_lines_joined_without_trailing_newline(self) -> None:
        text = serialize_policies(
            [
                Grant("dev", "applications", "get", "*/*", Effect.DENY),
                RoleAssignment("alice", "role:dev"),
            ]
        )
        assert text == "p, dev, applications, get, */*, deny\ng, alice, role:dev"

    def test_empty_collection_is_empty_string(self) -> None:
        assert serialize_policies([]) == ""

    def test_unknown_effect_written_back(self) -> None:
        records = parse_policies("p, dev, applications, get, */*, maybe")
        assert serialize_policies(records) == "p, dev, applications, get, */*, maybe"

    def test_round_trip_preserves_records_and_order(self) -> None:
        records = parse_policies(FULL_POLICY)
        assert parse_policies(serialize_policies(records)) == records

    def test_round_trip_drops_comments(self) -> None:
        text = serialize_policies(parse_policies(FULL_POLICY))
        assert "#" not in text
        assert "\n\n" not in text

    def test_non_record_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            serialize_policies(["p, dev, applications, get, */*, allow"])  # type: ignore[list-item]


# ---------------------------------------------------------------------------
# parse_rbac_config
# ---------------------------------------------------------------------------


class TestParseRbacConfig:
    def test_from_mapping_with_wire_names(self) -> None:
        collection = parse_rbac_config(
            {"policy": "g, alice, role:dev", "policyDefault": "role:readonly"}
        )
        assert collection.records == (RoleAssignment("alice", "role:dev"),)
        assert collection.default_role == "role:readonly"
        assert collection.raw == "g, alice, role:dev"

    def test_from_envelope_model(self) -> None:
        envelope = RBACConfig(policy=FULL_POLICY, policy_default="role:readonly", scopes="[groups]")
        collection = parse_rbac_config(envelope)
        assert len(collection) == 6
        assert collection.default_role == "role:readonly"
        assert collection.raw == FULL_POLICY

    def test_missing_policy_is_empty(self) -> None:
        collection = parse_rbac_config({})
        assert collection.records == ()
        assert collection.default_role is None

    def test_grants_and_role_assignments_split(self) -> None:
        collection = parse_rbac_config({"policy": FULL_POLICY})
        assert len(collection.grants) == 4
        assert len(collection.role_assignments) == 2

    def test_with_records_regenerates_raw(self) -> None:
        collection = parse_rbac_config({"policy": FULL_POLICY, "policyDefault": "role:x"})
        trimmed = collection.with_records(collection.role_assignments)
        assert trimmed.raw == "g, alice, role:dev\ng, bob, role:ops"
        assert trimmed.default_role == "role:x"
