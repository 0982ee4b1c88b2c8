"""Policy engine package for rbac-policy-engine.

Parsing, matching, role resolution, capability aggregation and edits over
``p``/``g`` policy text. Everything here is pure and side-effect free.
"""
from __future__ import annotations

from rbac_policy.policies.capabilities import (
    ProjectCapabilities,
    capabilities,
    grants_for_capabilities,
    project_summary,
    wildcard_only_capabilities,
)
from rbac_policy.policies.matcher import (
    matches,
    object_pattern,
    policies_for_app,
    policies_for_subject,
    unique_subjects,
)
from rbac_policy.policies.mutator import ReplaceScope, add_grants, clear_subject, remove_grant
from rbac_policy.policies.parser import (
    format_policy,
    parse_policies,
    parse_rbac_config,
    serialize_policies,
)
from rbac_policy.policies.records import (
    Capability,
    CapabilitySummary,
    Effect,
    Grant,
    PolicyCollection,
    PolicyRecord,
    RoleAssignment,
)
from rbac_policy.policies.roles import RoleGraph, roles_for_subject, subjects_in_effect

__all__ = [
    "Capability",
    "CapabilitySummary",
    "Effect",
    "Grant",
    "PolicyCollection",
    "PolicyRecord",
    "ProjectCapabilities",
    "ReplaceScope",
    "RoleAssignment",
    "RoleGraph",
    "add_grants",
    "capabilities",
    "clear_subject",
    "format_policy",
    "grants_for_capabilities",
    "matches",
    "object_pattern",
    "parse_policies",
    "parse_rbac_config",
    "policies_for_app",
    "policies_for_subject",
    "project_summary",
    "remove_grant",
    "roles_for_subject",
    "serialize_policies",
    "subjects_in_effect",
    "unique_subjects",
    "wildcard_only_capabilities",
]
