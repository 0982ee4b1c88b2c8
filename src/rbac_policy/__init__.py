"""rbac-policy-engine: parsing, matching and capability summaries for RBAC policy.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import rbac_policy as rbac
>>> records = rbac.parse_policies("p, dev, applications, get, */*, allow")
>>> rbac.capabilities(records, "dev", "default").can_view
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------
from rbac_policy.policies import (
    Capability,
    CapabilitySummary,
    Effect,
    Grant,
    PolicyCollection,
    PolicyRecord,
    ProjectCapabilities,
    ReplaceScope,
    RoleAssignment,
    RoleGraph,
    add_grants,
    capabilities,
    clear_subject,
    format_policy,
    grants_for_capabilities,
    matches,
    object_pattern,
    parse_policies,
    parse_rbac_config,
    policies_for_app,
    policies_for_subject,
    project_summary,
    remove_grant,
    roles_for_subject,
    serialize_policies,
    subjects_in_effect,
    unique_subjects,
    wildcard_only_capabilities,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from rbac_policy.config import EngineSettings, PolicyConfigError, RBACConfig, SettingsLoader

# ---------------------------------------------------------------------------
# Storage, audit and facade
# ---------------------------------------------------------------------------
from rbac_policy.store import (
    FilePolicyStore,
    InMemoryPolicyStore,
    PolicyStore,
    StaleRevisionError,
    StoredPolicy,
)
from rbac_policy.audit import AuditLogger
from rbac_policy.engine import PolicyEngine

__all__ = [
    "__version__",
    # Policies
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
    # Configuration
    "EngineSettings",
    "PolicyConfigError",
    "RBACConfig",
    "SettingsLoader",
    # Storage, audit and facade
    "AuditLogger",
    "FilePolicyStore",
    "InMemoryPolicyStore",
    "PolicyEngine",
    "PolicyStore",
    "StaleRevisionError",
    "StoredPolicy",
]
