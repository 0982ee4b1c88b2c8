#!/usr/bin/env python3
"""Example: rbac-policy-engine quickstart

Parse a policy, summarise a subject's capabilities per project, and
apply a scoped edit.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install rbac-policy-engine
"""
from __future__ import annotations

import rbac_policy as rbac

POLICY = """\
# everyone on the dev team can look at everything
p, dev, applications, get, */*, allow
p, dev, applications, sync, default/*, allow
p, role:ops, *, *, */*, allow
g, alice, role:ops
"""


def main() -> None:
    print(f"rbac-policy-engine version: {rbac.__version__}")

    # Step 1: Parse
    records = rbac.parse_policies(POLICY)
    print(f"Parsed {len(records)} records; subjects: {rbac.unique_subjects(records)}")

    # Step 2: Summarise per project, separating blanket access from additions
    for row in rbac.project_summary(records, "dev", ["default", "prod"]):
        extra = ", ".join(row.additional.labels()) or "-"
        print(f"  dev on {row.project}: {', '.join(row.summary.labels())} (beyond */*: {extra})")

    # Step 3: Roles
    summary = rbac.capabilities(records, "alice", "prod", resolve_roles=True)
    print(f"  alice on prod via {rbac.roles_for_subject(records, 'alice')}: {summary.labels()}")

    # Step 4: Replace dev's grants on default and write the policy back out
    grants = rbac.grants_for_capabilities("dev", "default/*", [rbac.Capability.ROLLBACK])
    updated = rbac.add_grants(records, grants, rbac.ReplaceScope("dev", "default"))
    print("\nUpdated policy:")
    print(rbac.serialize_policies(updated))


if __name__ == "__main__":
    main()
