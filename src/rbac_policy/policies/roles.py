"""Role membership resolution.

Policies are two-level: ``g`` lines place a user in a role, and the role
receives permissions through ordinary ``p`` lines whose subject is the
role name. :func:`roles_for_subject` is the flat lookup. :class:`RoleGraph`
follows role-to-role assignments transitively for deployments that
choose to enable it.
"""
from __future__ import annotations

from collections import deque
from typing import Iterable

from rbac_policy.policies._checks import require_records, require_str
from rbac_policy.policies.records import PolicyRecord, RoleAssignment


def roles_for_subject(records: Iterable[PolicyRecord], subject: str) -> list[str]:
    """Roles *subject* is directly assigned to, in source order."""
    require_str(subject, "subject")
    return [
        r.role
        for r in require_records(records)
        if isinstance(r, RoleAssignment) and r.subject == subject
    ]


class RoleGraph:
    """Directed membership graph built from role assignments.

    Parameters
    ----------
    records:
        Policy records; only :class:`RoleAssignment` entries are used.

    Example
    -------
    >>> graph = RoleGraph([RoleAssignment("alice", "role:dev"),
    ...                    RoleAssignment("role:dev", "role:viewer")])
    >>> graph.reachable("alice")
    ['role:dev', 'role:viewer']
    """

    def __init__(self, records: Iterable[PolicyRecord]) -> None:
        self._edges: dict[str, list[str]] = {}
        for record in require_records(records):
            if isinstance(record, RoleAssignment):
                targets = self._edges.setdefault(record.subject, [])
                if record.role not in targets:
                    targets.append(record.role)

    def direct(self, subject: str) -> list[str]:
        require_str(subject, "subject")
        return list(self._edges.get(subject, []))

    def reachable(self, subject: str) -> list[str]:
        """All roles reachable from *subject*, breadth-first, cycle-safe.

        The subject itself is never included, even when a cycle leads back
        to it.
        """
        require_str(subject, "subject")
        seen: set[str] = {subject}
        ordered: list[str] = []
        queue: deque[str] = deque([subject])
        while queue:
            node = queue.popleft()
            for role in self._edges.get(node, []):
                if role in seen:
                    continue
                seen.add(role)
                ordered.append(role)
                queue.append(role)
        return ordered


def subjects_in_effect(
    records: Iterable[PolicyRecord],
    subject: str,
    resolve_roles: bool = False,
    transitive: bool = False,
) -> list[str]:
    """The subject followed by the roles whose grants apply to it."""
    require_str(subject, "subject")
    if not resolve_roles:
        return [subject]
    items = require_records(records)
    roles = RoleGraph(items).reachable(subject) if transitive else roles_for_subject(items, subject)
    result = [subject]
    for role in roles:
        if role not in result:
            result.append(role)
    return result
