"""Object-pattern matching and subject queries.

A grant's ``object`` applies to a ``(project, app)`` target when it is:

1. ``*/*``: every app in every project;
2. ``<project>/*``: every app in that project;
3. ``<project>/<app>``: exactly that app.

Only whole-segment wildcards are recognised; ``dev-*/*`` is a literal
that matches nothing. Every check is a plain string comparison.
"""
from __future__ import annotations

from typing import Iterable

from rbac_policy.policies._checks import require_records, require_str
from rbac_policy.policies.records import GLOBAL_OBJECT, WILDCARD, Grant, PolicyRecord


def object_pattern(project: str, app: str = WILDCARD) -> str:
    """Canonical object pattern for a project (and optionally an app).

    >>> object_pattern("*")
    '*/*'
    >>> object_pattern("default")
    'default/*'
    >>> object_pattern("default", "guestbook")
    'default/guestbook'
    """
    require_str(project, "project")
    require_str(app, "app")
    if project == WILDCARD:
        return GLOBAL_OBJECT
    return f"{project}/{app}"


def matches(grant: Grant, project: str, app: str) -> bool:
    """Return True if *grant*'s object pattern applies to ``project/app``."""
    if not isinstance(grant, Grant):
        raise TypeError(f"grant must be a Grant; got {type(grant).__name__}.")
    require_str(project, "project")
    require_str(app, "app")

    pattern = grant.object
    if not pattern:
        return False
    if pattern == GLOBAL_OBJECT:
        return True
    if pattern == f"{project}/{WILDCARD}":
        return True
    return pattern == f"{project}/{app}"


def policies_for_app(records: Iterable[PolicyRecord], project: str, app: str) -> list[Grant]:
    """Grants whose object applies to ``project/app``, in source order."""
    return [
        r for r in require_records(records) if isinstance(r, Grant) and matches(r, project, app)
    ]


def policies_for_subject(records: Iterable[PolicyRecord], subject: str) -> list[Grant]:
    """Grants (never role assignments) held directly by *subject*."""
    require_str(subject, "subject")
    return [r for r in require_records(records) if isinstance(r, Grant) and r.subject == subject]


def unique_subjects(records: Iterable[PolicyRecord]) -> list[str]:
    """Sorted, de-duplicated subjects of all grants."""
    return sorted({r.subject for r in require_records(records) if isinstance(r, Grant)})
