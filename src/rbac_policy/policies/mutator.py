"""Pure edits over policy records.

Every function returns a new tuple and leaves its input untouched. Records
have no identity beyond their field values, so removal is by equality.
Persisting the result is the caller's job; see :mod:`rbac_policy.store`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from rbac_policy.policies._checks import require_grants, require_records, require_str
from rbac_policy.policies.matcher import object_pattern
from rbac_policy.policies.records import Grant, PolicyRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaceScope:
    """The ``(subject, project)`` whose blanket grants an edit replaces."""

    subject: str
    project: str

    def __post_init__(self) -> None:
        require_str(self.subject, "subject")
        require_str(self.project, "project")

    @property
    def object_pattern(self) -> str:
        """``*/*`` for project ``*``, else ``<project>/*``."""
        return object_pattern(self.project)


def add_grants(
    records: Iterable[PolicyRecord],
    new_grants: Iterable[Grant],
    replace_scope: ReplaceScope | None = None,
) -> tuple[PolicyRecord, ...]:
    """Append *new_grants*, optionally replacing a subject's project grants.

    Parameters
    ----------
    records:
        Current records.
    new_grants:
        Grants to append, in order. Duplicates are kept.
    replace_scope:
        When given, every existing grant for ``replace_scope.subject``
        whose object is exactly the scope's pattern is removed first.
        Grants for that subject on other projects, or on specific apps,
        are kept.
    """
    items = require_records(records)
    additions = require_grants(new_grants, "new_grants")

    if replace_scope is not None:
        if not isinstance(replace_scope, ReplaceScope):
            raise TypeError(f"replace_scope must be a ReplaceScope; got {replace_scope!r}.")
        pattern = replace_scope.object_pattern
        kept = tuple(
            r
            for r in items
            if not (
                isinstance(r, Grant)
                and r.subject == replace_scope.subject
                and r.object == pattern
            )
        )
        logger.debug(
            "Replacing %d grant(s) for %s on %s",
            len(items) - len(kept),
            replace_scope.subject,
            pattern,
        )
        items = kept

    return items + additions


def clear_subject(records: Iterable[PolicyRecord], subject: str) -> tuple[PolicyRecord, ...]:
    """Drop every grant and role assignment whose subject is *subject*."""
    require_str(subject, "subject")
    return tuple(r for r in require_records(records) if r.subject != subject)


def remove_grant(records: Iterable[PolicyRecord], grant: Grant) -> tuple[PolicyRecord, ...]:
    """Drop every record equal to *grant*."""
    if not isinstance(grant, Grant):
        raise TypeError(f"grant must be a Grant; got {type(grant).__name__}.")
    return tuple(r for r in require_records(records) if r != grant)
