"""Capability aggregation.

Folds a subject's low-level grants into a :class:`CapabilitySummary` for a
target project (or project/app):

============  ===========================
Capability    Grant action(s)
============  ===========================
view          ``get``
deploy        ``sync``
rollback      ``action/*`` or ``action``
delete        ``delete``
============  ===========================

A grant counts when its effect is ``allow``, its resource is
``applications`` or ``*``, its object matches the target, and its action
is one of the above or ``*``. A matching grant with resource ``*``, or
with action ``*`` on ``applications``, confers full access outright.

Deny grants are inert unless ``deny_overrides`` is set, in which case a
matching deny revokes the capabilities its action names (all of them
for action ``*``).

:func:`wildcard_only_capabilities` repeats the computation over the
subject's ``*/*`` grants only, so a caller can tell blanket access apart
from project-specific additions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from rbac_policy.policies._checks import require_records, require_str
from rbac_policy.policies.matcher import matches, policies_for_subject
from rbac_policy.policies.records import (
    APPLICATIONS_RESOURCE,
    GLOBAL_OBJECT,
    WILDCARD,
    Capability,
    CapabilitySummary,
    Effect,
    Grant,
    PolicyRecord,
)
from rbac_policy.policies.roles import subjects_in_effect

logger = logging.getLogger(__name__)

_RELEVANT_RESOURCES: frozenset[str] = frozenset({APPLICATIONS_RESOURCE, WILDCARD})


@dataclass(frozen=True)
class ProjectCapabilities:
    """Per-project summary row.

    Attributes
    ----------
    project:
        Project the summary applies to.
    summary:
        Everything the subject can do in the project.
    additional:
        The part of ``summary`` not already conferred by ``*/*`` grants.
    """

    project: str
    summary: CapabilitySummary
    additional: CapabilitySummary


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def capabilities(
    records: Iterable[PolicyRecord],
    subject: str,
    project: str,
    app: str = WILDCARD,
    *,
    resolve_roles: bool = False,
    transitive_roles: bool = False,
    deny_overrides: bool = False,
) -> CapabilitySummary:
    """Compute what *subject* can do to ``project/app``.

    Parameters
    ----------
    records:
        Parsed policy records.
    subject:
        User or role name.
    project:
        Target project.
    app:
        Target app; ``*`` (the default) asks about the project as a whole,
        which ``project/<app>`` grants do not satisfy.
    resolve_roles:
        Also apply the grants of roles assigned to *subject*.
    transitive_roles:
        Follow role-to-role assignments when resolving roles.
    deny_overrides:
        Let matching deny grants revoke capabilities.
    """
    require_str(project, "project")
    require_str(app, "app")
    grants = _grants_in_effect(records, subject, resolve_roles, transitive_roles)
    applicable = [g for g in grants if matches(g, project, app)]
    summary = _summarize(applicable, deny_overrides)
    logger.debug(
        "Capabilities for %s on %s/%s from %d grant(s): %s",
        subject,
        project,
        app,
        len(applicable),
        summary.to_dict(),
    )
    return summary


def wildcard_only_capabilities(
    records: Iterable[PolicyRecord],
    subject: str,
    *,
    resolve_roles: bool = False,
    transitive_roles: bool = False,
    deny_overrides: bool = False,
) -> CapabilitySummary:
    """Compute capabilities from *subject*'s ``*/*`` grants alone."""
    grants = _grants_in_effect(records, subject, resolve_roles, transitive_roles)
    return _summarize([g for g in grants if g.object == GLOBAL_OBJECT], deny_overrides)


def project_summary(
    records: Iterable[PolicyRecord],
    subject: str,
    projects: Iterable[str],
    **options: bool,
) -> list[ProjectCapabilities]:
    """Summaries for each of *projects*, with the part beyond ``*/*`` grants.

    Keyword options are passed to :func:`capabilities`.
    """
    items = require_records(records)
    blanket = wildcard_only_capabilities(items, subject, **options)
    rows: list[ProjectCapabilities] = []
    for project in projects:
        summary = capabilities(items, subject, project, **options)
        rows.append(
            ProjectCapabilities(
                project=project,
                summary=summary,
                additional=summary.additional_to(blanket),
            )
        )
    return rows


def grants_for_capabilities(
    subject: str,
    object_pattern: str,
    chosen: Iterable[Capability],
) -> list[Grant]:
    """Allow grants that confer *chosen* capabilities on *object_pattern*.

    Grants come out in view, deploy, rollback, delete order regardless of
    the order of *chosen*.
    """
    require_str(subject, "subject")
    require_str(object_pattern, "object_pattern")
    wanted = {Capability(c) for c in chosen}
    return [
        Grant(
            subject=subject,
            resource=APPLICATIONS_RESOURCE,
            action=capability.grant_action,
            object=object_pattern,
            effect=Effect.ALLOW,
        )
        for capability in Capability
        if capability in wanted
    ]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _grants_in_effect(
    records: Iterable[PolicyRecord],
    subject: str,
    resolve_roles: bool,
    transitive_roles: bool,
) -> list[Grant]:
    items = require_records(records)
    grants: list[Grant] = []
    for name in subjects_in_effect(items, subject, resolve_roles, transitive_roles):
        grants.extend(policies_for_subject(items, name))
    return grants


def _is_full_wildcard(grant: Grant) -> bool:
    return grant.resource == WILDCARD or (
        grant.resource == APPLICATIONS_RESOURCE and grant.action == WILDCARD
    )


def _confers(grant: Grant, capability: Capability) -> bool:
    if grant.resource not in _RELEVANT_RESOURCES:
        return False
    return grant.action == WILDCARD or grant.action in capability.actions


def _summarize(grants: list[Grant], deny_overrides: bool) -> CapabilitySummary:
    allows = [g for g in grants if g.is_allow]
    if any(_is_full_wildcard(g) for g in allows):
        granted = set(Capability)
    else:
        granted = {c for c in Capability if any(_confers(g, c) for g in allows)}

    if deny_overrides:
        denies = [g for g in grants if g.is_deny]
        if any(g.action == WILDCARD and g.resource in _RELEVANT_RESOURCES for g in denies):
            granted.clear()
        else:
            granted -= {c for c in Capability if any(_confers(g, c) for g in denies)}

    return CapabilitySummary.from_capabilities(granted)
