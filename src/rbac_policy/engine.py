"""Store-backed facade over the pure policy functions.

:class:`PolicyEngine` reads the envelope from a :class:`PolicyStore`,
answers capability questions against the parsed snapshot, and applies
edits as read, mutate, compare-and-swap write. A write that loses a race
is retried once against a fresh snapshot; a second loss propagates as
:class:`~rbac_policy.store.StaleRevisionError`.

Example
-------
>>> from rbac_policy.store import InMemoryPolicyStore
>>> engine = PolicyEngine(InMemoryPolicyStore())
>>> _ = engine.grant("dev", "default", [Capability.VIEW, Capability.DEPLOY])
>>> engine.capabilities("dev", "default").can_deploy
True
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable

from rbac_policy.audit.logger import AuditLogger
from rbac_policy.config.settings import EngineSettings
from rbac_policy.policies._checks import require_grants
from rbac_policy.policies.capabilities import (
    ProjectCapabilities,
    capabilities,
    grants_for_capabilities,
    project_summary,
    wildcard_only_capabilities,
)
from rbac_policy.policies.matcher import object_pattern, policies_for_subject
from rbac_policy.policies.mutator import ReplaceScope, add_grants, clear_subject
from rbac_policy.policies.parser import parse_rbac_config, serialize_policies
from rbac_policy.policies.records import (
    WILDCARD,
    Capability,
    CapabilitySummary,
    Grant,
    PolicyCollection,
    PolicyRecord,
    RoleAssignment,
)
from rbac_policy.store.base import PolicyStore, StaleRevisionError, StoredPolicy

logger = logging.getLogger(__name__)

Mutation = Callable[[tuple[PolicyRecord, ...]], tuple[PolicyRecord, ...]]

_WRITE_ATTEMPTS: int = 2


class PolicyEngine:
    """Answers capability queries and applies edits against a store.

    Parameters
    ----------
    store:
        Where the envelope lives.
    settings:
        Evaluation options; defaults apply when omitted.
    audit:
        Audit trail for accepted edits. When omitted and
        ``settings.audit_enabled`` is set, one is created at
        ``settings.audit_log_path``.
    """

    def __init__(
        self,
        store: PolicyStore,
        settings: EngineSettings | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or EngineSettings(audit_enabled=False)
        if audit is None and self._settings.audit_enabled:
            audit = AuditLogger(self._settings.audit_log_path)
        self._audit = audit

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load(self) -> PolicyCollection:
        """Parse the store's current policy."""
        return parse_rbac_config(self._store.get().config)

    def capabilities(self, subject: str, project: str, app: str = "*") -> CapabilitySummary:
        records, options = self._evaluation_view(self.load(), subject)
        return capabilities(records, subject, project, app, **options)

    def wildcard_only_capabilities(self, subject: str) -> CapabilitySummary:
        records, options = self._evaluation_view(self.load(), subject)
        return wildcard_only_capabilities(records, subject, **options)

    def project_summary(self, subject: str, projects: Iterable[str]) -> list[ProjectCapabilities]:
        records, options = self._evaluation_view(self.load(), subject)
        return project_summary(records, subject, projects, **options)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_grants(
        self,
        grants: Iterable[Grant],
        replace_scope: ReplaceScope | None = None,
    ) -> StoredPolicy:
        """Append *grants*, replacing the scope's grants when given."""
        new_grants = require_grants(grants)
        subjects = {grant.subject for grant in new_grants}
        if replace_scope is not None:
            subject: str | None = replace_scope.subject
        else:
            subject = subjects.pop() if len(subjects) == 1 else None
        return self._apply(
            lambda records: add_grants(records, new_grants, replace_scope),
            {
                "event": "policy_grants_added",
                "subject": subject,
                "project": replace_scope.project if replace_scope else None,
                "replace": replace_scope is not None,
                "count": len(new_grants),
            },
        )

    def grant(
        self,
        subject: str,
        project: str,
        chosen: Iterable[Capability],
        app: str = "*",
        replace: bool = False,
    ) -> StoredPolicy:
        """Grant *chosen* capabilities on ``project/app`` to *subject*.

        With ``replace=True`` the subject's existing grants on the project
        pattern are swapped for the new set. Replacement is scoped to a
        whole project, so it cannot be combined with a specific *app*.

        Raises
        ------
        ValueError
            If ``replace=True`` and *app* is not ``*``.
        """
        if replace and app != WILDCARD:
            raise ValueError(
                f"Cannot replace grants for a single application ({project}/{app}); "
                "replacement applies to a whole project."
            )
        grants = grants_for_capabilities(subject, object_pattern(project, app), chosen)
        scope = ReplaceScope(subject, project) if replace else None
        return self.add_grants(grants, scope)

    def clear_subject(self, subject: str) -> StoredPolicy:
        """Remove every record for *subject*."""
        return self._apply(
            lambda records: clear_subject(records, subject),
            {"event": "policy_subject_cleared", "subject": subject},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluation_view(
        self, collection: PolicyCollection, subject: str
    ) -> tuple[tuple[PolicyRecord, ...], dict[str, bool]]:
        records = collection.records
        options = self._settings.evaluation_options()
        default_role = collection.default_role
        if (
            self._settings.apply_default_role
            and default_role
            and default_role != subject
            and not policies_for_subject(records, subject)
        ):
            logger.debug("Applying default role %s to %s", default_role, subject)
            if options["resolve_roles"]:
                records = records + (RoleAssignment(subject, default_role),)
            else:
                # only the default role's own grants, never the subject's g lines
                records = records + tuple(
                    Grant(subject, g.resource, g.action, g.object, g.effect)
                    for g in policies_for_subject(records, default_role)
                )
        return records, options

    def _apply(self, mutation: Mutation, event: dict[str, object]) -> StoredPolicy:
        attempt = 0
        while True:
            attempt += 1
            snapshot = self._store.get()
            collection = parse_rbac_config(snapshot.config)
            updated = mutation(collection.records)
            new_config = snapshot.config.with_policy(serialize_policies(updated))
            try:
                stored = self._store.put(new_config, snapshot.revision)
            except StaleRevisionError:
                if attempt == _WRITE_ATTEMPTS:
                    raise
                logger.warning("Policy changed during edit; retrying against fresh copy")
                continue

            if self._audit is not None:
                self._audit.record_edit(
                    **event,
                    base_revision=snapshot.revision,
                    revision=stored.revision,
                    records_before=len(collection.records),
                    records_after=len(updated),
                )
            return stored
