"""In-memory policy record model.

Two record kinds make up a policy:

- :class:`Grant`: ``p, subject, resource, action, object, effect``
- :class:`RoleAssignment`: ``g, subject, role``

Records are frozen dataclasses; every edit produces a new collection.

Example
-------
>>> grant = Grant("dev", "applications", "get", "default/*", Effect.ALLOW)
>>> grant.is_allow
True
>>> RoleAssignment("alice", "role:admin").kind
'g'
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Union

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GRANT_KIND: str = "p"
ROLE_KIND: str = "g"

WILDCARD: str = "*"
GLOBAL_OBJECT: str = "*/*"
APPLICATIONS_RESOURCE: str = "applications"


class Effect(str, Enum):
    """Effect of a grant rule."""

    ALLOW = "allow"
    DENY = "deny"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Grant:
    """A single ``p`` rule.

    Attributes
    ----------
    subject:
        User or role name the rule applies to.
    resource:
        Resource kind, e.g. ``applications`` or ``*``.
    action:
        Action name, e.g. ``get``, ``sync``, ``action/*`` or ``*``.
    object:
        ``*/*``, ``<project>/*`` or ``<project>/<app>``. An empty object
        matches nothing.
    effect:
        :class:`Effect`, or the raw token when the source held something
        other than ``allow``/``deny``.
    """

    subject: str
    resource: str
    action: str
    object: str = ""
    effect: Effect | str = Effect.ALLOW

    kind: str = field(default=GRANT_KIND, init=False, repr=False, compare=False)

    @property
    def is_allow(self) -> bool:
        return self.effect == Effect.ALLOW

    @property
    def is_deny(self) -> bool:
        return self.effect == Effect.DENY

    @property
    def effect_token(self) -> str:
        """The effect as written in policy text."""
        return self.effect.value if isinstance(self.effect, Effect) else str(self.effect)


@dataclass(frozen=True)
class RoleAssignment:
    """A single ``g`` rule: *subject* is a member of *role*."""

    subject: str
    role: str

    kind: str = field(default=ROLE_KIND, init=False, repr=False, compare=False)


PolicyRecord = Union[Grant, RoleAssignment]


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PolicyCollection:
    """Ordered policy records plus the envelope's default role.

    Attributes
    ----------
    records:
        Records in source order.
    default_role:
        Fallback role for subjects without grants of their own, if any.
    raw:
        Policy text the collection was parsed from.
    """

    records: tuple[PolicyRecord, ...] = ()
    default_role: str | None = None
    raw: str = ""

    def __iter__(self) -> Iterator[PolicyRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def grants(self) -> tuple[Grant, ...]:
        return tuple(r for r in self.records if isinstance(r, Grant))

    @property
    def role_assignments(self) -> tuple[RoleAssignment, ...]:
        return tuple(r for r in self.records if isinstance(r, RoleAssignment))

    def with_records(self, records: Iterable[PolicyRecord]) -> PolicyCollection:
        """Return a new collection holding *records* and the same default role.

        ``raw`` is regenerated from the new records.
        """
        from rbac_policy.policies.parser import serialize_policies

        new_records = tuple(records)
        return PolicyCollection(
            records=new_records,
            default_role=self.default_role,
            raw=serialize_policies(new_records),
        )


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class Capability(str, Enum):
    """User-facing permission categories."""

    VIEW = "view"
    DEPLOY = "deploy"
    ROLLBACK = "rollback"
    DELETE = "delete"

    @property
    def actions(self) -> tuple[str, ...]:
        """Underlying grant actions that confer this capability."""
        return _CAPABILITY_ACTIONS[self]

    @property
    def grant_action(self) -> str:
        """Action written when granting this capability."""
        return _CAPABILITY_ACTIONS[self][0]


_CAPABILITY_ACTIONS: dict[Capability, tuple[str, ...]] = {
    Capability.VIEW: ("get",),
    Capability.DEPLOY: ("sync",),
    Capability.ROLLBACK: ("action/*", "action"),
    Capability.DELETE: ("delete",),
}


@dataclass(frozen=True)
class CapabilitySummary:
    """Derived view of what a subject can do to a target."""

    can_view: bool = False
    can_deploy: bool = False
    can_rollback: bool = False
    can_delete: bool = False

    @classmethod
    def full(cls) -> CapabilitySummary:
        return cls(True, True, True, True)

    @classmethod
    def from_capabilities(cls, capabilities: Iterable[Capability]) -> CapabilitySummary:
        chosen = set(capabilities)
        return cls(
            can_view=Capability.VIEW in chosen,
            can_deploy=Capability.DEPLOY in chosen,
            can_rollback=Capability.ROLLBACK in chosen,
            can_delete=Capability.DELETE in chosen,
        )

    @property
    def is_full_access(self) -> bool:
        return self.can_view and self.can_deploy and self.can_rollback and self.can_delete

    @property
    def has_any_access(self) -> bool:
        return self.can_view or self.can_deploy or self.can_rollback or self.can_delete

    def has(self, capability: Capability) -> bool:
        return {
            Capability.VIEW: self.can_view,
            Capability.DEPLOY: self.can_deploy,
            Capability.ROLLBACK: self.can_rollback,
            Capability.DELETE: self.can_delete,
        }[capability]

    def capabilities(self) -> list[Capability]:
        return [c for c in Capability if self.has(c)]

    def additional_to(self, other: CapabilitySummary) -> CapabilitySummary:
        """Capabilities present here but absent from *other*."""
        return CapabilitySummary(
            can_view=self.can_view and not other.can_view,
            can_deploy=self.can_deploy and not other.can_deploy,
            can_rollback=self.can_rollback and not other.can_rollback,
            can_delete=self.can_delete and not other.can_delete,
        )

    def labels(self) -> list[str]:
        """Human-readable labels, as shown in permission tables."""
        if self.is_full_access:
            return ["Full access"]
        return [f"Can {c.value}" for c in self.capabilities()]

    def to_dict(self) -> dict[str, bool]:
        return {
            "can_view": self.can_view,
            "can_deploy": self.can_deploy,
            "can_rollback": self.can_rollback,
            "can_delete": self.can_delete,
            "is_full_access": self.is_full_access,
        }
