"""Store protocol, revision tokens and the stale-write error."""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from rbac_policy.config.envelope import RBACConfig


def revision_of(config: RBACConfig) -> str:
    """Revision token for a whole envelope.

    Covers the policy text together with ``policyDefault``, ``scopes`` and
    any pass-through keys.
    """
    canonical = json.dumps(config.to_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class StaleRevisionError(RuntimeError):
    """Raised when a write's base revision no longer matches the store.

    Attributes
    ----------
    expected:
        Revision the caller based its edit on.
    actual:
        Revision currently held by the store.
    """

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Policy changed since it was read (expected revision {expected[:12]}, "
            f"store has {actual[:12]})."
        )


@dataclass(frozen=True)
class StoredPolicy:
    """An envelope snapshot and the revision it was read at."""

    config: RBACConfig
    revision: str

    @classmethod
    def of(cls, config: RBACConfig) -> StoredPolicy:
        return cls(config=config, revision=revision_of(config))


@runtime_checkable
class PolicyStore(Protocol):
    """Capability interface handed to anything that edits policy."""

    def get(self) -> StoredPolicy:
        """Return the current envelope and its revision."""
        ...

    def put(self, config: RBACConfig, expected_revision: str | None) -> StoredPolicy:
        """Write *config* if the store is still at *expected_revision*.

        ``expected_revision=None`` writes unconditionally.

        Raises
        ------
        StaleRevisionError
            If the store has moved on since *expected_revision*.
        """
        ...
