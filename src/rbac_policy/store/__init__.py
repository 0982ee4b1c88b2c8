"""Revisioned storage for the RBAC configuration envelope.

The engine rewrites the whole policy text on every edit, so concurrent
read-modify-write cycles would clobber each other. Stores here guard
writes with a revision token (SHA-256 of the policy text) and reject a
write whose base revision is stale.
"""
from __future__ import annotations

from rbac_policy.store.base import (
    PolicyStore,
    StaleRevisionError,
    StoredPolicy,
    revision_of,
)
from rbac_policy.store.file_store import FilePolicyStore
from rbac_policy.store.memory import InMemoryPolicyStore

__all__ = [
    "FilePolicyStore",
    "InMemoryPolicyStore",
    "PolicyStore",
    "StaleRevisionError",
    "StoredPolicy",
    "revision_of",
]
