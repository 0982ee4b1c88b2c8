"""Audit trail for policy edits."""
from __future__ import annotations

from rbac_policy.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
