"""Line-oriented policy parser and serializer.

The policy text format is::

    # comment
    p, <subject>, <resource>, <action>, <object>, <effect>
    g, <subject>, <role>

Parsing is best-effort: blank lines and comments are skipped, and a line
with too few fields or an unknown leading token is dropped rather than
raised, so that one bad line never takes the whole policy down.

Effects are matched case-insensitively (``Allow`` reads as ``allow``) and
written back in lower case. Any other effect token is kept verbatim and
never grants access.

Serialization writes one line per record in collection order. Comments
and blank lines are not preserved.

Example
-------
>>> records = parse_policies("p, dev, applications, get, default/*, allow")
>>> serialize_policies(records)
'p, dev, applications, get, default/*, allow'
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from rbac_policy.policies._checks import require_records, require_str
from rbac_policy.policies.records import (
    GRANT_KIND,
    ROLE_KIND,
    Effect,
    Grant,
    PolicyCollection,
    PolicyRecord,
    RoleAssignment,
)

logger = logging.getLogger(__name__)

_GRANT_FIELDS: int = 6
_ROLE_FIELDS: int = 3
_COMMENT_PREFIX: str = "#"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_policies(text: str) -> tuple[PolicyRecord, ...]:
    """Parse policy text into an ordered tuple of records.

    Parameters
    ----------
    text:
        Raw policy text.

    Returns
    -------
    tuple[PolicyRecord, ...]
        Records in source order. Malformed lines are dropped.

    Raises
    ------
    TypeError
        If *text* is not a string.
    """
    require_str(text, "text")

    records: list[PolicyRecord] = []
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith(_COMMENT_PREFIX):
            continue
        record = _parse_line(line)
        if record is None:
            logger.debug("Dropping malformed policy line %d: %r", line_no, line)
            continue
        records.append(record)
    return tuple(records)


def parse_rbac_config(envelope: Mapping[str, object] | object) -> PolicyCollection:
    """Build a :class:`PolicyCollection` from a configuration envelope.

    *envelope* is either a mapping with ``policy`` and optional
    ``policyDefault`` (or ``policy_default``) keys, or an
    :class:`~rbac_policy.config.envelope.RBACConfig`.
    """
    if isinstance(envelope, Mapping):
        policy = envelope.get("policy", "")
        default_role = envelope.get("policyDefault", envelope.get("policy_default"))
    else:
        policy = getattr(envelope, "policy", None)
        default_role = getattr(envelope, "policy_default", None)

    policy_text = require_str(policy if policy is not None else "", "policy")
    return PolicyCollection(
        records=parse_policies(policy_text),
        default_role=str(default_role) if default_role else None,
        raw=policy_text,
    )


def _parse_line(line: str) -> PolicyRecord | None:
    parts = [part.strip() for part in line.split(",")]
    kind = parts[0]

    if kind == GRANT_KIND:
        if len(parts) < _GRANT_FIELDS:
            return None
        _, subject, resource, action, obj, effect = parts[:_GRANT_FIELDS]
        return Grant(
            subject=subject,
            resource=resource,
            action=action,
            object=obj,
            effect=_parse_effect(effect),
        )

    if kind == ROLE_KIND:
        if len(parts) < _ROLE_FIELDS:
            return None
        _, subject, role = parts[:_ROLE_FIELDS]
        return RoleAssignment(subject=subject, role=role)

    return None


def _parse_effect(token: str) -> Effect | str:
    try:
        return Effect(token.lower())
    except ValueError:
        logger.warning("Unknown policy effect %r; it will never grant access.", token)
        return token


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def format_policy(record: PolicyRecord) -> str:
    """Render a single record as one policy line."""
    if isinstance(record, Grant):
        return (
            f"{GRANT_KIND}, {record.subject}, {record.resource}, "
            f"{record.action}, {record.object}, {record.effect_token}"
        )
    if isinstance(record, RoleAssignment):
        return f"{ROLE_KIND}, {record.subject}, {record.role}"
    raise TypeError(f"Not a policy record: {record!r}.")


def serialize_policies(records: Iterable[PolicyRecord]) -> str:
    """Render records as policy text, one line each, newline-separated.

    An empty collection serializes to the empty string.
    """
    return "\n".join(format_policy(r) for r in require_records(records))
