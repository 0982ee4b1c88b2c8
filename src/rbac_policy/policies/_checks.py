"""Argument checks shared by the public policy functions.

Malformed policy *data* is tolerated everywhere; these checks only catch
callers passing the wrong kind of argument.
"""
from __future__ import annotations

from typing import Iterable

from rbac_policy.policies.records import Grant, PolicyRecord, RoleAssignment


def require_str(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str; got {type(value).__name__}.")
    return value


def require_records(records: object, name: str = "records") -> tuple[PolicyRecord, ...]:
    if records is None or isinstance(records, (str, bytes)):
        raise TypeError(f"{name} must be an iterable of policy records; got {type(records).__name__}.")
    try:
        items = tuple(records)  # type: ignore[arg-type]
    except TypeError as exc:
        raise TypeError(f"{name} must be an iterable of policy records.") from exc
    for item in items:
        if not isinstance(item, (Grant, RoleAssignment)):
            raise TypeError(f"{name} contains a non-policy item: {item!r}.")
    return items


def require_grants(grants: Iterable[object], name: str = "grants") -> tuple[Grant, ...]:
    items = require_records(grants, name)
    for item in items:
        if not isinstance(item, Grant):
            raise TypeError(f"{name} must contain only Grant records; got {item!r}.")
    return items  # type: ignore[return-value]
