"""RBAC configuration envelope with Pydantic v2 validation.

The settings store keeps policy as an opaque record::

    policy: |
      p, role:dev, applications, get, default/*, allow
      g, alice, role:dev
    policyDefault: role:readonly
    scopes: "[groups]"

Only ``policy`` is read or rewritten by the engine; ``policyDefault``,
``scopes`` and any unknown keys pass through unchanged.

Example
-------
>>> config = load_envelope_string("policy: 'g, alice, role:dev'")
>>> config.policy
'g, alice, role:dev'
"""
from __future__ import annotations

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PolicyConfigError(ValueError):
    """Raised when an envelope or settings file is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


class RBACConfig(BaseModel):
    """The policy envelope as held by the external settings store."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    policy: str = Field(default="")
    policy_default: str | None = Field(default=None, alias="policyDefault")
    scopes: str | None = Field(default=None)

    def with_policy(self, policy: str) -> RBACConfig:
        """Copy of this envelope with only ``policy`` replaced."""
        return self.model_copy(update={"policy": policy})

    def to_dict(self) -> dict[str, object]:
        """Dump using wire names, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


def load_envelope_string(text: str, config_path: str | None = None) -> RBACConfig:
    """Validate an envelope from YAML (or JSON) text.

    Raises
    ------
    PolicyConfigError
        If the text is not a mapping or fails validation.
    """
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise PolicyConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
    return load_envelope_dict(raw, config_path)


def load_envelope_dict(raw: object, config_path: str | None = None) -> RBACConfig:
    if not isinstance(raw, dict):
        raise PolicyConfigError("RBAC config must be a mapping.", config_path)
    try:
        return RBACConfig.model_validate(raw)
    except ValidationError as exc:
        raise PolicyConfigError(f"Invalid RBAC config: {exc}", config_path) from exc


def dump_envelope(config: RBACConfig) -> str:
    """Render an envelope as YAML, keeping the policy text as a block."""
    return yaml.dump(
        config.to_dict(),
        Dumper=_BlockDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


class _BlockDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.Node:
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_BlockDumper.add_representer(str, _represent_str)
