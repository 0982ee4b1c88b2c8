"""Engine settings loader with Pydantic v2 validation.

Example ``rbac-settings.yaml``::

    store_path: ./rbac-config.yaml
    audit_log_path: ./rbac_audit.jsonl
    audit_enabled: true
    deny_overrides: false
    resolve_roles: true
    transitive_roles: false
    apply_default_role: true
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from rbac_policy.config.envelope import PolicyConfigError

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Top-level engine settings. Every field has a default."""

    model_config = {"extra": "allow"}

    store_path: Path = Field(default=Path("./rbac-config.yaml"))
    audit_log_path: Path = Field(default=Path("./rbac_audit.jsonl"))
    audit_enabled: bool = Field(default=True)
    deny_overrides: bool = Field(default=False)
    resolve_roles: bool = Field(default=False)
    transitive_roles: bool = Field(default=False)
    apply_default_role: bool = Field(default=False)

    def evaluation_options(self) -> dict[str, bool]:
        """Keyword options for the capability functions."""
        return {
            "resolve_roles": self.resolve_roles or self.transitive_roles,
            "transitive_roles": self.transitive_roles,
            "deny_overrides": self.deny_overrides,
        }


class SettingsLoader:
    """Loads and validates engine settings YAML.

    Example
    -------
    >>> loader = SettingsLoader()
    >>> settings = loader.load(Path("rbac-settings.yaml"))
    """

    def load(self, config_path: Path) -> EngineSettings:
        """Load and validate a settings YAML file.

        Raises
        ------
        FileNotFoundError:
            When the settings file does not exist.
        PolicyConfigError:
            When the YAML is malformed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            return self.load_string(fh.read(), str(config_path))

    def load_string(self, yaml_content: str, config_path: str | None = None) -> EngineSettings:
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise PolicyConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
        if not isinstance(raw, dict):
            raise PolicyConfigError("Settings must be a YAML mapping.", config_path)
        try:
            settings = EngineSettings.model_validate(raw)
        except ValidationError as exc:
            raise PolicyConfigError(f"Invalid settings: {exc}", config_path) from exc
        logger.debug("Loaded engine settings from %s", config_path or "<string>")
        return settings

    def defaults(self) -> EngineSettings:
        """Return settings with all defaults applied."""
        return EngineSettings()
