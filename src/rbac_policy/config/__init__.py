"""Configuration envelope and engine settings."""
from __future__ import annotations

from rbac_policy.config.envelope import (
    PolicyConfigError,
    RBACConfig,
    dump_envelope,
    load_envelope_dict,
    load_envelope_string,
)
from rbac_policy.config.settings import EngineSettings, SettingsLoader

__all__ = [
    "EngineSettings",
    "PolicyConfigError",
    "RBACConfig",
    "SettingsLoader",
    "dump_envelope",
    "load_envelope_dict",
    "load_envelope_string",
]
