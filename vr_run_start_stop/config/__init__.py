"""Configuration loading and schema.

- YAML-first configuration under configs/*.yaml
- Strict ${ENV_VAR} expansion (missing/empty env vars are errors)
- Every key has a default, so running without any config file is fine
"""

from __future__ import annotations

from vr_run_start_stop.config.errors import ConfigError, VrRunError
from vr_run_start_stop.config.loader import load_config, resolve_profile_configs
from vr_run_start_stop.config.model import Settings, app_base_dir

__all__ = [
    "ConfigError",
    "Settings",
    "VrRunError",
    "app_base_dir",
    "load_config",
    "resolve_profile_configs",
]
