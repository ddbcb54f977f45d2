# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from typing import Optional

from poolauto.config.models import OperatorConfig

log = logging.getLogger("poolauto")

ENV_CONFIG = "POOLAUTO_CONFIG"


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key) or {}, dict):
            base[key] = _deep_merge(base.get(key) or {}, value)
        elif value not in (None, ""):
            base[key] = value
    return base


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def _find_config_file(path: Optional[str | Path]) -> Optional[Path]:
    """
    Locate the operator config using this priority:

    1. explicit path (--config)
    2. POOLAUTO_CONFIG environment variable
    """
    if path:
        return Path(path)
    env = os.environ.get(ENV_CONFIG)
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("%s=%s does not exist, using defaults", ENV_CONFIG, env)
    return None


def load_config(path: Optional[str | Path] = None, overrides: Optional[dict] = None) -> OperatorConfig:
    """
    Load and validate the operator YAML config.

    Every field has a default, so running without a file is fine.
    *overrides* (typically CLI flags) are deep-merged last; empty values
    in it are ignored.
    """
    data: dict = {}
    cfg_path = _find_config_file(path)
    if cfg_path:
        log.debug("Loading config from %s", cfg_path)
        data = _load_yaml(cfg_path)
    if overrides:
        _deep_merge(data, overrides)
    return OperatorConfig.model_validate(data)
