"""YAML config for gsv tunables (~/.gsv/config.yaml)."""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from gsv_core.paths import gsv_home

_log = logging.getLogger("gsv.config")

CONFIG_FILENAME = "config.yaml"


@dataclass(frozen=True)
class Config:
    """Tunables read from config.yaml, with environment overrides."""

    gs_binary: str = "gs"
    commit_chunk: int = 10
    poll_interval: float = 1.0
    refresh_debounce: float = 0.3
    command_timeout: float = 60.0


def config_path() -> Path:
    return gsv_home() / CONFIG_FILENAME


def _coerce(name: str, value, default):
    """Convert a raw YAML value to the type of the default, or None."""
    try:
        if isinstance(default, bool):
            return bool(value)
        if isinstance(default, int):
            coerced = int(value)
            return coerced if coerced > 0 else None
        if isinstance(default, float):
            coerced = float(value)
            return coerced if coerced >= 0 else None
        if isinstance(default, str):
            return str(value) if value else None
    except (TypeError, ValueError):
        pass
    _log.warning("config: ignoring invalid value for %s: %r", name, value)
    return None


def load_config(path: Optional[Path] = None) -> Config:
    """Load config.yaml, falling back to defaults for anything missing.

    Unknown keys are ignored. An unreadable or malformed file yields the
    defaults. ``GSV_GS`` overrides ``gs_binary``.
    """
    path = path or config_path()
    config = Config()
    raw = {}
    if path.exists():
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            _log.warning("config: failed to read %s: %s", path, e)
            raw = {}
        if not isinstance(raw, dict):
            _log.warning("config: %s is not a mapping, using defaults", path)
            raw = {}

    updates = {}
    for f in fields(Config):
        if f.name not in raw:
            continue
        value = _coerce(f.name, raw[f.name], getattr(config, f.name))
        if value is not None:
            updates[f.name] = value
    config = replace(config, **updates)

    env_gs = os.environ.get("GSV_GS")
    if env_gs:
        config = replace(config, gs_binary=env_gs)
    return config
