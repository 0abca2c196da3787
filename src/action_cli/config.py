"""
Settings for the action-cli front-end.

Reads an optional YAML file (``--config``, ``$ACTION_CLI_CONFIG`` or
``.action-cli.yml`` in the working directory). Missing files and parse errors
fall back to defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

_log = logging.getLogger(__name__)

CONFIG_ENV = "ACTION_CLI_CONFIG"
LOG_LEVEL_ENV = "ACTION_CLI_LOG_LEVEL"
DEFAULT_CONFIG_NAME = ".action-cli.yml"
DEFAULT_LOG_LEVEL = "WARNING"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    resolve_paths: bool = True


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _log.warning("Ignoring unreadable config %s (%s)", config_path, exc)
        return {}
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        _log.warning("Ignoring unreadable config %s (%s)", config_path, exc)
        return {}
    return loaded if isinstance(loaded, dict) else {}


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        cleaned = value.strip().lower()
        if cleaned in _TRUE_STRINGS:
            return True
        if cleaned in _FALSE_STRINGS:
            return False
    return default


def resolve_settings(raw: Mapping[str, Any]) -> Settings:
    settings = Settings()
    level = raw.get("log_level")
    if isinstance(level, str) and level.strip():
        settings.log_level = level.strip().upper()
    settings.resolve_paths = _coerce_bool(raw.get("resolve_paths"), settings.resolve_paths)
    return settings


def config_path_for(explicit: Optional[str], environ: Mapping[str, str]) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    from_env = environ.get(CONFIG_ENV, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_NAME


def load_settings(explicit: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ
    settings = resolve_settings(load_yaml_config(config_path_for(explicit, environ)))
    env_level = environ.get(LOG_LEVEL_ENV, "").strip()
    if env_level:
        settings.log_level = env_level.upper()
    return settings
