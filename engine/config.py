"""
User configuration for the speedflux CLI.

Settings live in ``~/.speedflux/config.json``; any key missing from the file
falls back to ``DEFAULTS``.  Example::

    {
      "server_url": "wss://speed.example.net",
      "max_speed": 500,
      "upload_duration": 15,
      "idle_timeout": 10,
      "phase_pause": 0.5,
      "log_level": "INFO"
    }

Numeric settings are coerced to ``float``.  Values of the wrong type are
dropped with a warning so a hand-edited file never crashes the CLI; range
checks stay with the CLI, which reports them to the user.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from .constants import (
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_MAX_SPEED,
    DEFAULT_PHASE_PAUSE,
    DEFAULT_SERVER_URL,
    DEFAULT_UPLOAD_DURATION,
)

logger = logging.getLogger(__name__)

_CONFIG_HOME = Path.home() / ".speedflux"


def _config_path() -> str:
    return str(_CONFIG_HOME / "config.json")


DEFAULTS: Dict[str, Any] = {
    "server_url": DEFAULT_SERVER_URL,
    "max_speed": DEFAULT_MAX_SPEED,
    "upload_duration": DEFAULT_UPLOAD_DURATION,
    "idle_timeout": DEFAULT_IDLE_TIMEOUT,
    "phase_pause": DEFAULT_PHASE_PAUSE,
    "log_level": "WARNING",
}

_NUMERIC_KEYS = frozenset({"max_speed", "upload_duration", "idle_timeout", "phase_pause"})
_STRING_KEYS = frozenset({"server_url", "log_level"})


def _coerce(key: str, value: Any) -> Any:
    """Normalise one user value; raise ``ValueError`` if it has the wrong type."""
    if key in _NUMERIC_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{key} must be a number, got {value!r}")
        return float(value)
    if key in _STRING_KEYS and not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {value!r}")
    return value


def load_config() -> Dict[str, Any]:
    """Defaults overlaid with whatever valid settings the file provides."""
    config = dict(DEFAULTS)
    path = _config_path()
    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
    except (json.JSONDecodeError, IOError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return config

    if not isinstance(user, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return config

    for key, value in user.items():
        try:
            config[key] = _coerce(key, value)
        except ValueError as exc:
            logger.warning("Config %s: %s", path, exc)
    return config


def save_config(config: Dict[str, Any]) -> str:
    """Persist *config* and return the path written."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, sort_keys=True)
    os.replace(tmp, path)
    return path


def get_config_value(key: str) -> Any:
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Validate and store one setting.  Returns the file path."""
    config = load_config()
    config[key] = _coerce(key, value)
    return save_config(config)
