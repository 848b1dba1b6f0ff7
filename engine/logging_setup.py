"""Logging configuration for the speedflux CLI."""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

ENV_LOG_LEVEL = "SPEEDFLUX_LOG_LEVEL"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_level(level: Optional[str] = None) -> int:
    """
    Pick the log level.

    ``SPEEDFLUX_LOG_LEVEL`` wins over *level*; unknown names fall back to
    WARNING so a typo never silences errors.
    """
    name = os.environ.get(ENV_LOG_LEVEL) or level or "WARNING"
    return _LEVELS.get(name.upper(), logging.WARNING)


def configure_logging(level: Optional[str] = None) -> int:
    """Configure root logging to stderr.  Returns the effective level."""
    log_level = resolve_level(level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # The websockets library is chatty at DEBUG; keep it one notch quieter.
    logging.getLogger("websockets").setLevel(max(log_level, logging.INFO))
    return log_level
