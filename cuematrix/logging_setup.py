"""Logging configuration helpers for cuematrix."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_from_name(name: str) -> Optional[int]:
    level = getattr(logging, name.strip().upper(), None)
    return level if isinstance(level, int) else None


def configure_logging(default_level: str = "WARNING", override: Optional[str] = None) -> int:
    """Install the process-wide stdout handler and return the level in use.

    Precedence: ``override`` (the ``--log-level`` flag), then ``LOG_LEVEL``
    from the environment, then ``default_level``.  An unknown name falls
    back to ``default_level`` with a warning.
    """
    requested = override or os.environ.get("LOG_LEVEL") or default_level
    level = _level_from_name(requested)
    fallback = _level_from_name(default_level) or logging.WARNING

    logging.basicConfig(
        level=level if level is not None else fallback,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    if level is None:
        logging.getLogger(__name__).warning(
            "Invalid log level '%s'; using %s", requested, logging.getLevelName(fallback)
        )
        return fallback
    return level
