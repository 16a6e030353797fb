"""Path helpers for runtime defaults."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "cuematrix"


def default_session_path() -> Path:
    """Return the per-user session file, honouring ``XDG_CONFIG_HOME``."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / APP_NAME / "session.json"

    return Path("~/.config").expanduser() / APP_NAME / "session.json"


DEFAULT_SESSION_PATH = default_session_path()
