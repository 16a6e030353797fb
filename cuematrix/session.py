"""Session persistence -- save and restore a matrix to a JSON file.

Saved state is the flat matrix snapshot (see :mod:`cuematrix.snapshot`):
name, master/input/output/crosspoint levels, mute and solo flags, gangs.
Disconnected crosspoints are written as ``null``.

The session file is human-readable JSON so it can be hand-edited if needed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from cuematrix.matrix import Matrix
from cuematrix.models import SnapshotError
from cuematrix.paths import DEFAULT_SESSION_PATH

SESSION_VERSION = 1


logger = logging.getLogger(__name__)


def snapshot(matrix: Matrix) -> dict:
    """Capture the full restorable state of the matrix as a plain dict."""
    return {
        "version": SESSION_VERSION,
        "matrix": matrix.get_state(),
    }


def save(matrix: Matrix, path: Optional[Path] = None) -> Path:
    """Save the current session to a JSON file and return where it went."""
    path = Path(path) if path else DEFAULT_SESSION_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    data = snapshot(matrix)
    path.write_text(json.dumps(data, indent=2) + "\n")
    logger.info("[Session] Saved to %s", path)
    return path


def load(path: Optional[Path] = None) -> Optional[dict]:
    """Read a session file and return its matrix state, or None if unusable."""
    path = Path(path) if path else DEFAULT_SESSION_PATH
    if not path.exists():
        logger.info("[Session] No session file at %s", path)
        return None

    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise SnapshotError(f"session file {path} does not hold a JSON object")
    version = data.get("version", 0)
    if version != SESSION_VERSION:
        logger.warning("[Session] Unknown session version %s, skipping", version)
        return None
    state = data.get("matrix", {})
    if not isinstance(state, dict):
        raise SnapshotError(f"session file {path} has no matrix object")
    return state


def restore(matrix: Matrix, path: Optional[Path] = None, strict: bool = False) -> bool:
    """Restore a session from a JSON file into ``matrix``.

    Returns False when there was nothing usable to restore.  Snapshot errors
    propagate; the matrix is left untouched in that case.
    """
    state = load(path)
    if state is None:
        return False
    matrix.set_state(state, strict=strict)
    logger.info("[Session] Restored '%s' from %s", matrix.name, path or DEFAULT_SESSION_PATH)
    return True
