"""cuematrix host - owns one matrix, its renderer and its session file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from cuematrix import session
from cuematrix.engine import MatrixEngine
from cuematrix.matrix import Matrix


logger = logging.getLogger(__name__)


class MatrixHost:
    def __init__(self, num_inputs: int = 2, num_outputs: int = 2, name: str = "Matrix",
                 sample_rate: int = 44100, buffer_size: int = 512,
                 session_path: Optional[str] = None):
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.session_path = Path(session_path) if session_path else session.DEFAULT_SESSION_PATH

        self.matrix = Matrix(num_inputs, num_outputs, name)
        self.engine = MatrixEngine(self.matrix, sample_rate, buffer_size)

    # -- audio ---------------------------------------------------------------

    def start_audio(self, device=None):
        self.engine.start(device)

    def stop_audio(self):
        self.engine.stop()

    # -- session persistence -------------------------------------------------

    def save_session(self, path: Optional[str] = None) -> Path:
        """Save current state to a JSON session file."""
        p = Path(path) if path else self.session_path
        return session.save(self.matrix, p)

    def restore_session(self, path: Optional[str] = None, strict: bool = False) -> bool:
        """Restore state from a JSON session file."""
        p = Path(path) if path else self.session_path
        return session.restore(self.matrix, p, strict=strict)

    # -- shutdown ------------------------------------------------------------

    def shutdown(self):
        try:
            self.save_session()
        except OSError as e:
            logger.warning("session save on shutdown failed: %s", e)
        self.engine.close()
        logger.info("[Host] Shutdown complete")
