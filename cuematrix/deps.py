"""Graceful optional dependency imports.

Every other module imports availability flags from here so the try/except
blocks live in exactly one place.
"""

from __future__ import annotations

# -- sounddevice (real-time audio I/O) --------------------------------------

# sounddevice raises OSError when the PortAudio library itself is missing.
try:
    import sounddevice as sd
    HAS_SOUNDDEVICE = True
except (ImportError, OSError):
    sd = None  # type: ignore[assignment]
    HAS_SOUNDDEVICE = False

# -- numpy (always required) ------------------------------------------------

import numpy as np  # noqa: E402,F401
