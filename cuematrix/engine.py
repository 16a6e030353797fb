"""Real-time matrix renderer (sounddevice duplex callback)."""

from __future__ import annotations

import logging
import threading

from cuematrix.deps import HAS_SOUNDDEVICE, np, sd
from cuematrix.matrix import Matrix
from cuematrix.models import ChangeEvent


logger = logging.getLogger(__name__)


class MatrixEngine:
    """
    Realises a Matrix's resolved gains on multichannel audio blocks.

    The gain table is recomputed on the control thread whenever the matrix
    announces a change, then swapped in under a lock, so the audio callback
    only ever reads a finished array.

    Per callback:
      1. Fit the captured block to the matrix's input count
      2. Multiply by the (inputs x outputs) gain table
      3. Clip to [-1, 1] and write to the output buffer
    """

    def __init__(self, matrix: Matrix, sample_rate: int = 44100, buffer_size: int = 512):
        self.matrix = matrix
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size

        self._lock = threading.Lock()
        self._gains = matrix.gain_matrix().astype(np.float32)
        self._subscription = matrix.on_change(self._on_change)
        self._stream = None

    # -- gain table ----------------------------------------------------------

    def _on_change(self, event: ChangeEvent):
        gains = self.matrix.gain_matrix().astype(np.float32)
        with self._lock:
            self._gains = gains
        logger.debug("[Engine] gains refreshed after %s change", event.kind.value)

    @property
    def gains(self) -> np.ndarray:
        with self._lock:
            return self._gains

    # -- rendering -----------------------------------------------------------

    def process(self, block: np.ndarray) -> np.ndarray:
        """Mix a ``(frames, channels)`` block into ``(frames, num_outputs)``.

        Channels beyond the matrix's inputs are ignored; missing ones count
        as silence.
        """
        block = np.asarray(block, dtype=np.float32)
        if block.ndim == 1:
            block = block[:, None]
        frames, channels = block.shape
        num_inputs = self.matrix.num_inputs

        if channels != num_inputs:
            fitted = np.zeros((frames, num_inputs), dtype=np.float32)
            used = min(channels, num_inputs)
            fitted[:, :used] = block[:, :used]
            block = fitted

        return block @ self.gains

    def _callback(self, indata, outdata, frames: int, time_info, status):
        if status:
            logger.warning("[Audio] %s", status)
        try:
            mixed = self.process(indata)
        except Exception:
            logger.exception("[Audio] render failed, writing silence")
            outdata.fill(0)
            return
        np.clip(mixed, -1.0, 1.0, out=mixed)
        outdata[:] = mixed

    # -- start / stop --------------------------------------------------------

    def start(self, device=None):
        if not HAS_SOUNDDEVICE:
            raise RuntimeError("sounddevice not installed")
        if self.running:
            return
        self._stream = sd.Stream(
            samplerate=self.sample_rate,
            blocksize=self.buffer_size,
            channels=(self.matrix.num_inputs, self.matrix.num_outputs),
            dtype="float32",
            callback=self._callback,
            device=device,
        )
        self._stream.start()
        logger.info(
            "[Audio] Started sr=%d buf=%d in=%d out=%d",
            self.sample_rate,
            self.buffer_size,
            self.matrix.num_inputs,
            self.matrix.num_outputs,
        )

    def stop(self):
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("[Audio] Stopped")

    @property
    def running(self) -> bool:
        return self._stream is not None and self._stream.active

    def close(self):
        """Stop audio and detach from the matrix."""
        self.stop()
        self._subscription.cancel()
