"""
Stride-based resampling of buffered frames into a fixed-length sequence.

The sequence classifier needs exactly ``target_length`` frames. The
sampler takes the most recent ``window_size`` buffered frames and picks
every ``step``-th one, repeating the last available frame when fewer
frames exist than requested.
"""

import logging

import numpy as np

from sign_tutor.core.types import FEATURE_DIM
from sign_tutor.modules.utils.logger import log_timing

logger = logging.getLogger(__name__)

DEFAULT_TARGET_LENGTH = 15
DEFAULT_MIN_READY_FRAMES = 10


class SequenceSampler:
    """Builds fixed-length ClassSequenceInput arrays from a FrameBuffer."""

    def __init__(self, target_length: int = DEFAULT_TARGET_LENGTH,
                 window_size: int = None,
                 min_ready_frames: int = DEFAULT_MIN_READY_FRAMES):
        if target_length <= 0:
            raise ValueError("target_length must be positive, got %r" % target_length)
        self._target_length = target_length
        self._window_size = window_size or target_length
        self._min_ready_frames = min_ready_frames

    @classmethod
    def from_config(cls, config: dict) -> 'SequenceSampler':
        """Create a sampler from the ``sampler`` config section."""
        config = config or {}
        return cls(
            target_length=config.get("target_length", DEFAULT_TARGET_LENGTH),
            window_size=config.get("window_size"),
            min_ready_frames=config.get("min_ready_frames", DEFAULT_MIN_READY_FRAMES),
        )

    @property
    def target_length(self) -> int:
        return self._target_length

    @property
    def window_size(self) -> int:
        return self._window_size

    def is_ready(self, buffer) -> bool:
        """Whether the buffer holds enough frames for dynamic recognition."""
        return len(buffer) >= self._min_ready_frames

    @staticmethod
    def source_indices(n: int, target_length: int) -> list:
        """Source frame index for each output slot.

        ``step = max(1, n // target_length)`` and slot i reads frame
        ``min(i * step, n - 1)``. With n == 0 every slot is -1 (missing).
        """
        step = max(1, n // target_length)
        return [min(i * step, n - 1) for i in range(target_length)]

    @log_timing
    def sample(self, buffer, target_length: int = None) -> np.ndarray:
        """Resample the buffer's recent window.

        Args:
            buffer: FrameBuffer (or any object with ``snapshot(n)``)
            target_length: Output length, defaults to the configured one

        Returns:
            np.ndarray of shape (target_length, 63); slots with no source
            frame are all-zero
        """
        target_length = target_length or self._target_length
        frames = buffer.snapshot(self._window_size)
        sequence = np.zeros((target_length, FEATURE_DIM), dtype=np.float32)

        for i, src in enumerate(self.source_indices(len(frames), target_length)):
            if src < 0:
                continue
            frame = frames[src]
            if frame is not None and frame.features is not None:
                sequence[i] = frame.features

        return sequence
