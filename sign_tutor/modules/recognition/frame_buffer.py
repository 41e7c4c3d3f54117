"""
Frame Buffer
=============

Fixed-capacity, insertion-ordered window of recent normalized frames.
Feeds the SequenceSampler for dynamic (multi-frame) sign recognition.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from sign_tutor.core.types import BufferedFrame

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 30


class FrameBuffer:
    """
    FIFO ring of BufferedFrame entries for one tracked hand.

    Frames are append-only: the oldest entry is evicted when capacity
    is exceeded and nothing is ever reordered or modified in place.

    Example:
        >>> buffer = FrameBuffer(capacity=30)
        >>> buffer.push(BufferedFrame(features, timestamp))
        >>> window = buffer.snapshot(15)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("FrameBuffer capacity must be positive, got %r" % capacity)
        self._capacity = capacity
        self._frames: Deque[BufferedFrame] = deque(maxlen=capacity)

    def push(self, frame: BufferedFrame) -> None:
        """Append a frame, evicting the oldest one when full."""
        self._frames.append(frame)

    def clear(self) -> None:
        """Drop every buffered frame (session stop)."""
        if self._frames:
            logger.debug("Clearing frame buffer (%d frames)", len(self._frames))
        self._frames.clear()

    def snapshot(self, n: Optional[int] = None) -> List[BufferedFrame]:
        """
        Get the most recent frames in chronological order.

        Args:
            n: Number of frames wanted; all frames when None

        Returns:
            List of at most n frames, oldest first. The buffer is not modified.
        """
        if n is None or n >= len(self._frames):
            return list(self._frames)
        if n <= 0:
            return []
        return list(self._frames)[-n:]

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_empty(self) -> bool:
        return not self._frames

    @property
    def is_full(self) -> bool:
        return len(self._frames) == self._capacity

    @property
    def latest(self) -> Optional[BufferedFrame]:
        """Most recently pushed frame, or None when empty."""
        return self._frames[-1] if self._frames else None

    @property
    def span_seconds(self) -> float:
        """Time covered by the buffered frames."""
        if len(self._frames) < 2:
            return 0.0
        return self._frames[-1].timestamp - self._frames[0].timestamp
