"""Bounded waveform buffer for live and displayed waveforms."""

import logging
import threading
from collections import deque
from typing import Iterable

from ..models.waveform import Waveform, MAX_POINTS

logger = logging.getLogger(__name__)


class WaveformBuffer:
    """Insertion-ordered amplitude samples capped at a fixed number of points.

    When an append pushes the length past ``max_points`` the oldest samples
    are evicted, so the buffer always holds the most recent window.
    """

    def __init__(self, max_points: int = MAX_POINTS):
        """Initialize waveform buffer.

        Args:
            max_points: Maximum number of samples to retain
        """
        if max_points < 1:
            raise ValueError(f"max_points must be positive, got {max_points}")
        self.max_points = max_points

        self.samples = deque(maxlen=max_points)
        self.lock = threading.Lock()
        self.total_appended = 0

        logger.debug(f"WaveformBuffer initialized: {max_points} points max")

    def append(self, sample: float) -> int:
        """Append a sample, evicting from the front past capacity.

        Returns:
            Length of the buffer after the append
        """
        with self.lock:
            self.samples.append(float(sample))
            self.total_appended += 1
            return len(self.samples)

    def extend(self, samples: Iterable[float]) -> None:
        """Append several samples in order."""
        for sample in samples:
            self.append(sample)

    def snapshot(self) -> Waveform:
        """Return an immutable copy of the current contents."""
        with self.lock:
            return tuple(self.samples)

    def clear(self) -> None:
        """Reset the buffer to empty."""
        with self.lock:
            self.samples.clear()
            self.total_appended = 0
        logger.debug("Waveform buffer cleared")

    def __len__(self) -> int:
        with self.lock:
            return len(self.samples)
