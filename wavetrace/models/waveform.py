"""Waveform type and limits."""

from typing import Tuple

# Renderer resolution; live capture never keeps more points than this
MAX_POINTS = 100

# Ordered amplitude samples in [0.0, 1.0], oldest first
Waveform = Tuple[float, ...]

EMPTY_WAVEFORM: Waveform = ()
