"""Audio decoding and waveform buffering module."""

from .amplitude import AmplitudeDecoder
from .buffer import WaveformBuffer

__all__ = [
    'AmplitudeDecoder',
    'WaveformBuffer'
]
