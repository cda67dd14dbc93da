"""Presentation helpers for waveforms and playback progress."""

from .wave_path import wave_path, progress_x

__all__ = [
    "wave_path",
    "progress_x",
]
