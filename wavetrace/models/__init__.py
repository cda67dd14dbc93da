"""Data models for the WaveTrace application."""

from .events import AudioEvent, WaveformEvent
from .waveform import Waveform, MAX_POINTS, EMPTY_WAVEFORM
from .recording import Recording, RecordingResult
from .playback import PlaybackState, PlaybackStatus

__all__ = [
    "AudioEvent",
    "WaveformEvent",
    "Waveform",
    "MAX_POINTS",
    "EMPTY_WAVEFORM",
    "Recording",
    "RecordingResult",
    "PlaybackState",
    "PlaybackStatus",
]
