"""Services layer for WaveTrace application logic."""

from .recording_session import RecordingSession
from .recorder_service import RecorderService

__all__ = [
    "RecordingSession",
    "RecorderService",
]
