"""Storage of recordings and their waveform sidecars."""

from .file_manager import FileManager
from .waveform_store import WaveformStore, sidecar_path_for

__all__ = [
    "FileManager",
    "WaveformStore",
    "sidecar_path_for",
]
