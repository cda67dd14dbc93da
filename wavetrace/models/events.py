"""Event models for pub/sub audio and waveform processing."""

from dataclasses import dataclass


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 44100
    channels: int = 1


@dataclass
class WaveformEvent:
    """A new amplitude sample appended to the live waveform."""
    amplitude: float
    sequence_number: int
    point_count: int  # Length of the live waveform after the append
    timestamp: float
