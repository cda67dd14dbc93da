"""Playback state models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .waveform import Waveform, EMPTY_WAVEFORM


class PlaybackState(Enum):
    """Playback state machine states."""
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackStatus:
    """Snapshot of the playback state published to the presentation layer."""
    state: PlaybackState = PlaybackState.IDLE
    recording_id: Optional[str] = None
    progress: float = 0.0
    waveform: Waveform = EMPTY_WAVEFORM

    @property
    def is_active(self) -> bool:
        return self.state is not PlaybackState.IDLE
