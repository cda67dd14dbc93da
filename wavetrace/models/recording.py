"""Recording-related data models."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .waveform import Waveform, EMPTY_WAVEFORM

_TIMESTAMP_PATTERN = re.compile(r"recording_(\d+)$")


@dataclass
class Recording:
    """A stored audio recording identified by its path."""
    path: str
    name: str
    size_bytes: int = 0

    @property
    def created_at(self) -> Optional[datetime]:
        """Creation time embedded in the file name, if it still has a usable one."""
        match = _TIMESTAMP_PATTERN.match(Path(self.path).stem)
        if not match:
            return None
        try:
            return datetime.fromtimestamp(int(match.group(1)) / 1000.0)
        except (OverflowError, OSError, ValueError):
            # A renamed file can carry digits that are no valid timestamp
            return None


@dataclass
class RecordingResult:
    """Outcome of finalizing a recording session."""
    success: bool
    recording: Optional[Recording] = None
    waveform: Waveform = EMPTY_WAVEFORM
    waveform_saved: bool = False
    total_chunks: int = 0
    dropped_chunks: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None
    warnings: list = field(default_factory=list)
