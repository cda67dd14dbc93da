"""Exception types raised by the WaveTrace core."""


class WaveTraceError(Exception):
    """Base class for all WaveTrace errors."""


class MalformedChunk(WaveTraceError):
    """Raised when an audio chunk cannot be decoded as 16-bit PCM."""


class StoreError(WaveTraceError):
    """Raised when a waveform sidecar cannot be written, moved or removed."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class SidecarParseError(WaveTraceError):
    """Raised internally when a sidecar file does not hold a JSON number array."""


class PlayerError(WaveTraceError):
    """Raised when the audio player fails to load or play a recording."""
