"""Abstract player interfaces used by PlaybackSync."""

from abc import ABC, abstractmethod


class AbstractPlayerHandle(ABC):
    """A loaded recording that can be played, paused and queried for position."""

    @abstractmethod
    def play(self) -> None:
        """Start playback, or resume it after a pause."""
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop playback and rewind."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Free every resource held by the handle. The handle is unusable afterwards."""
        pass

    @abstractmethod
    def get_current_time(self) -> float:
        """Elapsed playback position in seconds."""
        pass

    @abstractmethod
    def get_duration(self) -> float:
        """Total length of the recording in seconds."""
        pass

    @abstractmethod
    def is_finished(self) -> bool:
        """True once playback has reached the end of the recording."""
        pass


class AbstractPlayer(ABC):
    """Factory for player handles."""

    @abstractmethod
    def load(self, path: str) -> AbstractPlayerHandle:
        """Load a recording.

        Raises:
            PlayerError: If the file cannot be opened for playback
        """
        pass

