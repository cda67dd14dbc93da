"""Audio player collaborator used by PlaybackSync."""

import logging
import threading
import wave
from typing import Optional

import pyaudio

from ..exceptions import PlayerError
from .base import AbstractPlayer, AbstractPlayerHandle

logger = logging.getLogger(__name__)


class WavPlayerHandle(AbstractPlayerHandle):
    """Plays a 16-bit WAV file through a PyAudio output stream."""

    def __init__(self, path: str, frames_per_buffer: int = 1024):
        """Open a WAV file for playback.

        Args:
            path: WAV file to play
            frames_per_buffer: Frames written to the output stream per write
        """
        self.path = path
        self.frames_per_buffer = frames_per_buffer

        try:
            self.wave_file = wave.open(path, 'rb')
        except (OSError, EOFError, wave.Error) as e:
            raise PlayerError(f"Cannot open {path} for playback: {e}") from e

        self.sample_rate = self.wave_file.getframerate()
        self.channels = self.wave_file.getnchannels()
        self.sample_width = self.wave_file.getsampwidth()
        self.total_frames = self.wave_file.getnframes()

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.playback_thread: Optional[threading.Thread] = None

        self.lock = threading.Lock()
        self.stop_event = threading.Event()
        self.resume_event = threading.Event()
        self.frames_played = 0
        self.finished = False
        self.released = False

        logger.debug(f"Loaded {path}: {self.sample_rate}Hz, {self.channels}ch, "
                     f"{self.get_duration():.2f}s")

    def _open_stream(self) -> None:
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.pyaudio_instance.get_format_from_width(self.sample_width),
                channels=self.channels,
                rate=self.sample_rate,
                output=True,
                frames_per_buffer=self.frames_per_buffer,
            )
        except Exception as e:
            self._close_stream()
            raise PlayerError(f"Cannot open output stream for {self.path}: {e}") from e

    def _close_stream(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except Exception as e:
                logger.warning(f"Error closing output stream: {e}")
            self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def _play_loop(self) -> None:
        """Write frames to the output stream until the end, a stop, or an error."""
        try:
            while not self.stop_event.is_set():
                if not self.resume_event.wait(timeout=0.05):
                    continue
                with self.lock:
                    data = self.wave_file.readframes(self.frames_per_buffer)
                if not data:
                    self.finished = True
                    break
                self.stream.write(data)
                with self.lock:
                    self.frames_played += len(data) // (self.sample_width * self.channels)
        except Exception as e:
            logger.error(f"Playback of {self.path} failed: {e}")
            self.finished = True
        logger.debug(f"Playback loop for {self.path} ended (finished={self.finished})")

    def play(self) -> None:
        if self.released:
            raise PlayerError(f"Player for {self.path} was released")

        if self.playback_thread and self.playback_thread.is_alive():
            self.resume_event.set()
            return

        if self.finished:
            self._rewind()
        if self.stream is None:
            self._open_stream()

        self.stop_event.clear()
        self.resume_event.set()
        self.playback_thread = threading.Thread(target=self._play_loop, daemon=True)
        self.playback_thread.name = "AudioPlaybackThread"
        self.playback_thread.start()

    def pause(self) -> None:
        self.resume_event.clear()

    def _join(self) -> None:
        if self.playback_thread and self.playback_thread.is_alive():
            self.playback_thread.join(timeout=2.0)
            if self.playback_thread.is_alive():
                logger.warning("Playback thread did not stop cleanly")
        self.playback_thread = None

    def _rewind(self) -> None:
        with self.lock:
            self.wave_file.rewind()
            self.frames_played = 0
            self.finished = False

    def stop(self) -> None:
        self.stop_event.set()
        self.resume_event.set()
        self._join()
        if not self.released:
            self._rewind()

    def release(self) -> None:
        if self.released:
            return
        self.stop()
        self._close_stream()
        self.wave_file.close()
        self.released = True
        logger.debug(f"Released player for {self.path}")

    def get_current_time(self) -> float:
        with self.lock:
            return self.frames_played / float(self.sample_rate)

    def get_duration(self) -> float:
        return self.total_frames / float(self.sample_rate)

    def is_finished(self) -> bool:
        return self.finished


class PyAudioPlayer(AbstractPlayer):
    """Player that loads WAV files into PyAudio-backed handles."""

    def __init__(self, frames_per_buffer: int = 1024):
        self.frames_per_buffer = frames_per_buffer

    def load(self, path: str) -> WavPlayerHandle:
        return WavPlayerHandle(path, frames_per_buffer=self.frames_per_buffer)
