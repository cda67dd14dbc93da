"""Microphone capture that publishes chunks and writes the take to a WAV file."""

import pyaudio
import wave
import time
import logging
from pathlib import Path
from threading import Thread, Event, Lock
from typing import Optional, Callable, List
from datetime import datetime

from ..models.events import AudioEvent


logger = logging.getLogger(__name__)


class AudioCapture:
    """Continuous microphone capture with a per-chunk callback.

    Chunks are handed to the callback as soon as they are read and are also
    kept so that ``stop_recording`` can write the whole take to disk.
    """

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        output_path: str,
        sample_rate: int = 44100,
        chunk_size: int = 4096,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Called with an AudioEvent for every captured chunk
            output_path: Where the captured take is written on stop
            sample_rate: Audio sample rate
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.audio_event_callback = callback
        self.output_path = Path(output_path)
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Captured audio for the current take
        self.audio_data: List[bytes] = []
        self.data_lock = Lock()

        # Take tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start_recording(self) -> None:
        """Start continuous recording in background thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        with self.data_lock:
            self.audio_data = []

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True

    def stop_recording(self) -> Optional[str]:
        """Stop recording and write the take to ``output_path``.

        Returns:
            Path of the written WAV file, or None if nothing was recording
        """
        if not self.is_recording:
            logger.warning("No recording in progress")
            return None

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        elapsed = (datetime.now() - self.start_time).total_seconds()
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}, {elapsed:.1f}s")

        return self.save_to_file(str(self.output_path))

    def save_to_file(self, filepath: str) -> str:
        """Save recorded audio to WAV file.

        Args:
            filepath: Path to save the WAV file

        Returns:
            The path written
        """
        with self.data_lock:
            chunks = list(self.audio_data)

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        try:
            with wave.open(filepath, 'wb') as wf:
                wf.setnchannels(self.channels)
                wf.setsampwidth(pyaudio.get_sample_size(self.format))
                wf.setframerate(self.sample_rate)
                for chunk in chunks:
                    wf.writeframes(chunk)

            logger.info(f"Audio saved to {filepath} ({len(chunks)} chunks)")
            return filepath

        except Exception as e:
            logger.error(f"Error saving audio file: {e}")
            raise

    def __open_audio_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream: pyaudio.Stream) -> bytes:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        with self.data_lock:
            self.audio_data.append(audio_chunk)
        return audio_chunk

    def __publish_audio_event(self, audio_chunk: bytes) -> None:
        audio_event = AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels
        )
        try:
            self.audio_event_callback(audio_event)
        except Exception as e:
            # A failing consumer must not end the capture
            logger.error(f"Audio callback failed for {audio_event.chunk_id}: {e}")

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = None
        try:
            stream = self.__open_audio_stream()
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk(stream)
                self.__publish_audio_event(audio_chunk)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}")
        finally:
            if stream:
                stream.stop_stream()
                stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def __del__(self):
        """Ensure the capture thread is stopped on deletion."""
        if getattr(self, "is_recording", False):
            self.stop_event.set()
