"""Pytest configuration and fixtures for WaveTrace tests."""

import pytest
import tempfile
import time
import logging
import wave
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, patch
import numpy as np

from wavetrace.models.events import AudioEvent
from wavetrace.playback.base import AbstractPlayer, AbstractPlayerHandle


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without real audio devices")
    config.addinivalue_line("markers", "integration: multi-component workflow tests")


def pcm_chunk(values) -> bytes:
    """Pack signed 16-bit sample values as little-endian PCM bytes."""
    return np.asarray(values, dtype="<i2").tobytes()


def chunk_with_amplitude(amplitude: float, samples: int = 256) -> bytes:
    """A chunk whose decoded amplitude is ``amplitude`` to within 1/32768."""
    value = min(int(round(amplitude * 32768)), 32767)
    # Alternate signs so the chunk looks like a waveform, not DC
    values = [value if i % 2 else -value for i in range(samples)]
    return pcm_chunk(values)


def write_wav(path, frames: int = 1600, sample_rate: int = 16000) -> str:
    """Write a short mono 16-bit WAV file."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(b'\x00\x00' * frames)
    return str(path)


class FakePlayerHandle(AbstractPlayerHandle):
    """Player handle that reports a scripted sequence of elapsed times."""

    def __init__(self, path: str, times: List[float], duration: float,
                 finish_at_end: bool = True):
        self.path = path
        self.times = list(times)
        self.duration = duration
        self.finish_at_end = finish_at_end
        self.served = 0
        self.calls = []
        self.fail_query = False

    def play(self) -> None:
        self.calls.append("play")

    def pause(self) -> None:
        self.calls.append("pause")

    def stop(self) -> None:
        self.calls.append("stop")

    def release(self) -> None:
        self.calls.append("release")

    @property
    def released(self) -> bool:
        return "release" in self.calls

    def get_current_time(self) -> float:
        if self.fail_query:
            raise RuntimeError("player handle gone")
        index = min(self.served, len(self.times) - 1)
        self.served += 1
        return self.times[index]

    def get_duration(self) -> float:
        return self.duration

    def is_finished(self) -> bool:
        return self.finish_at_end and self.served >= len(self.times)


class FakePlayer(AbstractPlayer):
    """Player that hands out FakePlayerHandles and remembers them."""

    def __init__(self, times: Optional[List[float]] = None, duration: float = 10.0,
                 finish_at_end: bool = True):
        self.times = times if times is not None else [0.0]
        self.duration = duration
        self.finish_at_end = finish_at_end
        self.handles: List[FakePlayerHandle] = []
        self.load_error: Optional[Exception] = None

    def load(self, path: str) -> FakePlayerHandle:
        if self.load_error is not None:
            raise self.load_error
        handle = FakePlayerHandle(path, self.times, self.duration, self.finish_at_end)
        self.handles.append(handle)
        return handle


class FakeCapture:
    """Capture device stand-in; tests push chunks with ``emit``."""

    def __init__(self, callback, output_path: str, produce_file: bool = True):
        self.callback = callback
        self.output_path = output_path
        self.produce_file = produce_file
        self.is_recording = False
        self.sequence = 0

    def start_recording(self) -> None:
        self.is_recording = True

    def emit(self, chunk: bytes) -> None:
        self.sequence += 1
        self.callback(AudioEvent(
            chunk_id=f"chunk_{self.sequence}",
            audio_data=chunk,
            timestamp=0.0,
            sequence_number=self.sequence,
        ))

    def stop_recording(self) -> Optional[str]:
        self.is_recording = False
        if not self.produce_file:
            return None
        return write_wav(self.output_path)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # 1024 samples of a 440 Hz sine at 16 kHz
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def fake_player():
    return FakePlayer(times=[0.0, 2.5, 5.0, 10.0], duration=10.0)


@pytest.fixture
def capture_factory():
    """Capture factory that records every FakeCapture it builds."""
    built = []

    def factory(callback, output_path):
        capture = FakeCapture(callback, output_path)
        built.append(capture)
        return capture

    factory.built = built
    return factory


@pytest.fixture
def config_file(temp_data_dir):
    """Write a WaveTrace YAML config pointing at the temporary data dir."""
    path = Path(temp_data_dir) / "wavetrace.yaml"
    path.write_text(
        "storage:\n"
        "  data_directory: data\n"
        "audio:\n"
        "  sample_rate: 16000\n"
        "  chunk_size: 1024\n"
        "  channels: 1\n"
        "waveform:\n"
        "  max_points: 100\n"
        "playback:\n"
        "  poll_interval_ms: 10\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  file_path: data/logs/wavetrace.log\n"
        "  console_output: false\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.write.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
