"""Recording session that turns captured chunks into a persisted waveform."""

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from ..audio.amplitude import AmplitudeDecoder
from ..audio.buffer import WaveformBuffer
from ..exceptions import MalformedChunk, StoreError
from ..models.events import AudioEvent
from ..models.recording import Recording, RecordingResult
from ..models.waveform import MAX_POINTS, Waveform
from ..storage.file_manager import FileManager
from ..storage.waveform_store import WaveformStore

logger = logging.getLogger(__name__)

# Marks the end of the chunk queue
_STOP = object()

CaptureFactory = Callable[[Callable[[AudioEvent], None], str], object]
SampleCallback = Callable[[float, int, int], None]


class RecordingSession:
    """Runs one capture from start to a finalized recording.

    Captured chunks are queued by ``on_chunk`` and decoded on a dedicated
    consumer thread, which is the only writer of the live buffer. Storage
    I/O only happens in ``stop()``, on the caller's thread.
    """

    def __init__(self,
                 file_manager: FileManager,
                 waveform_store: WaveformStore,
                 capture_factory: CaptureFactory,
                 max_points: int = MAX_POINTS,
                 decoder: Optional[AmplitudeDecoder] = None,
                 on_sample: Optional[SampleCallback] = None):
        """Initialize recording session.

        Args:
            file_manager: Storage collaborator for the finished audio file
            waveform_store: Store that receives the finalized waveform
            capture_factory: Builds the capture device from (callback, output_path)
            max_points: Capacity of the live waveform buffer
            decoder: Chunk decoder, a default AmplitudeDecoder if omitted
            on_sample: Called with (amplitude, sequence_number, point_count)
                after every appended sample
        """
        self.file_manager = file_manager
        self.waveform_store = waveform_store
        self.capture_factory = capture_factory
        self.decoder = decoder or AmplitudeDecoder()
        self.on_sample = on_sample

        self.buffer = WaveformBuffer(max_points)
        self.capture = None

        self.is_recording = False
        self.chunk_queue: "queue.Queue" = queue.Queue()
        self.consumer_thread: Optional[threading.Thread] = None
        self.total_chunks = 0
        self.dropped_chunks = 0
        self.start_time: Optional[float] = None

    def start(self) -> None:
        """Start capturing into an empty live waveform."""
        if self.is_recording:
            logger.warning("Recording session already started")
            return

        self.buffer.clear()
        self.chunk_queue = queue.Queue()
        self.total_chunks = 0
        self.dropped_chunks = 0

        self.consumer_thread = threading.Thread(target=self._consume_chunks, daemon=True)
        self.consumer_thread.name = "WaveformConsumerThread"
        self.consumer_thread.start()

        try:
            self.capture = self.capture_factory(self.on_audio_event,
                                                self.file_manager.temp_recording_path())
            self.capture.start_recording()
        except Exception:
            self.capture = None
            self._drain()
            raise

        self.start_time = time.time()
        self.is_recording = True
        logger.info("Recording session started")

    def on_chunk(self, chunk: bytes) -> None:
        """Queue a raw PCM chunk for decoding. Never blocks."""
        if not self.is_recording:
            logger.debug("Dropping chunk received outside of a recording")
            return
        self.chunk_queue.put(chunk)

    def on_audio_event(self, event: AudioEvent) -> None:
        """Capture callback adapter."""
        self.on_chunk(event.audio_data)

    def _consume_chunks(self) -> None:
        """Internal method: decode queued chunks into the live buffer in order."""
        while True:
            chunk = self.chunk_queue.get()
            if chunk is _STOP:
                break

            self.total_chunks += 1
            try:
                amplitude = self.decoder.decode(chunk)
            except MalformedChunk as e:
                self.dropped_chunks += 1
                logger.warning(f"Skipping chunk {self.total_chunks}: {e}")
                continue

            point_count = self.buffer.append(amplitude)
            if self.on_sample is not None:
                try:
                    self.on_sample(amplitude, self.total_chunks, point_count)
                except Exception as e:
                    logger.error(f"Waveform sample callback failed: {e}")

        logger.debug(f"Chunk consumer exited after {self.total_chunks} chunks")

    def _drain(self) -> None:
        self.chunk_queue.put(_STOP)
        if self.consumer_thread and self.consumer_thread.is_alive():
            self.consumer_thread.join(timeout=5.0)
            if self.consumer_thread.is_alive():
                logger.warning("Chunk consumer did not stop cleanly")
        self.consumer_thread = None

    def live_waveform(self) -> Waveform:
        """Current contents of the live buffer."""
        return self.buffer.snapshot()

    def stop(self) -> RecordingResult:
        """Stop capture and finalize the recording.

        The audio is always moved to its final path when the capture
        produced one. A failure to write the waveform sidecar is reported
        in the result but does not fail the recording.
        """
        if not self.is_recording:
            return RecordingResult(success=False, error="Not recording")

        temp_path = None
        capture_error = None
        try:
            temp_path = self.capture.stop_recording()
        except Exception as e:
            logger.error(f"Error stopping capture: {e}")
            capture_error = str(e)

        self.is_recording = False
        self._drain()

        waveform = self.buffer.snapshot()
        duration = time.time() - self.start_time if self.start_time else 0.0
        result = RecordingResult(
            success=False,
            waveform=waveform,
            total_chunks=self.total_chunks,
            dropped_chunks=self.dropped_chunks,
            duration_seconds=duration,
        )

        if not temp_path:
            result.error = capture_error or "Capture produced no audio file"
            logger.error(f"Recording not finalized: {result.error}")
            return result

        new_path = self.file_manager.new_recording_path()
        try:
            self.file_manager.move_file(temp_path, new_path)
        except OSError as e:
            logger.error(f"Error moving recording to {new_path}: {e}")
            result.error = f"Failed to store audio: {e}"
            return result

        path = Path(new_path)
        result.success = True
        result.recording = Recording(
            path=new_path,
            name=path.name,
            size_bytes=path.stat().st_size if path.exists() else 0,
        )

        try:
            self.waveform_store.save(new_path, waveform)
            result.waveform_saved = True
        except StoreError as e:
            logger.error(f"Waveform not saved for {new_path}: {e}")
            result.warnings.append(str(e))

        logger.info(f"Recording finalized: {new_path} ({len(waveform)} waveform points, "
                    f"{self.total_chunks} chunks, {self.dropped_chunks} dropped)")
        return result
