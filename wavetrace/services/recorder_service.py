"""Recorder service coordinating recording, the recording library and playback."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..audio.waveform_pub import WaveformPublisher
from ..config import WaveTraceConfig
from ..exceptions import PlayerError, StoreError
from ..models.playback import PlaybackState, PlaybackStatus
from ..models.recording import Recording, RecordingResult
from ..models.waveform import Waveform, EMPTY_WAVEFORM
from ..playback.base import AbstractPlayer
from ..playback.playback_pub import PlaybackPublisher
from ..playback.sync import PlaybackSync
from ..storage.file_manager import FileManager
from ..storage.waveform_store import WaveformStore
from .recording_session import RecordingSession, CaptureFactory

logger = logging.getLogger(__name__)


class RecorderService:
    """Owns the store, the playback sync and at most one recording session.

    All methods are meant to be called from one coordinating thread. The
    only background activity is the capture, the chunk consumer of the
    active session and the playback polling thread.
    """

    def __init__(self,
                 config: WaveTraceConfig,
                 player: Optional[AbstractPlayer] = None,
                 capture_factory: Optional[CaptureFactory] = None):
        """Initialize recorder service.

        Args:
            config: Application configuration
            player: Player collaborator; a PyAudioPlayer if omitted
            capture_factory: Builds capture devices; PyAudio capture if omitted
        """
        self.config = config
        self.file_manager = FileManager(config.get_data_directory())
        self.waveform_store = WaveformStore(self.file_manager)

        self.player = player or self._default_player()
        self.capture_factory = capture_factory or self._default_capture_factory()

        self.waveform_publisher = WaveformPublisher()
        self.playback_publisher = PlaybackPublisher()

        self.playback_sync = PlaybackSync(
            self.player,
            poll_interval=config.get_poll_interval(),
            on_update=self._on_playback_update,
        )

        self.session: Optional[RecordingSession] = None
        self.recordings: List[Recording] = []
        self.display_waveform: Waveform = EMPTY_WAVEFORM

        logger.info("RecorderService ready")

    @staticmethod
    def _default_player() -> AbstractPlayer:
        # Deferred so the core stays importable without an audio backend
        from ..playback.player import PyAudioPlayer
        return PyAudioPlayer()

    def _default_capture_factory(self) -> CaptureFactory:
        from ..audio.capture import AudioCapture

        sample_rate = self.config.get('audio.sample_rate', 44100)
        chunk_size = self.config.get('audio.chunk_size', 4096)
        channels = self.config.get('audio.channels', 1)

        def build(callback, output_path):
            return AudioCapture(
                callback=callback,
                output_path=output_path,
                sample_rate=sample_rate,
                chunk_size=chunk_size,
                channels=channels,
            )
        return build

    @property
    def is_recording(self) -> bool:
        return self.session is not None and self.session.is_recording

    def _on_playback_update(self, status: PlaybackStatus) -> None:
        self.playback_publisher.publish_status(status)

    def load_recordings(self) -> List[Recording]:
        """List recordings and rebuild the waveform cache from their sidecars."""
        self.recordings = self.file_manager.list_recordings()
        self.waveform_store.load_all(r.path for r in self.recordings)
        logger.info(f"Loaded {len(self.recordings)} recordings")
        return self.recordings

    def find_recording(self, name: str) -> Optional[Recording]:
        """Find a loaded recording by file name, with or without extension."""
        for recording in self.recordings:
            if recording.name == name or Path(recording.path).stem == name:
                return recording
        return None

    def start_recording(self) -> Dict[str, Any]:
        """Start a new recording. Any playback is stopped first.

        Returns:
            Result dictionary with success status and details
        """
        if self.is_recording:
            return {"success": False, "error": "Already recording"}

        self.playback_sync.stop()
        self.display_waveform = EMPTY_WAVEFORM

        self.session = RecordingSession(
            file_manager=self.file_manager,
            waveform_store=self.waveform_store,
            capture_factory=self.capture_factory,
            max_points=self.config.get_max_points(),
            on_sample=self.waveform_publisher.get_callback(),
        )
        try:
            self.session.start()
        except Exception as e:
            logger.error(f"Error starting recording: {e}")
            self.session = None
            return {"success": False, "error": str(e)}

        return {"success": True}

    def stop_recording(self) -> RecordingResult:
        """Stop the current recording, persist it and refresh the library."""
        if not self.is_recording:
            return RecordingResult(success=False, error="Not recording")

        result = self.session.stop()
        self.display_waveform = result.waveform
        self.session = None

        self.load_recordings()
        return result

    def current_waveform(self) -> Waveform:
        """Live waveform while recording, else the waveform on display."""
        if self.is_recording:
            return self.session.live_waveform()
        return self.display_waveform

    def play(self, path: str) -> Dict[str, Any]:
        """Play a recording and show its cached waveform."""
        if self.is_recording:
            return {"success": False, "error": "Recording in progress"}

        waveform = self.waveform_store.cache_lookup(path)
        self.display_waveform = waveform
        try:
            status = self.playback_sync.start(path, waveform=waveform)
        except PlayerError as e:
            return {"success": False, "error": str(e)}

        return {"success": True, "path": path, "state": status.state.value}

    def toggle_pause(self) -> Dict[str, Any]:
        """Pause or resume the current playback."""
        if self.playback_sync.state is PlaybackState.IDLE:
            return {"success": False, "error": "Nothing is playing"}
        try:
            self.playback_sync.toggle_pause()
        except PlayerError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "state": self.playback_sync.state.value}

    def stop_playback(self) -> None:
        self.playback_sync.stop()

    def playback_status(self) -> PlaybackStatus:
        return self.playback_sync.status()

    def rename_recording(self, path: str, new_name: str) -> Dict[str, Any]:
        """Rename a recording; its waveform sidecar follows it.

        Returns:
            Result dictionary with the new path on success
        """
        try:
            new_path = self.file_manager.recording_path_for_name(new_name)
        except ValueError as e:
            return {"success": False, "error": str(e)}

        if new_path == path:
            return {"success": True, "path": path, "warnings": []}
        if self.file_manager.exists(new_path):
            return {"success": False, "error": f"A recording named {Path(new_path).name} already exists"}

        if self.playback_sync.recording_id == path:
            self.playback_sync.stop()

        try:
            self.file_manager.move_file(path, new_path)
        except OSError as e:
            logger.error(f"Error renaming recording {path}: {e}")
            return {"success": False, "error": str(e)}

        warnings = []
        try:
            self.waveform_store.rename(path, new_path)
        except StoreError as e:
            logger.error(f"Waveform not renamed for {new_path}: {e}")
            warnings.append(str(e))

        logger.info(f"Recording renamed: {path} -> {new_path}")
        self.load_recordings()
        return {"success": True, "path": new_path, "warnings": warnings}

    def delete_recording(self, path: str) -> Dict[str, Any]:
        """Delete a recording and its waveform sidecar.

        Deleting the recording that is playing stops the playback and clears
        the display. Deleting an already deleted recording succeeds.
        """
        if self.playback_sync.recording_id == path:
            self.playback_sync.stop()
            self.display_waveform = EMPTY_WAVEFORM

        try:
            if self.file_manager.exists(path):
                self.file_manager.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Error deleting recording {path}: {e}")
            return {"success": False, "error": str(e)}

        warnings = []
        try:
            self.waveform_store.delete(path)
        except StoreError as e:
            logger.error(f"Waveform not deleted for {path}: {e}")
            warnings.append(str(e))

        logger.info(f"Recording deleted: {path}")
        self.load_recordings()
        return {"success": True, "warnings": warnings}

    def get_storage_stats(self) -> Dict[str, Any]:
        return self.file_manager.get_storage_stats()

    def shutdown(self) -> None:
        """Stop any recording and playback."""
        try:
            if self.is_recording:
                self.stop_recording()
        except Exception as e:
            logger.error(f"Error stopping recording during shutdown: {e}")
        self.playback_sync.stop()
        logger.info("RecorderService shut down")
