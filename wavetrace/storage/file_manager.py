"""File management module for recordings and their sidecar files."""

import os
import logging
import shutil
import time
from pathlib import Path
from typing import Dict, Any, List

from ..models.recording import Recording


logger = logging.getLogger(__name__)

AUDIO_EXTENSION = ".wav"


class FileManager:
    """Manages the recordings directory and the primitive file operations on it."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.recordings_dir = self.data_dir / "recordings"
        self.temp_dir = self.data_dir / "tmp"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.recordings_dir, self.temp_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def new_recording_path(self) -> str:
        """Build a fresh recording path from the current epoch milliseconds.

        Returns:
            Path of the form ``<recordings_dir>/recording_<ms>.wav``
        """
        timestamp_ms = int(time.time() * 1000)
        path = self.recordings_dir / f"recording_{timestamp_ms}{AUDIO_EXTENSION}"
        # Two stops within the same millisecond must not collide
        while path.exists():
            timestamp_ms += 1
            path = self.recordings_dir / f"recording_{timestamp_ms}{AUDIO_EXTENSION}"
        return str(path)

    def temp_recording_path(self) -> str:
        """Path the capture device writes its in-progress take to."""
        return str(self.temp_dir / f"temp{AUDIO_EXTENSION}")

    def recording_path_for_name(self, name: str) -> str:
        """Path for a recording with the given display name."""
        if name.endswith(AUDIO_EXTENSION):
            name = name[:-len(AUDIO_EXTENSION)]
        if not name or os.sep in name or (os.altsep and os.altsep in name):
            raise ValueError(f"Invalid recording name: {name!r}")
        return str(self.recordings_dir / f"{name}{AUDIO_EXTENSION}")

    def list_recordings(self) -> List[Recording]:
        """List all audio recordings, oldest name first."""
        recordings = []
        for path in self.read_dir(str(self.recordings_dir)):
            if path.suffix != AUDIO_EXTENSION or not path.is_file():
                continue
            recordings.append(Recording(
                path=str(path),
                name=path.name,
                size_bytes=path.stat().st_size,
            ))

        recordings.sort(key=lambda r: r.name)
        logger.debug(f"Found {len(recordings)} recordings")
        return recordings

    # Primitive operations. They raise OSError on failure and leave error
    # policy to the caller.

    def read_dir(self, directory: str) -> List[Path]:
        """List entries of a directory."""
        return sorted(Path(directory).iterdir())

    def write_file(self, path: str, content: str) -> None:
        """Write UTF-8 text, replacing any existing file."""
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.debug(f"Wrote {len(content)} chars to {path}")

    def read_file(self, path: str) -> str:
        """Read UTF-8 text."""
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def move_file(self, src: str, dst: str) -> None:
        """Move a file, creating the destination directory if needed."""
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        shutil.move(src, dst)
        logger.debug(f"Moved {src} -> {dst}")

    def unlink(self, path: str) -> None:
        """Remove a file."""
        Path(path).unlink()
        logger.debug(f"Removed {path}")

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        try:
            total_size = 0
            audio_files = 0
            sidecar_files = 0

            for file_path in self.recordings_dir.iterdir():
                if not file_path.is_file():
                    continue
                total_size += file_path.stat().st_size
                if file_path.suffix == AUDIO_EXTENSION:
                    audio_files += 1
                elif file_path.suffix == ".json":
                    sidecar_files += 1

            return {
                "total_size_bytes": total_size,
                "total_size_mb": round(total_size / (1024 * 1024), 2),
                "audio_files": audio_files,
                "sidecar_files": sidecar_files,
                "data_directory": str(self.data_dir)
            }

        except Exception as e:
            logger.error(f"Error getting storage stats: {e}")
            return {}
