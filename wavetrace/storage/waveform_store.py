"""Sidecar persistence and in-memory cache for recording waveforms.

Each recording ``<dir>/<name>.wav`` owns at most one sidecar
``<dir>/<name>_wave.json`` holding a bare JSON array of amplitudes. The
store keeps a cache of every waveform it has saved or loaded, keyed by the
recording path.

Sidecar writes go straight to the target file. A crash mid-write leaves a
truncated sidecar, which ``load`` then reports as an empty waveform.
"""

import json
import logging
import math
import threading
from pathlib import Path
from typing import Dict, Iterable, Sequence

from ..exceptions import StoreError, SidecarParseError
from ..models.waveform import Waveform, EMPTY_WAVEFORM
from .file_manager import FileManager

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = "_wave"
SIDECAR_EXTENSION = ".json"


def sidecar_path_for(recording_id: str) -> str:
    """Derive the sidecar path for a recording path.

    ``/data/recording_1.wav`` -> ``/data/recording_1_wave.json``
    """
    path = Path(recording_id)
    return str(path.with_name(f"{path.stem}{SIDECAR_SUFFIX}{SIDECAR_EXTENSION}"))


def parse_sidecar(content: str) -> Waveform:
    """Parse sidecar text into a waveform.

    Raises:
        SidecarParseError: If the content is not a JSON array of numbers
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise SidecarParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise SidecarParseError(f"Expected a JSON array, got {type(data).__name__}")

    samples = []
    for value in data:
        # bool is an int subclass but never a valid amplitude
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SidecarParseError(f"Non-numeric sample: {value!r}")
        if not math.isfinite(value):
            raise SidecarParseError(f"Non-finite sample: {value!r}")
        samples.append(float(value))
    return tuple(samples)


class WaveformStore:
    """Persists waveforms next to their recordings and caches them by path."""

    def __init__(self, file_manager: FileManager):
        """Initialize waveform store.

        Args:
            file_manager: Storage collaborator used for all file access
        """
        self.file_manager = file_manager
        self._cache: Dict[str, Waveform] = {}
        # Serializes cache mutations; readers get immutable tuples
        self._write_lock = threading.Lock()

    def save(self, recording_id: str, waveform: Sequence[float]) -> None:
        """Write the waveform sidecar for a recording and cache it.

        Raises:
            StoreError: If the sidecar cannot be written
        """
        frozen = tuple(float(v) for v in waveform)
        sidecar = sidecar_path_for(recording_id)
        try:
            self.file_manager.write_file(sidecar, json.dumps(list(frozen)))
        except OSError as e:
            logger.error(f"Error saving waveform sidecar {sidecar}: {e}")
            raise StoreError(f"Failed to write waveform sidecar: {e}", sidecar) from e

        with self._write_lock:
            self._cache[recording_id] = frozen
        logger.info(f"Waveform saved: {sidecar} ({len(frozen)} points)")

    def load(self, recording_id: str) -> Waveform:
        """Read the waveform for a recording.

        A missing, unreadable or malformed sidecar yields an empty waveform;
        nothing is raised. The result replaces the cache entry.
        """
        sidecar = sidecar_path_for(recording_id)
        waveform = EMPTY_WAVEFORM

        if self.file_manager.exists(sidecar):
            try:
                waveform = parse_sidecar(self.file_manager.read_file(sidecar))
            except SidecarParseError as e:
                logger.warning(f"Ignoring malformed waveform sidecar {sidecar}: {e}")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Ignoring unreadable waveform sidecar {sidecar}: {e}")
        else:
            logger.debug(f"No waveform sidecar for {recording_id}")

        with self._write_lock:
            self._cache[recording_id] = waveform
        return waveform

    def load_all(self, recording_ids: Iterable[str]) -> Dict[str, Waveform]:
        """Rebuild the cache from the sidecars of the given recordings.

        Entries for recordings not in ``recording_ids`` are dropped.
        """
        ids = list(recording_ids)
        loaded = {recording_id: self.load(recording_id) for recording_id in ids}
        with self._write_lock:
            for stale in set(self._cache) - set(ids):
                del self._cache[stale]
        logger.info(f"Waveform cache rebuilt for {len(ids)} recordings")
        return loaded

    def rename(self, old_id: str, new_id: str) -> None:
        """Move a recording's sidecar to follow the recording to its new path.

        Raises:
            StoreError: If the sidecar exists but cannot be moved
        """
        old_sidecar = sidecar_path_for(old_id)
        new_sidecar = sidecar_path_for(new_id)

        if self.file_manager.exists(old_sidecar):
            try:
                self.file_manager.move_file(old_sidecar, new_sidecar)
            except OSError as e:
                logger.error(f"Error moving waveform sidecar {old_sidecar}: {e}")
                raise StoreError(f"Failed to move waveform sidecar: {e}", old_sidecar) from e
            logger.info(f"Waveform sidecar moved: {old_sidecar} -> {new_sidecar}")

        with self._write_lock:
            if old_id in self._cache:
                self._cache[new_id] = self._cache.pop(old_id)

    def delete(self, recording_id: str) -> None:
        """Remove a recording's sidecar and cache entry.

        Raises:
            StoreError: If the sidecar exists but cannot be removed
        """
        sidecar = sidecar_path_for(recording_id)
        if self.file_manager.exists(sidecar):
            try:
                self.file_manager.unlink(sidecar)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Error deleting waveform sidecar {sidecar}: {e}")
                raise StoreError(f"Failed to delete waveform sidecar: {e}", sidecar) from e
            logger.info(f"Waveform sidecar deleted: {sidecar}")

        with self._write_lock:
            self._cache.pop(recording_id, None)

    def cache_lookup(self, recording_id: str) -> Waveform:
        """Cached waveform for a recording, empty if not cached."""
        return self._cache.get(recording_id, EMPTY_WAVEFORM)

    def cached_ids(self) -> list:
        return list(self._cache)

    def clear_cache(self) -> None:
        with self._write_lock:
            self._cache.clear()
