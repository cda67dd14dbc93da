"""Keeps a playback progress ratio in sync with the player position."""

import logging
import math
import threading
from typing import Callable, Optional, Sequence, Tuple

from ..exceptions import PlayerError
from ..models.playback import PlaybackState, PlaybackStatus
from ..models.waveform import Waveform, EMPTY_WAVEFORM
from .base import AbstractPlayer, AbstractPlayerHandle

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1


def progress_ratio(elapsed: float, duration: float) -> float:
    """Elapsed time over duration, clamped to [0.0, 1.0]."""
    if duration <= 0:
        return 0.0
    ratio = elapsed / duration
    if math.isnan(ratio):
        return 0.0
    return min(max(ratio, 0.0), 1.0)


class PlaybackSync:
    """Drives one player handle and polls it for progress on a fixed cadence.

    States move ``IDLE -> PLAYING -> {PAUSED <-> PLAYING} -> IDLE``. The
    polling thread is cancelled through its own ``threading.Event`` on every
    way out: ``stop()``, natural completion, a player error, or a new
    ``start()``. A cancelled thread never touches the next handle.
    """

    def __init__(self,
                 player: AbstractPlayer,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 on_update: Optional[Callable[[PlaybackStatus], None]] = None):
        """Initialize playback sync.

        Args:
            player: Player collaborator used to load recordings
            poll_interval: Seconds between progress polls
            on_update: Called with a PlaybackStatus on every tick and transition
        """
        self.player = player
        self.poll_interval = poll_interval
        self.on_update = on_update

        self._lock = threading.RLock()
        self._state = PlaybackState.IDLE
        self._recording_id: Optional[str] = None
        self._waveform: Waveform = EMPTY_WAVEFORM
        self._progress = 0.0
        self._duration = 0.0
        self._handle: Optional[AbstractPlayerHandle] = None
        self._cancel_event: Optional[threading.Event] = None
        self._poll_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def recording_id(self) -> Optional[str]:
        return self._recording_id

    def status(self) -> PlaybackStatus:
        """Current state as an immutable snapshot."""
        with self._lock:
            return PlaybackStatus(
                state=self._state,
                recording_id=self._recording_id,
                progress=self._progress,
                waveform=self._waveform,
            )

    def _notify(self, status: PlaybackStatus) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(status)
        except Exception as e:
            logger.error(f"Playback update callback failed: {e}")

    def start(self, recording_id: str, duration: Optional[float] = None,
              waveform: Sequence[float] = EMPTY_WAVEFORM) -> PlaybackStatus:
        """Start playing a recording from the beginning.

        Any previous playback is fully torn down first, its polling thread
        joined and its handle released.

        Args:
            recording_id: Path of the recording to play
            duration: Total duration in seconds; defaults to the player's value
            waveform: Waveform shown while this recording plays

        Raises:
            PlayerError: If the player cannot load or play the recording
        """
        self._teardown()

        try:
            handle = self.player.load(recording_id)
        except PlayerError as e:
            logger.error(f"Playback error for {recording_id}: {e}")
            self._notify(self.status())
            raise
        except Exception as e:
            logger.error(f"Playback error for {recording_id}: {e}")
            self._notify(self.status())
            raise PlayerError(f"Failed to load {recording_id}: {e}") from e

        try:
            total = handle.get_duration() if duration is None else duration
            handle.play()
        except Exception as e:
            logger.error(f"Playback failed for {recording_id}: {e}")
            self._release_handle(handle)
            self._notify(self.status())
            if isinstance(e, PlayerError):
                raise
            raise PlayerError(f"Failed to play {recording_id}: {e}") from e

        cancel_event = threading.Event()
        with self._lock:
            self._handle = handle
            self._duration = float(total)
            self._recording_id = recording_id
            self._waveform = tuple(waveform)
            self._progress = 0.0
            self._state = PlaybackState.PLAYING
            self._cancel_event = cancel_event
            poll_thread = threading.Thread(
                target=self._poll_loop, args=(cancel_event,), daemon=True)
            poll_thread.name = "PlaybackSyncThread"
            self._poll_thread = poll_thread
            status = PlaybackStatus(self._state, recording_id, 0.0, self._waveform)

        logger.info(f"Playback started: {recording_id} ({total:.2f}s)")
        # Announce the start before the first tick can report progress
        self._notify(status)
        poll_thread.start()
        return status

    def _poll_loop(self, cancel_event: threading.Event) -> None:
        """Internal method: poll the player until cancelled."""
        while not cancel_event.wait(self.poll_interval):
            keep_running, _ = self._tick(cancel_event)
            if not keep_running:
                break
        logger.debug("Playback polling loop exited")

    def poll(self) -> float:
        """Run one polling tick now.

        Returns:
            The progress ratio computed by this tick
        """
        with self._lock:
            cancel_event = self._cancel_event
            progress = self._progress
        if cancel_event is None:
            return progress
        _, progress = self._tick(cancel_event)
        return progress

    def _tick(self, cancel_event: threading.Event) -> Tuple[bool, float]:
        """Query the player and update progress.

        Returns:
            (keep_running, progress); keep_running is False when the loop
            owning ``cancel_event`` should exit
        """
        with self._lock:
            if cancel_event is not self._cancel_event or cancel_event.is_set():
                return False, self._progress
            if self._state is PlaybackState.PAUSED:
                return True, self._progress
            handle = self._handle
            duration = self._duration

        try:
            elapsed = handle.get_current_time()
            finished = handle.is_finished()
        except Exception as e:
            logger.error(f"Player query failed, stopping playback: {e}")
            self._teardown()
            self._notify(self.status())
            return False, 0.0

        progress = progress_ratio(elapsed, duration)
        with self._lock:
            if cancel_event is not self._cancel_event:
                return False, progress
            self._progress = progress
            status = PlaybackStatus(self._state, self._recording_id, progress, self._waveform)
        self._notify(status)

        if finished:
            logger.info(f"Playback completed: {status.recording_id}")
            self._teardown()
            self._notify(self.status())
            return False, progress
        return True, progress

    def pause(self) -> bool:
        """Pause playback. Returns True if the state changed."""
        with self._lock:
            if self._state is not PlaybackState.PLAYING:
                logger.warning(f"Cannot pause while {self._state.value}")
                return False
            self._handle.pause()
            self._state = PlaybackState.PAUSED
        logger.info(f"Playback paused: {self._recording_id}")
        self._notify(self.status())
        return True

    def resume(self) -> bool:
        """Resume paused playback. Returns True if the state changed."""
        with self._lock:
            if self._state is not PlaybackState.PAUSED:
                logger.warning(f"Cannot resume while {self._state.value}")
                return False
            error = None
            try:
                self._handle.play()
            except Exception as e:
                logger.error(f"Resume failed for {self._recording_id}: {e}")
                error = e
            else:
                self._state = PlaybackState.PLAYING
        if error is not None:
            self._teardown()
            self._notify(self.status())
            raise PlayerError(f"Failed to resume playback: {error}") from error
        logger.info(f"Playback resumed: {self._recording_id}")
        self._notify(self.status())
        return True

    def toggle_pause(self) -> bool:
        """Pause when playing, resume when paused."""
        if self._state is PlaybackState.PAUSED:
            return self.resume()
        return self.pause()

    def stop(self) -> None:
        """Stop playback from any state and reset progress."""
        was_active = self._state is not PlaybackState.IDLE
        self._teardown()
        if was_active:
            logger.info("Playback stopped")
            self._notify(self.status())

    def _teardown(self) -> None:
        """Cancel the polling thread, release the handle and go idle."""
        with self._lock:
            cancel_event = self._cancel_event
            poll_thread = self._poll_thread
            handle = self._handle
            self._cancel_event = None
            self._poll_thread = None
            self._handle = None
            self._state = PlaybackState.IDLE
            self._recording_id = None
            self._waveform = EMPTY_WAVEFORM
            self._progress = 0.0
            self._duration = 0.0

        if cancel_event is not None:
            cancel_event.set()
        if (poll_thread is not None and poll_thread.is_alive()
                and poll_thread is not threading.current_thread()):
            poll_thread.join(timeout=max(2.0, self.poll_interval * 2))
            if poll_thread.is_alive():
                logger.warning("Playback polling thread did not stop cleanly")
        if handle is not None:
            self._release_handle(handle)

    def _release_handle(self, handle: AbstractPlayerHandle) -> None:
        try:
            handle.stop()
        except Exception as e:
            logger.warning(f"Error stopping player: {e}")
        try:
            handle.release()
        except Exception as e:
            logger.warning(f"Error releasing player: {e}")
