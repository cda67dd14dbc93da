"""Terminal waveform display driven by the pub/sub waveform and playback topics."""

import logging
import threading
from typing import Optional, Sequence

from pubsub import pub
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.text import Text

from ..audio.waveform_pub import LIVE_WAVEFORM_TOPIC
from ..models.events import WaveformEvent
from ..models.playback import PlaybackState, PlaybackStatus
from ..models.waveform import MAX_POINTS
from ..playback.playback_pub import PLAYBACK_PROGRESS_TOPIC

logger = logging.getLogger(__name__)

BARS = " ▁▂▃▄▅▆▇█"


def sparkline(points: Sequence[float], width: Optional[int] = None) -> str:
    """Render amplitudes as a row of block characters, one per point."""
    if width is not None and len(points) > width:
        points = points[-width:]
    top = len(BARS) - 1
    return "".join(BARS[min(top, max(0, round(p * top)))] for p in points)


class WaveformScreen:
    """Collects live samples and playback updates and renders them with rich."""

    def __init__(self, max_points: int = MAX_POINTS, console: Optional[Console] = None):
        self.console = console or Console()
        self.max_points = max_points

        self.lock = threading.Lock()
        self.live_points = []
        self.status = PlaybackStatus()
        self.title = ""

        self.subscribed = False

    def subscribe(self) -> None:
        """Start listening on the waveform and playback topics."""
        if self.subscribed:
            return
        pub.subscribe(self._on_waveform, LIVE_WAVEFORM_TOPIC)
        pub.subscribe(self._on_playback, PLAYBACK_PROGRESS_TOPIC)
        self.subscribed = True

    def unsubscribe(self) -> None:
        if not self.subscribed:
            return
        try:
            pub.unsubscribe(self._on_waveform, LIVE_WAVEFORM_TOPIC)
            pub.unsubscribe(self._on_playback, PLAYBACK_PROGRESS_TOPIC)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self.subscribed = False

    def _on_waveform(self, event: WaveformEvent) -> None:
        with self.lock:
            self.live_points.append(event.amplitude)
            del self.live_points[:-self.max_points]

    def _on_playback(self, status: PlaybackStatus) -> None:
        with self.lock:
            self.status = status

    def reset(self, title: str = "") -> None:
        with self.lock:
            self.live_points = []
            self.status = PlaybackStatus()
            self.title = title

    def render(self) -> Panel:
        """Build the panel for the current state."""
        with self.lock:
            status = self.status
            points = list(self.live_points) if not status.is_active else list(status.waveform)
            title = self.title

        line = Text(sparkline(points, self.max_points) or "(no waveform)", style="blue_violet")
        parts = [line]

        if status.is_active:
            marker = " " * int(min(len(points), self.max_points) * status.progress)
            parts.append(Text(marker + "│", style="bold red"))
            parts.append(ProgressBar(total=1.0, completed=status.progress, width=max(len(points), 10)))
            label = "⏸ Paused" if status.state is PlaybackState.PAUSED else "▶ Playing"
            parts.append(Text(f"{label}  {status.progress:.0%}", style="bold"))
        elif points:
            parts.append(Text(f"● Recording  {len(points)} points", style="bold red"))

        return Panel(Group(*parts), title=title or "WaveTrace", border_style="green")
