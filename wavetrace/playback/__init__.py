"""Playback of recordings with progress synchronization."""

from .base import AbstractPlayer, AbstractPlayerHandle
from .sync import PlaybackSync, progress_ratio

__all__ = [
    "AbstractPlayer",
    "AbstractPlayerHandle",
    "PlaybackSync",
    "progress_ratio",
]
