"""Playback publisher module for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub
from ..models.playback import PlaybackStatus

logger = logging.getLogger(__name__)

PLAYBACK_PROGRESS_TOPIC = "playback.progress"


class PlaybackPublisher:
    """Publishes playback status updates using pubsub.pub."""

    def __init__(self, topic: str = PLAYBACK_PROGRESS_TOPIC):
        """Initialize playback publisher.

        Args:
            topic: Pub/sub topic name for playback status updates
        """
        self.topic = topic
        logger.info(f"PlaybackPublisher initialized with topic: {topic}")

    def publish_status(self, status: PlaybackStatus) -> None:
        """Publish a playback status to the pub/sub topic."""
        pub.sendMessage(self.topic, status=status)

    def get_callback(self) -> Callable[[PlaybackStatus], None]:
        """Get callback function for PlaybackSync to use."""
        return self.publish_status
