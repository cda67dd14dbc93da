"""Waveform publisher module for pub/sub event publishing."""

import logging
import time
from typing import Callable
from pubsub import pub
from ..models.events import WaveformEvent

logger = logging.getLogger(__name__)

LIVE_WAVEFORM_TOPIC = "waveform.live"


class WaveformPublisher:
    """Publishes live waveform samples using pubsub.pub."""

    def __init__(self, topic: str = LIVE_WAVEFORM_TOPIC):
        """Initialize waveform publisher.

        Args:
            topic: Pub/sub topic name for waveform events
        """
        self.topic = topic
        logger.info(f"WaveformPublisher initialized with topic: {topic}")

    def publish_sample(self, amplitude: float, sequence_number: int, point_count: int) -> None:
        """Publish one new live sample to the pub/sub topic."""
        event = WaveformEvent(
            amplitude=amplitude,
            sequence_number=sequence_number,
            point_count=point_count,
            timestamp=time.time(),
        )
        pub.sendMessage(self.topic, event=event)

    def get_callback(self) -> Callable[[float, int, int], None]:
        """Get callback function for RecordingSession to use."""
        return self.publish_sample
