"""Display publisher module for pub/sub visual-state signals."""

import logging
from pubsub import pub

logger = logging.getLogger(__name__)

RECORDING_STARTED = "recording_started"
RECORDING_STOPPED = "recording_stopped"
GENERATION_STARTED = "generation_started"
GENERATION_ENDED = "generation_ended"
IMAGE_UPDATED = "image_updated"


class DisplayPublisher:
    """Publishes controller state transitions using pubsub.pub."""
    
    def __init__(self, topic_root: str = "display"):
        """Initialize display publisher.
        
        Args:
            topic_root: Prefix of every visual-state topic
        """
        self.topic_root = topic_root
        logger.info(f"DisplayPublisher initialized with topic root: {topic_root}")
    
    def topic(self, signal: str) -> str:
        return f"{self.topic_root}.{signal}"
    
    def _send(self, signal: str, **data) -> None:
        pub.sendMessage(self.topic(signal), **data)
        logger.debug(f"Published {signal}: {data}")
    
    def recording_started(self, session_id: str) -> None:
        self._send(RECORDING_STARTED, session_id=session_id)
    
    def recording_stopped(self, session_id: str) -> None:
        self._send(RECORDING_STOPPED, session_id=session_id)
    
    def generation_started(self, session_id: str) -> None:
        self._send(GENERATION_STARTED, session_id=session_id)
    
    def generation_ended(self, session_id: str) -> None:
        self._send(GENERATION_ENDED, session_id=session_id)
    
    def image_updated(self, session_id: str, image_path: str) -> None:
        self._send(IMAGE_UPDATED, session_id=session_id, image_path=image_path)
