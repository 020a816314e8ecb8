"""Session-scoped pub/sub channel and segment publisher."""

import logging
from typing import Any, Callable, List, Tuple

from pubsub import pub

from ..models.events import KeyPointsEvent, ReferencesEvent, SessionStatusEvent
from ..models.transcription import TranscriptEvent

logger = logging.getLogger(__name__)

TOPIC_ROOT = "scripturecue"

SEGMENTS = "segments"
REFERENCES = "references"
INTERIM_REFERENCES = "interim_references"
KEY_POINTS = "key_points"
STATUS = "status"

TOPIC_NAMES = (SEGMENTS, REFERENCES, INTERIM_REFERENCES, KEY_POINTS, STATUS)


class SessionChannel:
    """Pub/sub topics owned by one session.

    Every topic carries a single ``event`` keyword argument. Listeners are
    held here as well as in pubsub (which only keeps weak references), and
    are all removed by ``close()``.
    """

    def __init__(self, session_id: str):
        """Initialize session channel.

        Args:
            session_id: Session identifier used as the topic namespace
        """
        self.session_id = session_id
        self._listeners: List[Tuple[Callable[..., Any], str]] = []
        self.closed = False
        logger.debug(f"SessionChannel created for {session_id}")

    def topic(self, name: str) -> str:
        if name not in TOPIC_NAMES:
            raise ValueError(f"Unknown session topic: {name}")
        return f"{TOPIC_ROOT}.{self.session_id}.{name}"

    def publish(self, name: str, event: Any) -> None:
        """Send an event to every listener of a topic.

        Publishing on a closed channel is a no-op, so late results from a
        stopped session never reach the next session's listeners.
        """
        if self.closed:
            logger.debug(f"Dropping {name} event on closed channel {self.session_id}")
            return
        pub.sendMessage(self.topic(name), event=event)

    def subscribe(self, name: str, listener: Callable[..., Any]) -> None:
        """Register a listener taking a single ``event`` argument."""
        topic = self.topic(name)
        pub.subscribe(listener, topic)
        self._listeners.append((listener, topic))

    def close(self) -> None:
        """Unsubscribe every listener registered through this channel."""
        for listener, topic in self._listeners:
            try:
                pub.unsubscribe(listener, topic)
            except pub.TopicNameError as e:
                logger.warning(f"Error during unsubscribe from {topic}: {e}")
        self._listeners.clear()
        self.closed = True
        logger.debug(f"SessionChannel closed for {self.session_id}")

    # Typed helpers

    def publish_status(self, event: SessionStatusEvent) -> None:
        self.publish(STATUS, event)

    def publish_references(self, event: ReferencesEvent) -> None:
        self.publish(INTERIM_REFERENCES if event.is_interim else REFERENCES, event)

    def publish_key_points(self, event: KeyPointsEvent) -> None:
        self.publish(KEY_POINTS, event)


class SegmentPublisher:
    """Publishes transcript events from a segment source onto its session channel."""

    def __init__(self, channel: SessionChannel):
        """Initialize segment publisher.

        Args:
            channel: Channel of the session the source belongs to
        """
        self.channel = channel
        logger.info(f"SegmentPublisher initialized with topic: {channel.topic(SEGMENTS)}")

    @property
    def session_id(self) -> str:
        return self.channel.session_id

    def publish_event(self, event: TranscriptEvent) -> None:
        """Publish a transcript event to the segments topic.

        Args:
            event: Interim or final TranscriptEvent
        """
        self.channel.publish(SEGMENTS, event)
        logger.debug(f"Published {event.kind.value} event ({len(event.text)} chars, {event.engine})")

    def publish_status(self, event: SessionStatusEvent) -> None:
        self.channel.publish_status(event)
