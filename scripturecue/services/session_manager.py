"""Session manager: one active transcription session at a time."""

import asyncio
import logging
import uuid
from typing import Callable, List, Optional

from ..analysis.analyzer import TranscriptAnalyzer
from ..detection.detector import DirectReferenceDetector
from ..models.events import SessionStatusEvent
from ..models.session import SessionState, SourceKind, TranscriptionSession
from ..models.settings import AISettings, DetectionSettings, SessionConfig
from ..transcription.base import AbstractSegmentSource, SourceHandle, SourceStartError
from ..transcription.factory import create_segment_source
from ..transcription.local_source import LocalTranscriptionEngine
from ..transcription.publisher import STATUS, SegmentPublisher, SessionChannel
from .live_cue import LiveCueController
from .transcript_pipeline import TranscriptPipeline

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:8]}"


class SessionManager:
    """Starts and stops transcription sessions and owns their resources."""

    def __init__(
        self,
        session_config: SessionConfig,
        detection: DetectionSettings,
        ai_settings: AISettings,
        detector: DirectReferenceDetector,
        analyzer: TranscriptAnalyzer,
        controller: LiveCueController,
        auto_trigger_on_detection: bool = False,
        source_factory: Callable[..., AbstractSegmentSource] = create_segment_source,
        local_engine: Optional[LocalTranscriptionEngine] = None,
    ):
        """Initialize session manager.

        Args:
            session_config: Default source configuration
            detection: Parser, throttle and dedup settings
            ai_settings: AI settings for the analysis fallback
            detector: Shared direct reference detector
            analyzer: Shared AI analyzer
            controller: Live cue controller
            auto_trigger_on_detection: Put direct detections live automatically
            source_factory: Builds the segment source for a session
            local_engine: Engine override for the local source
        """
        self.session_config = session_config
        self.detection = detection
        self.ai_settings = ai_settings
        self.detector = detector
        self.analyzer = analyzer
        self.controller = controller
        self.auto_trigger_on_detection = auto_trigger_on_detection
        self.source_factory = source_factory
        self.local_engine = local_engine

        self.session: Optional[TranscriptionSession] = None
        self.channel: Optional[SessionChannel] = None
        self.pipeline: Optional[TranscriptPipeline] = None
        self.source: Optional[AbstractSegmentSource] = None
        self.handle: Optional[SourceHandle] = None

        # Called with the new channel before the source starts, e.g. to attach a view
        self.channel_observers: List[Callable[[SessionChannel], None]] = []

        logger.info("SessionManager initialized")

    @property
    def is_active(self) -> bool:
        return self.session is not None and self.session.is_active

    async def start_session(self, source_kind: Optional[SourceKind] = None) -> TranscriptionSession:
        """Start a new session, tearing down the previous one first.

        Args:
            source_kind: Source variant; configured default if omitted

        Returns:
            The new session. Its state is ``error`` if the source failed to start.
        """
        await self.stop_session()

        kind = source_kind or self.session_config.source_kind
        session = TranscriptionSession(session_id=new_session_id(), source_kind=kind)
        self.session = session
        logger.info(f"Starting session {session.session_id} ({kind.value})")

        self.channel = SessionChannel(session.session_id)
        self.channel.subscribe(STATUS, self.on_status_event)
        for observer in self.channel_observers:
            observer(self.channel)

        self._report(SessionState.CONNECTING, f"Connecting to {kind.value} source")

        self.pipeline = TranscriptPipeline(
            session_id=session.session_id,
            channel=self.channel,
            detector=self.detector,
            analyzer=self.analyzer,
            controller=self.controller,
            detection=self.detection,
            ai_settings=self.ai_settings,
            auto_trigger_on_detection=self.auto_trigger_on_detection,
        )
        self.pipeline.start()

        publisher = SegmentPublisher(self.channel)
        try:
            self.source = self.source_factory(kind, self.session_config, publisher, self.local_engine)
            self.handle = await self.source.start(session)
        except (SourceStartError, ValueError) as e:
            logger.error(f"Session {session.session_id} failed to start: {e}")
            self._report(SessionState.ERROR, str(e))
            self.source = None
            await self.pipeline.stop()
            return session

        return session

    def on_status_event(self, event: SessionStatusEvent) -> None:
        """Apply a status event from the session's channel."""
        if self.session is None or event.session_id != self.session.session_id:
            return
        self.session.state = event.state
        self.session.status_message = event.message
        log = logger.error if event.state is SessionState.ERROR else logger.info
        log(f"Session {event.session_id}: {event.state.value}" + (f" - {event.message}" if event.message else ""))

    async def stop_session(self) -> None:
        """Stop the active session and release every resource it owns."""
        if self.session is None:
            return

        session = self.session
        logger.info(f"Stopping session {session.session_id}")

        if self.source is not None and self.handle is not None:
            await self.source.stop(self.handle)
        if self.pipeline is not None:
            await self.pipeline.stop()
        self.controller.reset()

        if self.channel is not None:
            self._report(SessionState.IDLE, "Stopped")
            self.channel.close()

        session.state = SessionState.IDLE
        self.channel = None
        self.pipeline = None
        self.source = None
        self.handle = None

    async def wait_until_source_ends(self) -> None:
        """Wait for the source task to end and the pipeline to catch up."""
        if self.handle is not None and self.handle.task is not None:
            await asyncio.gather(self.handle.task, return_exceptions=True)
        if self.pipeline is not None:
            await self.pipeline.drain()

    def clear_transcript(self) -> None:
        """Clear segments, references and key points, and reset the live cue."""
        if self.pipeline is not None:
            self.pipeline.clear_transcript()
        else:
            self.controller.reset()

    def _report(self, state: SessionState, message: Optional[str] = None) -> None:
        self.channel.publish_status(SessionStatusEvent(
            session_id=self.session.session_id,
            state=state,
            message=message,
        ))
