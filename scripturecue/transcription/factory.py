"""Selects the segment source for a session."""

import logging
from typing import Optional

from ..models.session import SourceKind
from ..models.settings import SessionConfig
from .base import AbstractSegmentSource
from .local_source import LocalEngineSource, LocalTranscriptionEngine, ReplayTranscriptionEngine
from .publisher import SegmentPublisher
from .relay_source import BrowserRelaySource, RemoteRelaySource

logger = logging.getLogger(__name__)


def create_local_engine(config: SessionConfig) -> LocalTranscriptionEngine:
    """Create the configured local engine."""
    if config.engine != "replay":
        raise ValueError(f"Unknown local transcription engine: {config.engine}")
    if not config.transcript_path:
        raise ValueError("Replay engine requires transcription.transcript_path")
    return ReplayTranscriptionEngine(config.transcript_path, config.replay_word_delay_seconds)


def create_segment_source(
    kind: SourceKind,
    config: SessionConfig,
    publisher: SegmentPublisher,
    engine: Optional[LocalTranscriptionEngine] = None,
) -> AbstractSegmentSource:
    """Create the segment source variant for a session.

    Args:
        kind: Source variant, fixed for the session
        config: Session configuration
        publisher: Publisher of the session
        engine: Local engine override (local variant only)

    Returns:
        Unstarted segment source
    """
    logger.info(f"Creating {kind.value} segment source")

    if kind is SourceKind.LOCAL:
        return LocalEngineSource(engine or create_local_engine(config), publisher)
    if kind is SourceKind.BROWSER_RELAY:
        return BrowserRelaySource(
            config.browser_relay_port,
            config.relay_session_id,
            publisher,
            config.connect_timeout_seconds,
        )
    if kind is SourceKind.REMOTE_RELAY:
        return RemoteRelaySource(
            config.remote_host,
            config.remote_port,
            config.relay_session_id,
            publisher,
            config.connect_timeout_seconds,
        )
    raise ValueError(f"Unsupported source kind: {kind}")
