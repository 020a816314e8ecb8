"""Transcript segment sources for Scripture Cue."""

from .publisher import SessionChannel, SegmentPublisher
from .base import AbstractSegmentSource, SourceHandle, SourceStartError
from .local_source import EngineUpdate, LocalEngineSource, LocalTranscriptionEngine, ReplayTranscriptionEngine
from .relay_source import BrowserRelaySource, RelaySegmentSource, RemoteRelaySource
from .factory import create_local_engine, create_segment_source

__all__ = [
    "SessionChannel",
    "SegmentPublisher",
    "AbstractSegmentSource",
    "SourceHandle",
    "SourceStartError",
    "EngineUpdate",
    "LocalEngineSource",
    "LocalTranscriptionEngine",
    "ReplayTranscriptionEngine",
    "RelaySegmentSource",
    "BrowserRelaySource",
    "RemoteRelaySource",
    "create_local_engine",
    "create_segment_source",
]
