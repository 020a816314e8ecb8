"""Abstract base class for transcript segment sources."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional
import logging

from ..models.events import SessionStatusEvent
from ..models.session import SessionState, SourceKind, TranscriptionSession
from .publisher import SegmentPublisher

logger = logging.getLogger(__name__)


class SourceStartError(Exception):
    """A segment source could not be started."""


@dataclass
class SourceHandle:
    """Running source for one session."""
    session_id: str
    source_kind: SourceKind
    task: Optional[asyncio.Task] = None
    transport: Any = field(default=None, repr=False)

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.done()


class AbstractSegmentSource(ABC):
    """Delivers TranscriptEvents for one session through its SegmentPublisher."""

    source_kind: SourceKind

    def __init__(self, publisher: SegmentPublisher):
        """Initialize source with the publisher of the session it serves."""
        self.publisher = publisher
        self.stopping = False

    @abstractmethod
    async def start(self, session: TranscriptionSession) -> SourceHandle:
        """Connect the transport and start delivering events.

        Args:
            session: Session this source serves

        Returns:
            Handle whose task runs until the source ends

        Raises:
            SourceStartError: If the transport cannot be started
        """
        pass

    @abstractmethod
    async def stop(self, handle: SourceHandle) -> None:
        """Tear down the transport. Safe to call more than once."""
        pass

    def report_status(self, state: SessionState, message: Optional[str] = None) -> None:
        self.publisher.publish_status(SessionStatusEvent(
            session_id=self.publisher.session_id,
            state=state,
            message=message,
        ))

    async def _cancel_task(self, handle: SourceHandle) -> None:
        task = handle.task
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
