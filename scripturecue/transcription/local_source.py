"""Local transcription engine source and a transcript replay engine."""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, List, Optional, Protocol

from ..models.references import now_ms
from ..models.session import SessionState, SourceKind, TranscriptionSession
from ..models.transcription import TranscriptEvent, TranscriptKind, TranscriptSegment
from .base import AbstractSegmentSource, SourceHandle, SourceStartError
from .publisher import SegmentPublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineUpdate:
    """One hypothesis from a local speech-to-text engine."""
    text: str
    is_final: bool = False


class LocalTranscriptionEngine(Protocol):
    """A speech-to-text engine running in this process."""

    name: str

    async def connect(self) -> None:
        """Prepare the engine. Raises on failure."""
        ...

    def __aiter__(self) -> AsyncIterator[EngineUpdate]:
        ...

    async def close(self) -> None:
        ...


class ReplayTranscriptionEngine:
    """Replays a transcript file as if it were being spoken.

    Each non-empty line becomes one utterance: its words are emitted one at a
    time as interim updates, then the full line as a final update.
    """

    name = "replay"

    def __init__(self, transcript_path: str, word_delay_seconds: float = 0.05):
        """Initialize replay engine.

        Args:
            transcript_path: Text file, one utterance per line
            word_delay_seconds: Pause between interim updates
        """
        self.transcript_path = Path(transcript_path)
        self.word_delay_seconds = word_delay_seconds
        self.lines: List[str] = []
        self.closed = False

    async def connect(self) -> None:
        if not self.transcript_path.exists():
            raise FileNotFoundError(f"Transcript file not found: {self.transcript_path}")
        content = await asyncio.to_thread(self.transcript_path.read_text, encoding='utf-8')
        self.lines = [line.strip() for line in content.splitlines() if line.strip()]
        logger.info(f"Replay engine loaded {len(self.lines)} utterances from {self.transcript_path}")

    async def __aiter__(self) -> AsyncIterator[EngineUpdate]:
        for line in self.lines:
            words = line.split()
            for i in range(1, len(words)):
                if self.closed:
                    return
                yield EngineUpdate(text=" ".join(words[:i]), is_final=False)
                await asyncio.sleep(self.word_delay_seconds)
            if self.closed:
                return
            yield EngineUpdate(text=line, is_final=True)
            await asyncio.sleep(self.word_delay_seconds)

    async def close(self) -> None:
        self.closed = True


class LocalEngineSource(AbstractSegmentSource):
    """Drives a LocalTranscriptionEngine and publishes its updates."""

    source_kind = SourceKind.LOCAL

    def __init__(self, engine: LocalTranscriptionEngine, publisher: SegmentPublisher):
        super().__init__(publisher)
        self.engine = engine

    async def start(self, session: TranscriptionSession) -> SourceHandle:
        try:
            await self.engine.connect()
        except (OSError, ValueError) as e:
            raise SourceStartError(f"Local engine '{self.engine.name}' failed to start: {e}") from e

        self.report_status(SessionState.RECORDING, f"Listening with {self.engine.name}")
        handle = SourceHandle(session_id=session.session_id, source_kind=self.source_kind)
        handle.task = asyncio.create_task(self._run(), name=f"local-source-{session.session_id}")
        return handle

    async def _run(self) -> None:
        try:
            async for update in self.engine:
                event = self.build_event(update)
                if event is not None:
                    self.publisher.publish_event(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Local engine '{self.engine.name}' failed: {e}", exc_info=True)
            self.report_status(SessionState.ERROR, f"Transcription engine failed: {e}")
            return

        logger.info(f"Local engine '{self.engine.name}' finished")

    def build_event(self, update: EngineUpdate) -> Optional[TranscriptEvent]:
        """Convert an engine update into a TranscriptEvent; None for blank text."""
        text = update.text.strip()
        if not text:
            return None

        timestamp = now_ms()
        if not update.is_final:
            return TranscriptEvent(
                kind=TranscriptKind.INTERIM,
                text=text,
                timestamp_ms=timestamp,
                engine=self.engine.name,
            )

        return TranscriptEvent(
            kind=TranscriptKind.FINAL,
            text=text,
            timestamp_ms=timestamp,
            engine=self.engine.name,
            segment=TranscriptSegment(
                id=f"seg_{uuid.uuid4().hex[:12]}",
                text=text,
                timestamp_ms=timestamp,
            ),
        )

    async def stop(self, handle: SourceHandle) -> None:
        self.stopping = True
        await self.engine.close()
        await self._cancel_task(handle)
        logger.info(f"Local source stopped for {handle.session_id}")
