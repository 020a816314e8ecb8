"""Transcript pipeline: turns transcript events into surfaced references and key points."""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Set

from ..analysis.analyzer import ParaphraseResolver, TranscriptAnalyzer
from ..detection.detector import DirectReferenceDetector
from ..detection.parser import parse_reference
from ..detection.throttle import InterimThrottle, RecencyDeduplicator, unique_by_display_ref
from ..models.events import KeyPointsEvent, ReferencesEvent
from ..models.references import DetectedReference, now_ms
from ..models.settings import AISettings, DetectionSettings
from ..models.transcription import KeyPoint, ParaphrasedVerse, TranscriptEvent, TranscriptSegment
from ..transcription.publisher import SEGMENTS, SessionChannel
from .live_cue import LiveCueController

logger = logging.getLogger(__name__)


class TranscriptPipeline:
    """Consumes the segments topic of one session.

    The pubsub listener only enqueues; a single worker task processes events
    in arrival order. Direct parsing runs inline for every event. AI analysis
    runs in detached tasks whose results are discarded if the session stopped
    or the segment was cleared in the meantime.
    """

    def __init__(
        self,
        session_id: str,
        channel: SessionChannel,
        detector: DirectReferenceDetector,
        analyzer: TranscriptAnalyzer,
        controller: LiveCueController,
        detection: DetectionSettings,
        ai_settings: AISettings,
        auto_trigger_on_detection: bool = False,
    ):
        """Initialize transcript pipeline.

        Args:
            session_id: Session this pipeline belongs to
            channel: Session channel to consume and publish on
            detector: Direct reference detector
            analyzer: AI analyzer for the paraphrase / key point fallback
            controller: Live cue controller for auto-trigger
            detection: Parser, throttle and dedup settings
            ai_settings: AI feature and provider settings
            auto_trigger_on_detection: Put the first direct reference of a final segment live
        """
        self.session_id = session_id
        self.channel = channel
        self.detector = detector
        self.analyzer = analyzer
        self.resolver = ParaphraseResolver(detector)
        self.controller = controller
        self.detection = detection
        self.ai_settings = ai_settings
        self.auto_trigger_on_detection = auto_trigger_on_detection

        self.throttle = InterimThrottle(detection.interim_min_interval_ms, detection.interim_min_word_delta)
        self.deduplicator = RecencyDeduplicator(detection.recent_reference_window)

        # Session transcript state
        self.segments: List[TranscriptSegment] = []
        self.references: List[DetectedReference] = []
        self.key_points: Dict[str, List[KeyPoint]] = {}
        self.interim_text: Optional[str] = None
        self._segment_ids: Set[str] = set()

        self.active = False
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        """Subscribe to the segments topic and start the worker. Needs a running loop."""
        self._queue = asyncio.Queue()
        self.active = True
        self.channel.subscribe(SEGMENTS, self.on_segment_event)
        self._worker = asyncio.create_task(self._worker_loop(), name=f"pipeline-{self.session_id}")
        logger.info(f"TranscriptPipeline started for {self.session_id}")

    def on_segment_event(self, event: TranscriptEvent) -> None:
        """Pubsub listener: queue the event for the worker."""
        if not self.active:
            return
        self._queue.put_nowait(event)

    async def _worker_loop(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.process_event(event)
            except Exception as e:
                logger.error(f"Unhandled exception processing {event.kind.value} event: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def process_event(self, event: TranscriptEvent) -> None:
        if event.is_final:
            await self._handle_final(event)
        else:
            await self._handle_interim(event)

    async def _handle_interim(self, event: TranscriptEvent) -> None:
        self.interim_text = event.text
        if not self.detection.interim_detection_enabled:
            return
        if not self.throttle.should_parse(event.text, now_ms()):
            return

        references = await self.detector.detect(
            event.text, self.detection.aggressive_speech_normalization, is_final=False
        )
        # Interim detections are shown but never added to history or put live
        if self.throttle.accept(references):
            self.channel.publish_references(ReferencesEvent(
                session_id=self.session_id,
                references=references,
                is_interim=True,
            ))

    async def _handle_final(self, event: TranscriptEvent) -> None:
        self.interim_text = None
        self.throttle.reset()

        segment = event.segment or TranscriptSegment(
            id=f"seg_{uuid.uuid4().hex[:12]}",
            text=event.text,
            timestamp_ms=event.timestamp_ms,
        )
        if not segment.text.strip():
            return

        self.segments.append(segment)
        self._segment_ids.add(segment.id)

        if event.key_points:
            self._attach_key_points(segment, event.key_points)

        direct = await self.detector.detect(
            segment.text, self.detection.aggressive_speech_normalization, is_final=True
        )
        hinted = await self._resolve_reference_hints(event.scripture_references, segment.text)
        references = unique_by_display_ref(direct + hinted)

        if references:
            self._surface(segment, references)
            if self.auto_trigger_on_detection:
                # Presentation I/O must not hold up the segments behind this one
                self._spawn(self._auto_trigger(self.session_id, segment.id, references[0]), f"live-{segment.id}")
            return

        if event.paraphrased_verses:
            candidates = [
                v for v in event.paraphrased_verses
                if v.confidence >= self.ai_settings.paraphrase_confidence_threshold
            ]
            await self._surface_paraphrases(self.session_id, segment, candidates)
            return

        if self.ai_settings.analysis_enabled and self.ai_settings.analysis_provider().has_credential:
            self._spawn(self._analyze(self.session_id, segment), f"analysis-{segment.id}")

    async def _resolve_reference_hints(self, hints: List[str], transcript_text: str) -> List[DetectedReference]:
        resolved = []
        for hint in hints:
            parsed = parse_reference(hint)
            if parsed is None:
                logger.debug(f"Ignoring unparseable reference hint: {hint!r}")
                continue
            ref = await self.detector.resolve(parsed, transcript_text)
            if ref is not None:
                resolved.append(ref)
        return resolved

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Task {task.get_name()} failed: {task.exception()}", exc_info=task.exception())

    async def _auto_trigger(self, session_id: str, segment_id: str, ref: DetectedReference) -> None:
        if not self.is_current(session_id, segment_id):
            logger.debug(f"Skipping auto-trigger of {ref.display_ref}, segment {segment_id} is gone")
            return
        await self.controller.go_live(ref)

    async def _analyze(self, session_id: str, segment: TranscriptSegment) -> None:
        analysis = await self.analyzer.analyze(segment.text, self.ai_settings)
        if analysis.is_empty:
            logger.debug(f"Analysis found nothing in segment {segment.id}")
            return
        if not self.is_current(session_id, segment.id):
            logger.debug(f"Discarding stale analysis for segment {segment.id}")
            return

        if analysis.key_points:
            self._attach_key_points(segment, analysis.key_points)
        if analysis.paraphrased_verses:
            await self._surface_paraphrases(session_id, segment, analysis.paraphrased_verses)

    async def _surface_paraphrases(
        self,
        session_id: str,
        segment: TranscriptSegment,
        candidates: List[ParaphrasedVerse],
    ) -> None:
        resolved = await self.resolver.resolve(candidates, segment.text)
        if not self.is_current(session_id, segment.id):
            logger.debug(f"Discarding stale paraphrases for segment {segment.id}")
            return

        references = self.deduplicator.filter(unique_by_display_ref(resolved))
        if references:
            self._surface(segment, references)

    def is_current(self, session_id: str, segment_id: str) -> bool:
        """Stale-result guard for async continuations."""
        return self.active and session_id == self.session_id and segment_id in self._segment_ids

    def _surface(self, segment: TranscriptSegment, references: List[DetectedReference]) -> None:
        self.references.extend(references)
        self.deduplicator.record(references)
        logger.info(
            f"Detected {', '.join(r.display_ref for r in references)} "
            f"({references[0].source.value}) in segment {segment.id}"
        )
        self.channel.publish_references(ReferencesEvent(
            session_id=self.session_id,
            references=references,
            segment_id=segment.id,
        ))

    def _attach_key_points(self, segment: TranscriptSegment, key_points: List[KeyPoint]) -> None:
        self.key_points.setdefault(segment.id, []).extend(key_points)
        self.channel.publish_key_points(KeyPointsEvent(
            session_id=self.session_id,
            segment=segment,
            key_points=list(key_points),
        ))

    def clear_transcript(self) -> None:
        """Forget the session transcript and reset the live cue."""
        self.segments.clear()
        self._segment_ids.clear()
        self.references.clear()
        self.key_points.clear()
        self.interim_text = None
        self.throttle.reset()
        self.deduplicator.clear()
        self.detector.reset_context()
        self.controller.reset()
        logger.info(f"Transcript cleared for {self.session_id}")

    async def drain(self) -> None:
        """Wait until queued events, in-flight analysis and auto-triggers have finished."""
        if self._queue is not None:
            await self._queue.join()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Stop consuming and cancel the worker and in-flight background tasks."""
        self.active = False
        tasks = list(self._tasks)
        if self._worker is not None:
            tasks.append(self._worker)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._worker = None
        logger.info(f"TranscriptPipeline stopped for {self.session_id}")
