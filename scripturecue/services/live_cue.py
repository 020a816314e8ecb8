"""Live cue controller: the single reference currently shown to the audience."""

import asyncio
import logging
from typing import Callable, Optional

from ..models.events import LiveCueEvent
from ..models.live import IDLE_STATE, LiveCueState
from ..models.references import DetectedReference, now_ms
from ..models.settings import LiveCueSettings
from ..output.sink import OutputSink, PresentationTarget

logger = logging.getLogger(__name__)


class LiveCueController:
    """Owns LiveCueState and mirrors it to the output files and presentation.

    State changes happen synchronously at the start of each operation; output
    I/O follows and never rolls the state back. File writes are serialized so
    they land in the order the operations were issued. At most one auto-clear
    timer is pending at any time.
    """

    def __init__(
        self,
        sink: OutputSink,
        settings: LiveCueSettings,
        on_change: Optional[Callable[[LiveCueEvent], None]] = None,
    ):
        """Initialize live cue controller.

        Args:
            sink: Output file writer and presentation trigger
            settings: Output targets and auto-clear behaviour
            on_change: Called with a LiveCueEvent after every state change
        """
        self.sink = sink
        self.settings = settings
        self.on_change = on_change
        self.state: LiveCueState = IDLE_STATE
        self.live_reference: Optional[DetectedReference] = None
        self._clear_task: Optional[asyncio.Task] = None
        self._write_lock = asyncio.Lock()

    @property
    def is_live(self) -> bool:
        return self.state.is_live

    @property
    def has_pending_clear(self) -> bool:
        return self._clear_task is not None and not self._clear_task.done()

    async def go_live(self, ref: DetectedReference) -> None:
        """Put a reference live, replacing whatever was live before."""
        self._cancel_clear_timer()
        self._set_state(LiveCueState(live_reference_id=ref.id), ref)
        logger.info(f"Going live: {ref.display_ref}")

        await self._write_outputs(ref.verse_text, ref.display_ref)

        activation = self.settings.activation
        if activation is not None:
            await self._trigger(activation.activation_clicks)

        delay_ms = self.settings.clear_text_delay_ms
        if not (self.settings.clear_text_after_live and delay_ms > 0 and self.settings.output_path):
            return
        # Another go_live or take_off may have run while we were writing
        if self.state.live_reference_id != ref.id:
            return

        # An overlapping go_live of the same reference may have armed one already
        self._cancel_clear_timer()
        self._set_state(LiveCueState(live_reference_id=ref.id, auto_clear_deadline_ms=now_ms() + delay_ms), ref)
        self._clear_task = asyncio.create_task(self._auto_clear(ref.id, delay_ms / 1000))
        logger.debug(f"Auto-clear armed for {ref.display_ref} in {delay_ms}ms")

    async def take_off_live(self) -> None:
        """Take the live reference off screen."""
        self._cancel_clear_timer()
        was_live = self.live_reference
        self._set_state(IDLE_STATE, None)
        logger.info(f"Taking off live: {was_live.display_ref if was_live else 'nothing live'}")

        if self.settings.clear_on_take_off:
            await self._write_outputs("", "")

        activation = self.settings.activation
        if activation is not None and activation.take_off_clicks > 0:
            await self._trigger(activation.take_off_clicks)

    def reset(self) -> None:
        """Cancel the pending timer and return to idle without touching outputs."""
        self._cancel_clear_timer()
        if self.state != IDLE_STATE or self.live_reference is not None:
            self._set_state(IDLE_STATE, None)

    async def _auto_clear(self, ref_id: str, delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)
        if self.state.live_reference_id != ref_id:
            return

        # Past this point the clear must finish; detach from the cancellable slot
        self._clear_task = None
        self._set_state(IDLE_STATE, None)
        logger.info("Auto-clear: live text cleared")
        await self._write_outputs("", "")

    def _cancel_clear_timer(self) -> None:
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
            logger.debug("Pending auto-clear cancelled")
        self._clear_task = None

    def _set_state(self, state: LiveCueState, ref: Optional[DetectedReference]) -> None:
        self.state = state
        self.live_reference = ref
        if self.on_change is not None:
            self.on_change(LiveCueEvent(state=state, reference=ref))

    async def _write_outputs(self, text: str, display_ref: str) -> None:
        targets = (
            (self.settings.text_file_path, text),
            (self.settings.reference_file_path, display_ref),
        )
        async with self._write_lock:
            for path, content in targets:
                if path is None:
                    continue
                try:
                    written = await self.sink.write_text_to_file(path, content)
                except Exception as e:
                    logger.error(f"Live output write raised for {path}: {e}")
                    written = False
                if not written:
                    logger.warning(f"Live output not updated: {path}")

    async def _trigger(self, click_count: int) -> None:
        activation = self.settings.activation
        target = PresentationTarget(activation.presentation_uuid, activation.slide_index)
        result = await self.sink.trigger_presentation(
            target,
            self.settings.connection_ids or None,
            click_count,
            activation.inter_click_delay_ms,
        )
        if result.fail_count:
            logger.warning(f"Presentation trigger failed on {result.fail_count} connection(s): {result.errors}")
