"""Output sink: plain-text files and presentation triggers."""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresentationTarget:
    """Slide to trigger on the presentation controller."""
    presentation_uuid: str
    slide_index: int = 0


@dataclass
class PresentationTriggerResult:
    """Outcome of triggering a slide on every selected connection."""
    success_count: int = 0
    fail_count: int = 0
    errors: List[str] = field(default_factory=list)


class OutputSink(Protocol):
    """Everything the live cue controller writes to."""

    async def write_text_to_file(self, path: str, content: str) -> bool:
        ...

    async def trigger_presentation(
        self,
        target: PresentationTarget,
        connection_ids: Optional[List[str]],
        click_count: int,
        inter_click_delay_ms: int,
    ) -> PresentationTriggerResult:
        ...


def write_text_atomic(path: str, content: str) -> None:
    """Replace ``path`` with ``content`` so readers never see a partial file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_path, target)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class LiveOutputSink:
    """Writes output files on a worker thread and forwards slide triggers."""

    def __init__(self, presentation_client=None):
        """Initialize the sink.

        Args:
            presentation_client: Optional ProPresenterClient; without one,
                presentation triggers are skipped
        """
        self.presentation_client = presentation_client

    async def write_text_to_file(self, path: str, content: str) -> bool:
        """Atomically overwrite a text file.

        Returns:
            True on success, False if the write failed (already logged)
        """
        try:
            await asyncio.to_thread(write_text_atomic, path, content)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write output file {path}: {e}")
            return False

        logger.debug(f"Wrote {len(content)} chars to {path}")
        return True

    async def trigger_presentation(
        self,
        target: PresentationTarget,
        connection_ids: Optional[List[str]],
        click_count: int,
        inter_click_delay_ms: int,
    ) -> PresentationTriggerResult:
        if self.presentation_client is None:
            logger.debug("No presentation client configured, skipping trigger")
            return PresentationTriggerResult()

        return await self.presentation_client.trigger_presentation(
            target, connection_ids, click_count, inter_click_delay_ms
        )
