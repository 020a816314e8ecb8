"""Live cue state model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LiveCueState:
    """Snapshot of the live cue. At most one reference id is live."""
    live_reference_id: Optional[str] = None
    auto_clear_deadline_ms: Optional[int] = None

    @property
    def is_live(self) -> bool:
        return self.live_reference_id is not None


IDLE_STATE = LiveCueState()
