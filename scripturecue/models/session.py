"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """Lifecycle state of a transcription session."""
    IDLE = "idle"
    CONNECTING = "connecting"
    WAITING_FOR_REMOTE = "waiting_for_remote"
    RECORDING = "recording"
    ERROR = "error"


class SourceKind(Enum):
    """Transport used to receive transcript segments."""
    LOCAL = "local"
    BROWSER_RELAY = "browser_relay"
    REMOTE_RELAY = "remote_relay"


@dataclass
class TranscriptionSession:
    """One listening session. Only one is active at a time."""
    session_id: str
    source_kind: SourceKind
    state: SessionState = SessionState.IDLE
    started_at: datetime = field(default_factory=datetime.now)
    status_message: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.state in (
            SessionState.CONNECTING,
            SessionState.WAITING_FOR_REMOTE,
            SessionState.RECORDING,
        )
