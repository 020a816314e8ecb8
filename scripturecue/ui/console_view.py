"""Console view that prints session activity as it happens."""

import logging
from typing import Optional

from rich.console import Console
from rich.text import Text

from ..models.events import KeyPointsEvent, LiveCueEvent, ReferencesEvent, SessionStatusEvent
from ..models.references import ReferenceSource
from ..models.session import SessionState
from ..models.transcription import TranscriptEvent
from ..transcription.publisher import INTERIM_REFERENCES, KEY_POINTS, REFERENCES, SEGMENTS, STATUS, SessionChannel

logger = logging.getLogger(__name__)

STATE_STYLES = {
    SessionState.IDLE: "yellow",
    SessionState.CONNECTING: "blue",
    SessionState.WAITING_FOR_REMOTE: "blue",
    SessionState.RECORDING: "bold red",
    SessionState.ERROR: "bold red",
}


class ConsoleView:
    """Prints final segments, detections, key points and live cue changes."""

    def __init__(self, console: Optional[Console] = None, show_interim: bool = False):
        self.console = console or Console()
        self.show_interim = show_interim

    def attach(self, channel: SessionChannel) -> None:
        """Subscribe to every topic of a session channel."""
        channel.subscribe(SEGMENTS, self.on_segment)
        channel.subscribe(REFERENCES, self.on_references)
        channel.subscribe(INTERIM_REFERENCES, self.on_references)
        channel.subscribe(KEY_POINTS, self.on_key_points)
        channel.subscribe(STATUS, self.on_status)

    def on_segment(self, event: TranscriptEvent) -> None:
        if event.is_final:
            self.console.print(f"📝 {event.text}", markup=False)
        elif self.show_interim:
            self.console.print(f"   … {event.text}", style="dim", markup=False)

    def on_references(self, event: ReferencesEvent) -> None:
        for ref in event.references:
            line = Text()
            if event.is_interim:
                line.append("   ~ ", style="dim")
                line.append(ref.display_ref, style="dim cyan")
            else:
                line.append("📖 ")
                line.append(ref.display_ref, style="bold cyan")
                if ref.source is ReferenceSource.PARAPHRASE:
                    line.append(f" (paraphrase {ref.confidence:.0%})", style="magenta")
                if ref.is_navigation_result:
                    line.append(" (navigation)", style="dim")
                line.append(f"  {ref.verse_text}")
            self.console.print(line)

    def on_key_points(self, event: KeyPointsEvent) -> None:
        for kp in event.key_points:
            self.console.print(f"💡 [{kp.category.value}] {kp.text}", style="green", markup=False)

    def on_status(self, event: SessionStatusEvent) -> None:
        message = f" - {event.message}" if event.message else ""
        self.console.print(f"● {event.state.value.upper()}{message}", style=STATE_STYLES.get(event.state, ""), markup=False)

    def on_live_change(self, event: LiveCueEvent) -> None:
        if event.reference is not None and event.state.auto_clear_deadline_ms is None:
            self.console.print(f"🔴 LIVE: {event.reference.display_ref}", style="bold red")
        elif event.reference is None:
            self.console.print("⏹️  Live cue cleared", style="yellow")
