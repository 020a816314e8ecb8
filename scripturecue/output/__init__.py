"""Output targets for the live cue."""

from .sink import (
    OutputSink,
    LiveOutputSink,
    PresentationTarget,
    PresentationTriggerResult,
    write_text_atomic,
)
from .propresenter import ProPresenterClient, ProPresenterError

__all__ = [
    "OutputSink",
    "LiveOutputSink",
    "PresentationTarget",
    "PresentationTriggerResult",
    "write_text_atomic",
    "ProPresenterClient",
    "ProPresenterError",
]
