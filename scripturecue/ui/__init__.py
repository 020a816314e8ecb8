"""Console UI for Scripture Cue."""

from .console_view import ConsoleView

__all__ = ["ConsoleView"]
