"""Scripture Cue - live scripture detection and cueing for sermon transcripts."""

__version__ = "0.1.0"
