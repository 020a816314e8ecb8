"""Wire message models exchanged with transcription relays."""

import logging
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .transcription import (
    KeyPoint,
    KeyPointCategory,
    ParaphrasedVerse,
    TranscriptEvent,
    TranscriptKind,
    TranscriptSegment,
)

logger = logging.getLogger(__name__)


class WireSegment(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    text: str
    timestamp: float
    is_final: bool = Field(default=True, alias="isFinal")


class WireKeyPoint(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str
    category: str


class WireParaphrasedVerse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    reference: str
    confidence: float = Field(ge=0.0, le=1.0)
    matched_phrase: str = Field(default="", alias="matchedPhrase")


_HINT_MODELS = {
    "key_points": WireKeyPoint,
    "paraphrased_verses": WireParaphrasedVerse,
}


class JoinSessionMessage(BaseModel):
    """Handshake sent by a relay client before stream messages."""
    type: Literal["join_session"] = "join_session"
    session_id: str
    client_type: Literal["notepad", "viewer"] = "viewer"


class TranscriptionStreamMessage(BaseModel):
    """One interim or final transcript update relayed over WebSocket."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["transcription_stream"]
    kind: Literal["interim", "final"]
    timestamp: float
    engine: str = "unknown"
    text: str
    audio_level: Optional[float] = None
    segment: Optional[WireSegment] = None
    scripture_references: List[str] = Field(default_factory=list)
    key_points: List[WireKeyPoint] = Field(default_factory=list)
    paraphrased_verses: List[WireParaphrasedVerse] = Field(default_factory=list)

    @field_validator("scripture_references", "key_points", "paraphrased_verses", mode="before")
    @classmethod
    def _drop_invalid_hints(cls, value: Any, info: ValidationInfo) -> Any:
        # A bad hint costs only itself, never the transcript text
        if value is None:
            return []
        if not isinstance(value, list):
            logger.debug(f"Ignoring non-list {info.field_name} hint: {value!r}")
            return []

        model = _HINT_MODELS.get(info.field_name)
        kept = []
        for item in value:
            if model is None:
                if isinstance(item, str):
                    kept.append(item)
                else:
                    logger.debug(f"Dropping invalid {info.field_name} hint: {item!r}")
                continue
            try:
                kept.append(model.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Dropping invalid {info.field_name} hint: {e.error_count()} error(s)")
        return kept

    def to_event(self) -> TranscriptEvent:
        """Convert to the transport-agnostic event type.

        Key points with an unknown category are dropped.
        """
        segment = None
        if self.segment is not None:
            segment = TranscriptSegment(
                id=self.segment.id,
                text=self.segment.text,
                timestamp_ms=int(self.segment.timestamp),
                is_final=self.segment.is_final,
            )

        key_points = []
        for kp in self.key_points:
            try:
                key_points.append(KeyPoint(text=kp.text, category=KeyPointCategory(kp.category.lower())))
            except ValueError:
                continue

        return TranscriptEvent(
            kind=TranscriptKind(self.kind),
            text=self.text,
            timestamp_ms=int(self.timestamp),
            engine=self.engine,
            segment=segment,
            scripture_references=list(self.scripture_references),
            key_points=key_points,
            paraphrased_verses=[
                ParaphrasedVerse(
                    reference=pv.reference,
                    confidence=pv.confidence,
                    matched_phrase=pv.matched_phrase,
                )
                for pv in self.paraphrased_verses
            ],
        )
