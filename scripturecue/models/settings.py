"""Typed settings built from the YAML configuration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .session import SourceKind


@dataclass
class SessionConfig:
    """How to receive transcript segments for a session."""
    source_kind: SourceKind = SourceKind.LOCAL
    engine: str = "replay"
    relay_session_id: str = "live"
    browser_relay_port: int = 9876
    remote_host: str = ""
    remote_port: int = 9876
    connect_timeout_seconds: float = 10.0
    transcript_path: Optional[str] = None
    replay_word_delay_seconds: float = 0.05


@dataclass
class DetectionSettings:
    """Parser, throttle and dedup tuning."""
    aggressive_speech_normalization: bool = True
    interim_detection_enabled: bool = True
    interim_min_interval_ms: int = 150
    interim_min_word_delta: int = 2
    recent_reference_window: int = 5


@dataclass
class ProviderConfig:
    """AI provider selection and credential."""
    provider: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None

    @property
    def has_credential(self) -> bool:
        return bool(self.provider) and bool(self.api_key)


@dataclass
class AISettings:
    """AI paraphrase detection, key point extraction and search."""
    default_provider: Optional[str] = None
    api_keys: Dict[str, str] = field(default_factory=dict)
    analysis_model: Optional[str] = None
    enable_paraphrase_detection: bool = True
    enable_key_point_extraction: bool = False
    key_point_instructions: str = ""
    paraphrase_confidence_threshold: float = 0.6
    min_word_count: int = 6
    enable_ai_search: bool = False
    search_provider: Optional[str] = None
    search_model: Optional[str] = None

    def analysis_provider(self) -> ProviderConfig:
        provider = self.default_provider
        return ProviderConfig(
            provider=provider,
            api_key=self.api_keys.get(provider) if provider else None,
            model=self.analysis_model,
        )

    def search_provider_config(self) -> ProviderConfig:
        provider = self.search_provider or self.default_provider
        return ProviderConfig(
            provider=provider,
            api_key=self.api_keys.get(provider) if provider else None,
            model=self.search_model,
        )

    @property
    def analysis_enabled(self) -> bool:
        return self.enable_paraphrase_detection or self.enable_key_point_extraction


@dataclass
class ProPresenterConnection:
    """One presentation controller endpoint."""
    id: str
    api_url: str
    name: str = ""
    enabled: bool = True


@dataclass
class PresentationActivation:
    """Slide to trigger when a reference goes live or is taken off."""
    presentation_uuid: str
    slide_index: int = 0
    activation_clicks: int = 1
    take_off_clicks: int = 0
    clear_text_file_on_take_off: bool = True
    inter_click_delay_ms: int = 100


@dataclass
class LiveCueSettings:
    """Output file targets and auto-clear behaviour."""
    output_path: Optional[str] = None
    text_file_name: Optional[str] = None
    reference_file_name: Optional[str] = None
    auto_trigger_on_detection: bool = False
    clear_text_after_live: bool = True
    clear_text_delay_ms: int = 0
    activation: Optional[PresentationActivation] = None
    connection_ids: List[str] = field(default_factory=list)

    @property
    def text_file_path(self) -> Optional[str]:
        if self.output_path and self.text_file_name:
            return str(Path(self.output_path) / self.text_file_name)
        return None

    @property
    def reference_file_path(self) -> Optional[str]:
        if self.output_path and self.reference_file_name:
            return str(Path(self.output_path) / self.reference_file_name)
        return None

    @property
    def clear_on_take_off(self) -> bool:
        if self.activation is None:
            return True
        return self.activation.clear_text_file_on_take_off
