"""YAML configuration loader for Scripture Cue."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
import logging

from ..models.session import SourceKind
from ..models.settings import (
    SessionConfig,
    DetectionSettings,
    AISettings,
    LiveCueSettings,
    PresentationActivation,
    ProPresenterConnection,
)

logger = logging.getLogger(__name__)

DEFAULT_KEY_POINT_INSTRUCTIONS = (
    "Extract 1-2 concise, quotable key points suitable for slides/lower-thirds. "
    "Prefer short sentences, avoid filler, keep the original voice, and skip vague statements."
)


class ScriptureCueConfig:
    """Scripture Cue configuration loader."""

    # Keys holding paths that are resolved relative to the config file
    PATH_KEYS = (
        'logging.file_path',
        'live.output_path',
        'corpus.verses_path',
        'transcription.transcript_path',
    )

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file
        """
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration root must be a mapping")

        self.config = config
        self._resolve_paths()

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent
        for key_path in self.PATH_KEYS:
            value = self.get(key_path)
            if value and not os.path.isabs(value):
                self.set(key_path, str(config_dir / value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'ai.default_provider').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'live.clear_text_delay_ms')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict or not isinstance(config_dict[key], dict):
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_session_config(self, source_override: Optional[str] = None) -> SessionConfig:
        """Build the transcript source configuration."""
        source = source_override or self.get('transcription.source', 'local')
        try:
            source_kind = SourceKind(source)
        except ValueError:
            raise ValueError(f"Unknown transcription source: {source}")

        return SessionConfig(
            source_kind=source_kind,
            engine=self.get('transcription.engine', 'replay'),
            relay_session_id=str(self.get('transcription.relay.session_id', 'live')),
            browser_relay_port=int(self.get('transcription.relay.browser_port', 9876)),
            remote_host=self.get('transcription.relay.remote_host', '') or '',
            remote_port=int(self.get('transcription.relay.remote_port', 9876)),
            connect_timeout_seconds=float(self.get('transcription.relay.connect_timeout_seconds', 10.0)),
            transcript_path=self.get('transcription.transcript_path'),
            replay_word_delay_seconds=float(self.get('transcription.replay_word_delay_seconds', 0.05)),
        )

    def get_detection_settings(self) -> DetectionSettings:
        """Build parser/throttle/dedup settings."""
        return DetectionSettings(
            aggressive_speech_normalization=bool(self.get('detection.aggressive_speech_normalization', True)),
            interim_detection_enabled=bool(self.get('detection.interim_detection_enabled', True)),
            interim_min_interval_ms=int(self.get('detection.interim_min_interval_ms', 150)),
            interim_min_word_delta=int(self.get('detection.interim_min_word_delta', 2)),
            recent_reference_window=int(self.get('detection.recent_reference_window', 5)),
        )

    def get_ai_settings(self) -> AISettings:
        """Build AI provider settings. API keys may come from the environment."""
        api_keys = {}
        for provider in ('openai', 'groq', 'gemini'):
            key = self.get(f'ai.api_keys.{provider}') or os.environ.get(f'{provider.upper()}_API_KEY')
            if key:
                api_keys[provider] = key

        return AISettings(
            default_provider=self.get('ai.default_provider'),
            api_keys=api_keys,
            analysis_model=self.get('ai.analysis_model'),
            enable_paraphrase_detection=bool(self.get('ai.enable_paraphrase_detection', True)),
            enable_key_point_extraction=bool(self.get('ai.enable_key_point_extraction', False)),
            key_point_instructions=self.get('ai.key_point_instructions', DEFAULT_KEY_POINT_INSTRUCTIONS),
            paraphrase_confidence_threshold=float(self.get('ai.paraphrase_confidence_threshold', 0.6)),
            min_word_count=int(self.get('ai.min_word_count', 6)),
            enable_ai_search=bool(self.get('ai.enable_ai_search', False)),
            search_provider=self.get('ai.search_provider'),
            search_model=self.get('ai.search_model'),
        )

    def get_live_cue_settings(self) -> LiveCueSettings:
        """Build output file and presentation trigger settings."""
        activation = None
        presentation = self.get('live.presentation')
        if presentation and presentation.get('presentation_uuid'):
            activation = PresentationActivation(
                presentation_uuid=presentation['presentation_uuid'],
                slide_index=int(presentation.get('slide_index', 0)),
                activation_clicks=int(presentation.get('activation_clicks', 1)),
                take_off_clicks=int(presentation.get('take_off_clicks', 0)),
                clear_text_file_on_take_off=bool(presentation.get('clear_text_file_on_take_off', True)),
                inter_click_delay_ms=int(presentation.get('inter_click_delay_ms', 100)),
            )

        return LiveCueSettings(
            output_path=self.get('live.output_path'),
            text_file_name=self.get('live.text_file_name'),
            reference_file_name=self.get('live.reference_file_name'),
            auto_trigger_on_detection=bool(self.get('live.auto_trigger_on_detection', False)),
            clear_text_after_live=bool(self.get('live.clear_text_after_live', True)),
            clear_text_delay_ms=int(self.get('live.clear_text_delay_ms', 0)),
            activation=activation,
            connection_ids=list(self.get('live.connection_ids', []) or []),
        )

    def get_propresenter_connections(self) -> List[ProPresenterConnection]:
        """Presentation controller endpoints."""
        connections = []
        for entry in self.get('propresenter.connections', []) or []:
            if not entry.get('api_url'):
                logger.warning(f"Skipping ProPresenter connection without api_url: {entry}")
                continue
            connections.append(ProPresenterConnection(
                id=str(entry.get('id') or entry['api_url']),
                api_url=entry['api_url'].rstrip('/'),
                name=entry.get('name', ''),
                enabled=bool(entry.get('enabled', True)),
            ))
        return connections

    def get_verses_path(self) -> str:
        """Get verse corpus JSON path - CRASHES if not found."""
        verses_path = self.get('corpus.verses_path')
        if not verses_path:
            raise ValueError("Verse corpus path not configured (corpus.verses_path)")

        verses_file = Path(verses_path)
        if not verses_file.exists():
            raise FileNotFoundError(f"Verse corpus file not found: {verses_path}")

        return str(verses_file.absolute())
