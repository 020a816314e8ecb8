"""Main application entry point for Scripture Cue."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from .analysis.analyzer import TranscriptAnalyzer
from .config import ScriptureCueConfig
from .corpus.json_corpus import JsonVerseCorpus
from .detection.detector import DirectReferenceDetector
from .models.session import SessionState, SourceKind
from .output.propresenter import ProPresenterClient
from .output.sink import LiveOutputSink
from .services.live_cue import LiveCueController
from .services.search_service import ScriptureLookupService, SearchCascade
from .services.session_manager import SessionManager
from .ui.console_view import ConsoleView

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        # Load configuration
        self.config = ScriptureCueConfig(config_path)
        # Set up logging (command line overrides config)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))

    def init(self, transcript_path: Optional[str] = None) -> None:
        logger.info("Initializing services...")

        if transcript_path:
            self.config.set('transcription.transcript_path', str(Path(transcript_path).absolute()))

        self.session_config = self.config.get_session_config()
        self.detection = self.config.get_detection_settings()
        self.ai_settings = self.config.get_ai_settings()
        self.live_settings = self.config.get_live_cue_settings()

        self.corpus = JsonVerseCorpus(self.config.get_verses_path())
        self.detector = DirectReferenceDetector(self.corpus)
        self.analyzer = TranscriptAnalyzer(self.detector)

        connections = self.config.get_propresenter_connections()
        presentation_client = ProPresenterClient(connections) if connections else None
        self.sink = LiveOutputSink(presentation_client)

        self.view = ConsoleView(show_interim=bool(self.config.get('ui.show_interim', False)))
        self.controller = LiveCueController(self.sink, self.live_settings, on_change=self.view.on_live_change)

        self.session_manager = SessionManager(
            session_config=self.session_config,
            detection=self.detection,
            ai_settings=self.ai_settings,
            detector=self.detector,
            analyzer=self.analyzer,
            controller=self.controller,
            auto_trigger_on_detection=self.live_settings.auto_trigger_on_detection,
        )
        self.session_manager.channel_observers.append(self.view.attach)

        self.search_cascade = SearchCascade(self.detector, self.analyzer, self.corpus, self.ai_settings)
        self.lookup = ScriptureLookupService(self.detector, self.corpus, self.controller)

        logger.info(
            f"Services ready: source={self.session_config.source_kind.value}, "
            f"ai_provider={self.ai_settings.default_provider or 'none'}, "
            f"propresenter_connections={len(connections)}"
        )

    async def run(self, source_kind: Optional[SourceKind] = None) -> int:
        """Run one session until the source ends or the process is interrupted."""
        try:
            session = await self.session_manager.start_session(source_kind)
            if session.state is SessionState.ERROR:
                return 1
            await self.session_manager.wait_until_source_ends()
            return 1 if session.state is SessionState.ERROR else 0
        finally:
            await self.cleanup()

    async def search(self, query: str) -> int:
        result = await self.search_cascade.search(query)
        self.view.console.print(f"Search '{query}' ({result.method.value})", style="bold")
        if not result.references:
            self.view.console.print(result.error or "No results", style="yellow")
            return 1
        for ref in result.references:
            self.view.console.print(f"📖 {ref.display_ref}  {ref.verse_text}", markup=False)
        return 0

    async def go_live(self, query: str) -> int:
        try:
            ref = await self.lookup.go_live_query(query)
            if ref is None:
                self.view.console.print(f"No verse found for '{query}'", style="yellow")
                return 1
            return 0
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        await self.session_manager.stop_session()
        self.controller.reset()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/scripture_cue.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("Scripture Cue starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for Scripture Cue."""
    parser = argparse.ArgumentParser(
        description="Scripture Cue - live scripture detection for sermon transcripts",
    )

    parser.add_argument(
        "--config",
        type=str,
        default="scripture_cue.yaml",
        help="Path to configuration YAML file (default: scripture_cue.yaml)"
    )

    parser.add_argument(
        "--source",
        type=str,
        choices=[kind.value for kind in SourceKind],
        help="Transcript source (overrides config)"
    )

    parser.add_argument(
        "--transcript",
        type=str,
        help="Transcript file for the replay engine (overrides config)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--search",
        type=str,
        metavar="QUERY",
        help="Run one scripture search and exit"
    )
    action.add_argument(
        "--go-live",
        type=str,
        metavar="QUERY",
        help="Put the first verse matching QUERY live and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Scripture Cue v0.1.0"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(args.transcript)
        if args.search:
            exit_code = asyncio.run(server.search(args.search))
        elif args.go_live:
            exit_code = asyncio.run(server.go_live(args.go_live))
        else:
            source_kind = SourceKind(args.source) if args.source else None
            exit_code = asyncio.run(server.run(source_kind))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
