"""Main application entry point for speak2image."""

import sys
import signal
import asyncio
import argparse
import logging
import logging.handlers
from pathlib import Path
from typing import Callable, Optional

from .audio.capture import AudioCapture
from .config import InstallationConfig
from .display.publisher import DisplayPublisher
from .errors import Speak2ImageError
from .generation.fetcher import ImageFetcher
from .generation.image_generation import ImageGenerationClient
from .generation.prompt import PromptBuilder
from .generation.transcription import TranscriptionClient
from .services.session_controller import SessionController, RecordingSettings
from .storage.file_manager import FileManager
from .storage.session_recorder import SessionRecorder
from .ui.console_display import ConsoleDisplay
from .ui.keyboard_input import KeyboardInputHandler, KEY_START, KEY_STOP, KEY_QUIT

logger = logging.getLogger(__name__)


class Installation:
    """Wires the controller to its collaborators and trigger sources."""

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        self.config = InstallationConfig(config_path)
        # Command line overrides config
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.exit_event: Optional[asyncio.Event] = None

    def init(self) -> None:
        logger.info("Initializing services...")
        api_key = self.config.get_api_key()
        api_timeout = float(self.config.get('timeouts.api'))
        base_url = self.config.get('openai.base_url')

        sample_rate = self.config.get('audio.sample_rate')
        chunk_size = self.config.get('audio.chunk_size')
        channels = self.config.get('audio.channels')
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        self.publisher = DisplayPublisher()
        self.display = ConsoleDisplay(self.publisher)
        self.controller = SessionController(
            capture_factory=lambda: AudioCapture(sample_rate=sample_rate,
                                                 chunk_size=chunk_size,
                                                 channels=channels),
            transcriber=TranscriptionClient(
                api_key,
                model=self.config.get('ai.transcription.model'),
                base_url=base_url,
                timeout_seconds=api_timeout,
            ),
            image_generator=ImageGenerationClient(
                api_key,
                model=self.config.get('ai.generation.model'),
                size=self.config.get('ai.generation.size'),
                quality=self.config.get('ai.generation.quality'),
                style=self.config.get('ai.generation.style'),
                base_url=base_url,
                timeout_seconds=api_timeout,
            ),
            fetcher=ImageFetcher(timeout_seconds=api_timeout),
            recorder=SessionRecorder(self.config.get('paths.transcription_file')),
            file_manager=FileManager(
                self.config.get('paths.recorded_audio_folder'),
                self.config.get('paths.generated_visuals_folder'),
            ),
            prompt_builder=PromptBuilder(
                self.config.get_prompt_template(),
                placeholder=self.config.get('ai.generation.placeholder'),
                silence_sentinels=self.config.get_silence_sentinels(),
            ),
            publisher=self.publisher,
            settings=RecordingSettings(
                audio_format=self.config.get('audio.format'),
                minimum_duration_seconds=float(self.config.get('audio.minimum_recording_length')),
                timeout_seconds=float(self.config.get('timeouts.recording')),
            ),
        )
        self.keyboard = KeyboardInputHandler(self.on_key)

    def on_key(self, key: str) -> bool:
        """Keyboard thread callback: hop onto the loop before touching the controller."""
        if key == KEY_QUIT:
            self.loop.call_soon_threadsafe(self.exit_event.set)
            return False
        if key == KEY_START:
            self.loop.call_soon_threadsafe(self._dispatch, self.controller.request_start)
        elif key == KEY_STOP:
            self.loop.call_soon_threadsafe(self._dispatch, self.controller.stop_and_generate)
        return True

    def _dispatch(self, operation: Callable[[], object]) -> None:
        try:
            operation()
        except Speak2ImageError as e:
            logger.warning(f"{operation.__name__} rejected: {e}")

    async def run(self) -> None:
        self.loop = asyncio.get_running_loop()
        self.exit_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM, getattr(signal, 'SIGQUIT', None)):
            if sig is None:
                continue
            try:
                self.loop.add_signal_handler(sig, self.exit_event.set)
            except NotImplementedError:
                # Windows event loops do not support signal handlers
                pass

        self.display.show_help()
        self.keyboard.start()
        try:
            await self.exit_event.wait()
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        logger.info("speak2image stopping")
        self.keyboard.stop()
        await self.controller.shutdown()
        logger.info("speak2image stopped")


def setup_logging(config: InstallationConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/speak2image.log')
    console_output = config.get('logging.console_output', True)
    backup_count = config.get('logging.backup_count', 60)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler, rotated daily
    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_file_path, when='midnight', backupCount=backup_count, encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s: %(name)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info(f"speak2image started (Python {sys.version.split()[0]})")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for speak2image."""
    parser = argparse.ArgumentParser(
        description="speak2image - speak, and see it drawn",
        epilog="Keys: 1=Start recording, 2=Stop recording, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="speak2image.yaml",
        help="Path to configuration YAML file (default: speak2image.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="speak2image v0.1.0"
    )

    args = parser.parse_args()

    try:
        installation = Installation(args.config, args.log_level)
        installation.init()
        asyncio.run(installation.run())
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)
    print("\n👋 Goodbye!")


if __name__ == "__main__":
    main()
