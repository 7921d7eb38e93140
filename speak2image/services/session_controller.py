"""Session controller: drives one visitor interaction from recording to log row.

The controller is a small state machine::

    IDLE -> RECORDING -> STOPPED -> TRANSCRIBING -> GENERATING -> DOWNLOADING -> IDLE

All transitions happen on the asyncio loop thread. Trigger sources running on
other threads (keyboard, signal handlers) must hop onto the loop with
``loop.call_soon_threadsafe``; the state checks in the public operations are
then the only synchronization needed.
"""

import time
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from ..audio.capture import AudioCapture
from ..display.publisher import DisplayPublisher
from ..errors import (
    ConcurrentSessionError,
    NotRecordingError,
    RecordingTooShortError,
    RemoteServiceError,
    PolicyRejectionError,
    DownloadError,
)
from ..generation.base import TranscriptionBackend, ImageGenerationBackend
from ..generation.fetcher import ImageFetcher
from ..generation.prompt import PromptBuilder
from ..models.events import ControllerState, HardwareEdge
from ..models.session import Session
from ..storage.file_manager import FileManager, generate_session_id
from ..storage.session_recorder import SessionRecorder

logger = logging.getLogger(__name__)


@dataclass
class RecordingSettings:
    """Recording limits applied by the controller."""
    audio_format: str = "wav"
    minimum_duration_seconds: float = 1.5
    timeout_seconds: float = 30.0


class SessionController:
    """Orchestrates capture, transcription, generation, download and logging."""

    def __init__(self,
                 capture_factory: Callable[[], AudioCapture],
                 transcriber: TranscriptionBackend,
                 image_generator: ImageGenerationBackend,
                 fetcher: ImageFetcher,
                 recorder: SessionRecorder,
                 file_manager: FileManager,
                 prompt_builder: PromptBuilder,
                 publisher: DisplayPublisher,
                 settings: Optional[RecordingSettings] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize session controller.

        Args:
            capture_factory: Returns a fresh AudioCapture for each session
            transcriber: Speech-to-text backend
            image_generator: Image generation backend
            fetcher: Downloads generated images
            recorder: Audit log writer
            file_manager: Resolves artifact paths
            prompt_builder: Template substitution and silence detection
            publisher: Visual-state signal sink
            settings: Recording limits
            clock: Monotonic clock used for all durations
        """
        self.capture_factory = capture_factory
        self.transcriber = transcriber
        self.image_generator = image_generator
        self.fetcher = fetcher
        self.recorder = recorder
        self.file_manager = file_manager
        self.prompt_builder = prompt_builder
        self.publisher = publisher
        self.settings = settings or RecordingSettings()
        self.clock = clock

        self._state = ControllerState.IDLE
        self._capture: Optional[AudioCapture] = None
        self._session: Optional[Session] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._generation_task: Optional[asyncio.Task] = None
        self.current_image_path: Optional[str] = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is ControllerState.RECORDING

    @property
    def is_generating(self) -> bool:
        return self._state.is_generating

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    @property
    def generation_task(self) -> Optional[asyncio.Task]:
        return self._generation_task

    @property
    def has_recording_timeout(self) -> bool:
        return self._timeout_handle is not None

    def request_start(self) -> Session:
        """Open a new recording session.

        Must be called on the event loop thread.

        Returns:
            The new session

        Raises:
            ConcurrentSessionError: If a session is recording or generating
        """
        if self._state is not ControllerState.IDLE:
            raise ConcurrentSessionError(f"Cannot start a recording while {self._state.value}")

        loop = asyncio.get_running_loop()
        session_id = generate_session_id()
        audio_path = self.file_manager.audio_path(session_id, self.settings.audio_format)

        capture = self.capture_factory()
        capture.open(audio_path, self.settings.audio_format)

        self._capture = capture
        self._session = Session(id=session_id, audio_path=str(audio_path),
                                recording_started_at=self.clock())
        self._state = ControllerState.RECORDING
        self._timeout_handle = loop.call_later(self.settings.timeout_seconds,
                                               self.on_recording_timeout_fired)

        logger.info(f"Session {session_id} recording (timeout {self.settings.timeout_seconds}s)")
        self.publisher.recording_started(session_id)
        return self._session

    def request_stop(self) -> Path:
        """Close the open recording.

        Returns:
            Path of the finished audio file, to be passed to generate()

        Raises:
            NotRecordingError: If no recording is open
            RecordingTooShortError: If the recording was discarded for being too short
        """
        if self._state is not ControllerState.RECORDING:
            raise NotRecordingError(f"Cannot stop a recording while {self._state.value}")

        self.cancel_recording_timeout()
        session = self._session
        capture = self._capture
        self._capture = None
        try:
            capture.close()
        except Exception:
            logger.error(f"Failed to close capture for session {session.id}", exc_info=True)
            self.file_manager.discard(session.audio_path)
            self._session = None
            self._state = ControllerState.IDLE
            raise
        session.recording_stopped_at = self.clock()

        duration = session.audio_duration_seconds
        logger.info(f"Session {session.id} recorded {duration:.2f}s "
                    f"(capture reports {capture.elapsed():.2f}s)")
        self.publisher.recording_stopped(session.id)

        if duration < self.settings.minimum_duration_seconds:
            self.file_manager.discard(session.audio_path)
            self._session = None
            self._state = ControllerState.IDLE
            raise RecordingTooShortError(duration, self.settings.minimum_duration_seconds)

        self._state = ControllerState.STOPPED
        return Path(session.audio_path)

    async def generate(self, audio_path: Union[str, Path]) -> Session:
        """Run transcription, image generation and download for the stopped session.

        Stage failures are logged and end the pipeline early. Whatever the
        outcome, one log row is written, the controller returns to IDLE and
        one generation_ended signal is published.

        Returns:
            The finished session

        Raises:
            ConcurrentSessionError: If a generation is already running
            NotRecordingError: If there is no stopped recording to generate from
        """
        if self._state.is_generating:
            raise ConcurrentSessionError("A generation is already in progress")
        if self._state is not ControllerState.STOPPED:
            raise NotRecordingError(f"No finished recording to generate from ({self._state.value})")

        session = self._session
        self._state = ControllerState.TRANSCRIBING
        self.publisher.generation_started(session.id)
        try:
            await self._run_pipeline(session, Path(audio_path))
        finally:
            self._finish(session)
        return session

    async def _run_pipeline(self, session: Session, audio_path: Path) -> None:
        try:
            raw_transcript = await self.transcriber.transcribe(audio_path)
        except RemoteServiceError as e:
            logger.error(f"Transcription failed for session {session.id}: {e}")
            return

        transcript = self.prompt_builder.normalize(raw_transcript)
        logger.info(f"Transcript: {transcript}")
        if self.prompt_builder.is_silence(transcript):
            logger.info(f"No speech detected in session {session.id}, skipping image generation")
            return
        session.transcript = transcript
        session.prompt = self.prompt_builder.build(transcript)

        self._state = ControllerState.GENERATING
        session.generation_started_at = self.clock()
        try:
            session.image_url = await self.image_generator.generate(session.prompt)
        except PolicyRejectionError as e:
            logger.warning(f"Prompt rejected for session {session.id}: {e}")
            return
        except RemoteServiceError as e:
            logger.error(f"Image generation failed for session {session.id}: {e}")
            return
        session.generation_stopped_at = self.clock()
        logger.info(f"Image URL: {session.image_url}")

        self._state = ControllerState.DOWNLOADING
        image_path = self.file_manager.image_path(session.id)
        try:
            await self.fetcher.download(session.image_url, image_path)
        except DownloadError as e:
            logger.error(f"Image download failed for session {session.id}: {e}")
            return

        session.image_local_path = str(image_path)
        self.current_image_path = session.image_local_path
        self.publisher.image_updated(session.id, session.image_local_path)

    def _finish(self, session: Session) -> None:
        try:
            self.recorder.append(session)
        except OSError as e:
            logger.error(f"Could not log session {session.id}: {e}")
        self._session = None
        self._state = ControllerState.IDLE
        logger.info(f"Session {session.id} finished "
                    f"(generation {session.generation_duration_seconds:.2f}s)")
        self.publisher.generation_ended(session.id)

    def stop_and_generate(self) -> Optional[asyncio.Task]:
        """Stop the recording and schedule generation on the running loop.

        Returns:
            The generation task, or None if the recording was too short

        Raises:
            NotRecordingError: If no recording is open
        """
        try:
            audio_path = self.request_stop()
        except RecordingTooShortError as e:
            logger.warning(f"Recording discarded: {e}")
            return None

        task = asyncio.get_running_loop().create_task(self.generate(audio_path))
        task.add_done_callback(self._on_generation_done)
        self._generation_task = task
        return task

    @staticmethod
    def _on_generation_done(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Generation task was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Generation failed unexpectedly: {error}", exc_info=error)

    def on_hardware_trigger(self, edge: HardwareEdge) -> Optional[asyncio.Task]:
        """Handle a debounced push-button edge.

        Pressing starts a recording when idle; releasing stops it and
        generates. Edges that do not apply to the current state are ignored.
        """
        if edge is HardwareEdge.ASSERTED:
            if self._state is not ControllerState.IDLE:
                logger.info(f"Button pressed while {self._state.value}, ignored")
                return None
            self.request_start()
            return None

        if self._state is not ControllerState.RECORDING:
            logger.debug(f"Button released while {self._state.value}, ignored")
            return None
        return self.stop_and_generate()

    def on_recording_timeout_fired(self) -> Optional[asyncio.Task]:
        """Auto-stop a recording that reached the configured timeout."""
        self.cancel_recording_timeout()
        if self._state is not ControllerState.RECORDING:
            logger.debug("Recording timeout fired after the recording stopped, ignored")
            return None

        logger.info(f"Recording timeout of {self.settings.timeout_seconds}s reached")
        return self.stop_and_generate()

    def cancel_recording_timeout(self) -> bool:
        """Cancel the armed recording timeout.

        Returns:
            True if a live timeout was cancelled
        """
        if self._timeout_handle is None:
            return False
        self._timeout_handle.cancel()
        self._timeout_handle = None
        return True

    async def shutdown(self) -> None:
        """Release the capture device and wait for a running generation."""
        self.cancel_recording_timeout()
        if self._state is ControllerState.RECORDING:
            session = self._session
            capture = self._capture
            self._capture = None
            self._session = None
            self._state = ControllerState.IDLE
            capture.close()
            self.file_manager.discard(session.audio_path)
            logger.info(f"Abandoned recording of session {session.id}")

        if self._generation_task is not None and not self._generation_task.done():
            logger.info("Waiting for the running generation to finish")
            await asyncio.wait([self._generation_task])
