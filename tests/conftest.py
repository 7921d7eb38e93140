"""Pytest configuration and fixtures for speak2image tests."""

import csv
import time
import asyncio
import logging
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from pubsub import pub

from speak2image.display.publisher import (
    DisplayPublisher,
    RECORDING_STARTED,
    RECORDING_STOPPED,
    GENERATION_STARTED,
    GENERATION_ENDED,
    IMAGE_UPDATED,
)
from speak2image.errors import DownloadError
from speak2image.generation.base import TranscriptionBackend, ImageGenerationBackend
from speak2image.generation.prompt import PromptBuilder
from speak2image.services.session_controller import SessionController, RecordingSettings
from speak2image.storage.file_manager import FileManager
from speak2image.storage.session_recorder import SessionRecorder


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = 'Draw a single object that embodies "{QUOTE}" on a black background.'


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note
    
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t) * 0.5
    
    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()
        
        def slow_read(num_frames, exception_on_overflow=True):
            # A real stream blocks until a buffer is available
            time.sleep(0.01)
            return b'\x00' * 2048  # Silent audio
        
        mock_stream.read.side_effect = slow_read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None
        
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        
        mock_pyaudio_class.return_value = mock_pyaudio_instance
        
        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream,
            'slow_read': slow_read,
        }


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners subscribed by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def display_events():
    """Collect every visual-state signal as a (signal, payload) tuple."""
    events = []
    publisher = DisplayPublisher()
    
    def listener_for(signal):
        def on_signal(session_id):
            events.append((signal, session_id))
        return on_signal
    
    def on_image(session_id, image_path):
        events.append((IMAGE_UPDATED, image_path))
    
    listeners = [listener_for(s) for s in
                 (RECORDING_STARTED, RECORDING_STOPPED, GENERATION_STARTED, GENERATION_ENDED)]
    for signal, listener in zip(
            (RECORDING_STARTED, RECORDING_STOPPED, GENERATION_STARTED, GENERATION_ENDED), listeners):
        pub.subscribe(listener, publisher.topic(signal))
    pub.subscribe(on_image, publisher.topic(IMAGE_UPDATED))
    
    yield events


@pytest.fixture
def serve():
    """Run an aiohttp application on a local port for the duration of a block.
    
    Usage: ``async with serve(routes) as root_url: ...``
    """
    @asynccontextmanager
    async def _serve(routes):
        app = web.Application()
        app.add_routes(routes)
        server = TestServer(app)
        await server.start_server()
        try:
            yield str(server.make_url("/")).rstrip("/")
        finally:
            await server.close()
    
    return _serve


class FakeClock:
    """Manually advanced monotonic clock."""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCapture:
    """Stands in for AudioCapture: creates the file on open, no device."""
    
    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.path = None
        self.is_recording = False
        self.closed = False
        self.opened_at = None
        self.closed_at = None
    
    def open(self, path, audio_format="wav"):
        self.path = Path(path)
        self.path.write_bytes(b"RIFF\x00\x00\x00\x00WAVE")
        self.opened_at = self.clock()
        self.is_recording = True
    
    def close(self):
        self.closed_at = self.clock()
        self.is_recording = False
        self.closed = True
    
    def elapsed(self):
        end = self.closed_at if self.closed_at is not None else self.clock()
        return end - self.opened_at


class FakeTranscriber(TranscriptionBackend):
    def __init__(self):
        self.result = "  a red bicycle leaning against a fence\n"
        self.error = None
        self.gate = None
        self.calls = []
    
    async def transcribe(self, audio_path):
        self.calls.append(Path(audio_path))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeImageGenerator(ImageGenerationBackend):
    def __init__(self, clock: FakeClock, seconds: float = 4.0):
        self.clock = clock
        self.seconds = seconds
        self.url = "https://images.example.test/generated.png"
        self.error = None
        self.calls = []
    
    async def generate(self, prompt):
        self.calls.append(prompt)
        self.clock.advance(self.seconds)
        if self.error is not None:
            raise self.error
        return self.url


class FakeFetcher:
    def __init__(self):
        self.error = None
        self.calls = []
    
    async def download(self, url, dest_path):
        self.calls.append((url, Path(dest_path)))
        if self.error is not None:
            raise self.error
        Path(dest_path).write_bytes(b"\x89PNG\r\n\x1a\n")
        return Path(dest_path)


class ControllerHarness:
    """A SessionController wired to fakes, a real CSV log and real folders."""
    
    def __init__(self, data_dir: Path):
        self.clock = FakeClock()
        self.captures = []
        self.transcriber = FakeTranscriber()
        self.image_generator = FakeImageGenerator(self.clock)
        self.fetcher = FakeFetcher()
        self.file_manager = FileManager(data_dir / "recordings", data_dir / "images")
        self.log_path = data_dir / "transcripts.csv"
        self.recorder = SessionRecorder(self.log_path)
        self.prompt_builder = PromptBuilder(PROMPT_TEMPLATE, silence_sentinels=["Thank you for watching!"])
        self.controller = SessionController(
            capture_factory=self._new_capture,
            transcriber=self.transcriber,
            image_generator=self.image_generator,
            fetcher=self.fetcher,
            recorder=self.recorder,
            file_manager=self.file_manager,
            prompt_builder=self.prompt_builder,
            publisher=DisplayPublisher(),
            settings=RecordingSettings(audio_format="wav",
                                       minimum_duration_seconds=1.5,
                                       timeout_seconds=30.0),
            clock=self.clock,
        )
    
    def _new_capture(self):
        capture = FakeCapture(self.clock)
        self.captures.append(capture)
        return capture
    
    def rows(self):
        if not self.log_path.exists():
            return []
        with open(self.log_path, newline='', encoding='utf-8') as f:
            return list(csv.DictReader(f))


@pytest.fixture
def harness(temp_data_dir):
    """Controller under test with fake capture and remote backends."""
    return ControllerHarness(Path(temp_data_dir))
