"""Audio capture module streaming microphone input straight to a file."""

import time
import wave
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Thread, Event, Lock
from typing import Optional, Union

import numpy as np
import pyaudio


logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("wav",)


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float


class AudioCapture:
    """Records one session: opens the device, streams frames to disk, closes."""
    
    STOP_TIMEOUT_SECONDS = 2.0
    
    def __init__(
        self,
        sample_rate: int = 44100,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.
        
        Args:
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: PyAudio sample format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        
        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        
        # Destination
        self.path: Optional[Path] = None
        self._writer: Optional[wave.Wave_write] = None
        # Guards _writer between the capture thread and close()
        self._writer_lock = Lock()
        
        # Statistics tracking
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.total_chunks = 0
        self.peak_level = 0.0
        self.device_error: Optional[Exception] = None
        
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
    
    def open(self, path: Union[str, Path], audio_format: str = "wav") -> None:
        """Create the destination file and start streaming captured audio into it.
        
        Args:
            path: Destination file
            audio_format: Container format, only "wav" is supported
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return
        if audio_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported audio format: {audio_format}")
        
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._writer = wave.open(str(self.path), 'wb')
        self._writer.setnchannels(self.channels)
        self._writer.setsampwidth(pyaudio.get_sample_size(self.format))
        self._writer.setframerate(self.sample_rate)
        
        logger.info(f"Recording started in {self.path}")
        self.stop_event.clear()
        self.start_time = time.monotonic()
        self.stop_time = None
        self.total_chunks = 0
        self.peak_level = 0.0
        self.device_error = None
        
        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True
    
    def close(self) -> None:
        """Stop capture, release the device and finalize the file."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return
        
        self.stop_event.set()
        
        # Wait for recording thread to finish
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=self.STOP_TIMEOUT_SECONDS)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
        
        self.stop_time = time.monotonic()
        with self._writer_lock:
            if self._writer is not None:
                self._writer.close()
                self._writer = None
        
        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")
    
    def elapsed(self) -> float:
        """Seconds since open, frozen at close."""
        if self.start_time is None:
            return 0.0
        end = self.stop_time if self.stop_time is not None else time.monotonic()
        return end - self.start_time
    
    def __open_audio_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream
    
    def __write_chunk(self, audio_chunk: bytes) -> None:
        self.total_chunks += 1
        if audio_chunk:
            samples = np.frombuffer(audio_chunk, dtype=np.int16).astype(np.int32)
            if samples.size:
                self.peak_level = max(self.peak_level, float(np.abs(samples).max()) / 32768.0)
        with self._writer_lock:
            if self._writer is None:
                # close() already finalized the file
                return
            self._writer.writeframes(audio_chunk)
    
    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = None
        try:
            stream = self.__open_audio_stream()
            while not self.stop_event.is_set():
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                self.__write_chunk(audio_chunk)
        except OSError as e:
            # The file is left partial; the controller decides what to do with it
            logger.error(f"Audio device error while recording {self.path}: {e}")
            self.device_error = e
        finally:
            if stream:
                stream.stop_stream()
                stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None
    
    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=self.elapsed(),
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )
    
    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.close()
