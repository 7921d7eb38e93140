"""Exceptions raised by the speak2image controller and its collaborators."""


class Speak2ImageError(Exception):
    """Base class for all speak2image errors."""


class ConcurrentSessionError(Speak2ImageError):
    """A session was requested while another one is recording or generating."""


class NotRecordingError(Speak2ImageError):
    """A stop was requested while no recording is open."""


class RecordingTooShortError(Speak2ImageError):
    """The recording ended before the configured minimum duration."""

    def __init__(self, duration_seconds: float, minimum_seconds: float):
        super().__init__(
            f"Recording lasted {duration_seconds:.2f}s, "
            f"minimum is {minimum_seconds:.2f}s"
        )
        self.duration_seconds = duration_seconds
        self.minimum_seconds = minimum_seconds


class RemoteServiceError(Speak2ImageError):
    """A remote transcription or image generation call failed."""


class PolicyRejectionError(RemoteServiceError):
    """The image generation service refused the prompt on content grounds."""


class DownloadError(Speak2ImageError):
    """The generated image could not be downloaded."""
