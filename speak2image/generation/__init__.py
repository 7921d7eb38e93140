"""Remote speech, image generation and download clients."""

from .base import TranscriptionBackend, ImageGenerationBackend
from .transcription import TranscriptionClient
from .image_generation import ImageGenerationClient
from .fetcher import ImageFetcher
from .prompt import PromptBuilder

__all__ = [
    "TranscriptionBackend",
    "ImageGenerationBackend",
    "TranscriptionClient",
    "ImageGenerationClient",
    "ImageFetcher",
    "PromptBuilder",
]
