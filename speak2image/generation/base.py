"""Abstract base classes for the remote backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union


class TranscriptionBackend(ABC):
    """Turns a finished recording into English text."""

    @abstractmethod
    async def transcribe(self, audio_path: Union[str, Path]) -> str:
        """Transcribe an audio file.
        
        Args:
            audio_path: Path to a finished recording
            
        Returns:
            Raw transcript text
            
        Raises:
            RemoteServiceError: If the call fails or times out
        """
        pass


class ImageGenerationBackend(ABC):
    """Turns a prompt into a fetchable image URL."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate an image for a prompt.
        
        Args:
            prompt: Fully resolved prompt
            
        Returns:
            URL of the generated image
            
        Raises:
            PolicyRejectionError: If the prompt was refused on content grounds
            RemoteServiceError: If the call fails or times out
        """
        pass
