"""File management for recorded audio and generated images."""

import random
import string
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


logger = logging.getLogger(__name__)

SESSION_SUFFIX_LENGTH = 10
IMAGE_EXTENSION = "png"


def generate_session_id(now: Optional[datetime] = None) -> str:
    """Create a sortable, unique session identifier.

    Format is ``YYYY-MM-DD.HH-MM-SS-mmm.<suffix>``, so lexical order matches
    chronological order. The random suffix keeps ids unique when two sessions
    start within the same millisecond.

    Args:
        now: Timestamp to use (defaults to the current local time)

    Returns:
        Session ID
    """
    now = now or datetime.now()
    timestamp = now.strftime("%Y-%m-%d.%H-%M-%S-") + f"{now.microsecond // 1000:03d}"
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=SESSION_SUFFIX_LENGTH))
    return f"{timestamp}.{random_suffix}"


class FileManager:
    """Manages the folders holding per-session audio and image artifacts."""
    
    def __init__(self, recorded_audio_folder: Union[str, Path], generated_visuals_folder: Union[str, Path]):
        """Initialize file manager.
        
        Args:
            recorded_audio_folder: Directory for the visitors' recordings
            generated_visuals_folder: Directory for downloaded images
        """
        self.audio_dir = Path(recorded_audio_folder)
        self.images_dir = Path(generated_visuals_folder)
        
        self._ensure_directories()
        
        logger.info(f"FileManager initialized: audio={self.audio_dir}, images={self.images_dir}")
    
    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.audio_dir, self.images_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")
    
    def audio_path(self, session_id: str, audio_format: str) -> Path:
        """Path of the recording for a session."""
        return self.audio_dir / f"{session_id}.{audio_format}"
    
    def image_path(self, session_id: str) -> Path:
        """Path of the generated image for a session."""
        return self.images_dir / f"{session_id}.{IMAGE_EXTENSION}"
    
    def discard(self, path: Union[str, Path]) -> bool:
        """Delete an artifact if it exists.
        
        Returns:
            True if a file was removed
        """
        path = Path(path)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Discarded {path}")
        return True
