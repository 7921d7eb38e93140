"""Append-only CSV audit log with one row per session."""

import csv
import logging
from pathlib import Path
from typing import Union

from ..models.session import Session

logger = logging.getLogger(__name__)

FIELDNAMES = ["id", "transcript", "prompt", "duration_audio", "duration_generation"]


class SessionRecorder:
    """Writes one row per session to the transcripts file."""
    
    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"SessionRecorder writing to: {self.file_path}")
    
    def append(self, session: Session) -> None:
        """Append a row for the session, writing the header first if the file is new.
        
        Args:
            session: Session to record
        """
        write_header = not self.file_path.exists() or self.file_path.stat().st_size == 0
        
        with open(self.file_path, 'a', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            if write_header:
                writer.writeheader()
            writer.writerow({
                "id": session.id,
                "transcript": session.transcript,
                "prompt": session.prompt,
                "duration_audio": f"{session.audio_duration_seconds:.3f}",
                "duration_generation": f"{session.generation_duration_seconds:.3f}",
            })
        
        logger.info(f"Logged session {session.id} to {self.file_path.name}")
