"""Artifact and audit-log storage."""

from .file_manager import FileManager, generate_session_id
from .session_recorder import SessionRecorder

__all__ = [
    "FileManager",
    "generate_session_id",
    "SessionRecorder",
]
