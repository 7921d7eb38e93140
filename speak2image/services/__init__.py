"""Services layer for speak2image application logic."""

from .session_controller import SessionController, RecordingSettings

__all__ = [
    "SessionController",
    "RecordingSettings",
]
