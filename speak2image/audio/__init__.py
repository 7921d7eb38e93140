"""Audio capture module."""

from .capture import AudioCapture, AudioStats

__all__ = [
    'AudioCapture',
    'AudioStats',
]
