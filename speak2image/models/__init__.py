"""Data models for the speak2image application."""

from .session import Session
from .events import ControllerState, HardwareEdge

__all__ = [
    "Session",
    "ControllerState",
    "HardwareEdge",
]
