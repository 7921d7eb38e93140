"""State and trigger enums shared by the controller and its trigger sources."""

from enum import Enum


class ControllerState(Enum):
    """Lifecycle state of the session controller."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"
    TRANSCRIBING = "transcribing"
    GENERATING = "generating"
    DOWNLOADING = "downloading"

    @property
    def is_generating(self) -> bool:
        return self in (
            ControllerState.TRANSCRIBING,
            ControllerState.GENERATING,
            ControllerState.DOWNLOADING,
        )


class HardwareEdge(Enum):
    """Debounced edge reported by the push button."""
    ASSERTED = "asserted"
    RELEASED = "released"
