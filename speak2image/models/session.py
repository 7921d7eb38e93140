"""Session data model."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Session:
    """One visitor interaction, from recording start to the final log row."""
    id: str
    audio_path: str
    recording_started_at: float  # monotonic
    recording_stopped_at: Optional[float] = None
    generation_started_at: Optional[float] = None
    generation_stopped_at: Optional[float] = None
    transcript: str = ""
    prompt: str = ""
    image_url: Optional[str] = None
    image_local_path: Optional[str] = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self):
        self._frozen = True

    def __setattr__(self, name, value):
        # The id doubles as artifact filename stem and log key
        if name == "id" and getattr(self, "_frozen", False):
            raise AttributeError("Session id cannot be reassigned")
        super().__setattr__(name, value)

    @property
    def audio_duration_seconds(self) -> float:
        if self.recording_stopped_at is None:
            return 0.0
        return self.recording_stopped_at - self.recording_started_at

    @property
    def generation_duration_seconds(self) -> float:
        if self.generation_started_at is None or self.generation_stopped_at is None:
            return 0.0
        return self.generation_stopped_at - self.generation_started_at
