"""Console stand-in for the installation display."""

import logging
from typing import Optional

from pubsub import pub
from rich.console import Console

from ..display.publisher import (
    DisplayPublisher,
    RECORDING_STARTED,
    RECORDING_STOPPED,
    GENERATION_STARTED,
    GENERATION_ENDED,
    IMAGE_UPDATED,
)

logger = logging.getLogger(__name__)


class ConsoleDisplay:
    """Prints visual-state signals to the terminal."""
    
    def __init__(self, publisher: DisplayPublisher, console: Optional[Console] = None):
        self.console = console or Console()
        self.image_path: Optional[str] = None
        
        # pubsub keeps weak references, the bound methods live as long as self
        pub.subscribe(self.on_recording_started, publisher.topic(RECORDING_STARTED))
        pub.subscribe(self.on_recording_stopped, publisher.topic(RECORDING_STOPPED))
        pub.subscribe(self.on_generation_started, publisher.topic(GENERATION_STARTED))
        pub.subscribe(self.on_generation_ended, publisher.topic(GENERATION_ENDED))
        pub.subscribe(self.on_image_updated, publisher.topic(IMAGE_UPDATED))
    
    def show_help(self) -> None:
        self.console.print("🎙️  speak2image", style="bold blue")
        self.console.print("=" * 50)
        self.console.print("1 = start recording, 2 = stop recording, q = quit")
    
    def on_recording_started(self, session_id: str) -> None:
        self.console.print(f"🔴 RECORDING  {session_id}", style="bold red")
    
    def on_recording_stopped(self, session_id: str) -> None:
        self.console.print("⏹️  STOPPED", style="bold yellow")
    
    def on_generation_started(self, session_id: str) -> None:
        self.console.print("✨ Generating...", style="blue")
    
    def on_generation_ended(self, session_id: str) -> None:
        if self.image_path:
            self.console.print(f"🖼️  Showing {self.image_path}", style="green")
        self.console.print("Ready", style="bold green")
    
    def on_image_updated(self, session_id: str, image_path: str) -> None:
        self.image_path = image_path
