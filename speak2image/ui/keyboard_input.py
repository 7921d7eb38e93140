"""Keyboard input handling: the installation's software buttons."""

import sys
import threading
import time
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)

KEY_START = "1"
KEY_STOP = "2"
KEY_QUIT = "q"


class KeyboardInputHandler:
    """Reads single keypresses on a background thread and forwards them."""
    
    def __init__(self, callback: Callable[[str], bool]):
        """Initialize keyboard handler.
        
        Args:
            callback: Function that takes a key and returns True to continue, False to quit
        """
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None
    
    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return
        
        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")
    
    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")
    
    def _input_loop(self) -> None:
        """Main input handling loop."""
        while self.running:
            key = self._get_key()
            if key:
                logger.debug(f"Key detected: '{key}'")
                if not self.callback(key):
                    logger.info("Callback returned False, leaving input loop")
                    break
            # Small delay to prevent busy waiting
            time.sleep(0.05)
        self.running = False
    
    def _get_key(self) -> Optional[str]:
        """Get a single keypress, or None if none is pending."""
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()
    
    def _get_key_windows(self) -> Optional[str]:
        import msvcrt
        if msvcrt.kbhit():
            return msvcrt.getch().decode('utf-8', errors='ignore').lower()
        return None
    
    def _get_key_unix(self) -> Optional[str]:
        import select
        import tty
        import termios
        
        if not sys.stdin.isatty():
            line = sys.stdin.readline()
            if not line:
                # stdin closed
                return KEY_QUIT
            return line.strip().lower()[:1] or None
        
        if select.select([sys.stdin], [], [], 0.1)[0]:
            # Set terminal to raw mode to get single characters
            old_settings = termios.tcgetattr(sys.stdin)
            try:
                tty.setraw(sys.stdin.fileno())
                return sys.stdin.read(1).lower()
            finally:
                termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
        return None
