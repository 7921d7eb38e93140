"""Terminal boundary: keyboard buttons and console display."""

from .keyboard_input import KeyboardInputHandler, KEY_START, KEY_STOP, KEY_QUIT
from .console_display import ConsoleDisplay

__all__ = [
    "KeyboardInputHandler",
    "ConsoleDisplay",
    "KEY_START",
    "KEY_STOP",
    "KEY_QUIT",
]
