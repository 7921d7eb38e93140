"""Visual-state signals consumed by the display layer."""

from .publisher import DisplayPublisher

__all__ = ["DisplayPublisher"]
