"""Prompt template substitution and silence detection."""

import logging
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "{QUOTE}"

# Boilerplate the speech model returns for recordings without speech
DEFAULT_SILENCE_SENTINELS = (
    "Thank you for watching!",
    "Thanks for watching!",
    "Thank you for watching.",
    "Thank you.",
    "you",
)


class PromptBuilder:
    """Weaves a transcript into the configured image prompt template."""
    
    def __init__(self,
                 template: str,
                 placeholder: str = DEFAULT_PLACEHOLDER,
                 silence_sentinels: Iterable[str] = DEFAULT_SILENCE_SENTINELS):
        if placeholder not in template:
            raise ValueError(f"Prompt template does not contain the placeholder {placeholder}")
        self.template = template
        self.placeholder = placeholder
        self.silence_sentinels = frozenset(silence_sentinels)
    
    @staticmethod
    def normalize(text: str) -> str:
        return text.strip()
    
    def is_silence(self, transcript: str) -> bool:
        """Exact, case-sensitive match of the normalized transcript against the sentinels.

        An empty transcript also counts as silence.
        """
        normalized = self.normalize(transcript)
        return not normalized or normalized in self.silence_sentinels
    
    def build(self, transcript: str) -> str:
        return self.template.replace(self.placeholder, transcript)
