"""ToneSummarizerPort: optional conversation tone summarization."""

from abc import ABC, abstractmethod
from typing import Optional


class ToneSummarizerPort(ABC):
    @abstractmethod
    def summarize(self, transcript: str) -> Optional[str]:
        """Return a short description of the conversation's tone, or None."""
