"""LexicalToneAdapter: keyword heuristic for conversation tone.

Stands in for a language-model summarizer: counts laughter, interjection
words and question marks and picks one of a fixed set of descriptions.
"""

import re
from typing import Optional

from speaker_attribution.ports.tone import ToneSummarizerPort

_LAUGHTER = re.compile(r"\b(?:haha|lol|lmao|laughing|chuckle)\b", re.IGNORECASE)
_INTERJECTION = re.compile(r"\b(?:wait|hold on|but|however)\b", re.IGNORECASE)


class LexicalToneAdapter(ToneSummarizerPort):
    def summarize(self, transcript: str) -> Optional[str]:
        if not transcript or not transcript.strip():
            return None

        laughter = len(_LAUGHTER.findall(transcript))
        interjections = len(_INTERJECTION.findall(transcript))
        questions = transcript.count("?")

        if laughter > 10 and interjections < 5:
            return "Light-hearted and fun"
        if interjections > 10:
            return "Heated and passionate"
        if questions > 15:
            return "Analytical and thoughtful"
        if laughter > 5:
            return "Engaging with good humor"
        return "Calm and focused discussion"
