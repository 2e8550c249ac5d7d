"""Framework-agnostic domain models for speaker attribution.

Provider payloads are parsed into these records once, at the mapper
boundary. Everything past that point (scoring, alignment, composition,
analytics) works on these frozen records and never sees raw JSON.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


UNKNOWN_SPEAKER = "Unknown Speaker"
PHONE_SPEAKER = "Phone Input"
SOUND_PAD_SPEAKER = "Sound Effects"


@dataclass(frozen=True)
class Word:
    """A single word with timing, as returned by the transcription provider."""
    text: str
    start: float
    end: float
    confidence: float = 0.0


@dataclass(frozen=True)
class Utterance:
    """One contiguous unit of speech on a channel.

    speaker_label is the provider's channel-local, 0-based diarization id.
    end >= start is not guaranteed by the provider.
    """
    start: float
    end: float
    text: str
    confidence: float = 0.0
    speaker_label: int = 0
    words: tuple[Word, ...] = ()

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_blank(self) -> bool:
        return not self.text or not self.text.strip()


class ChannelRole(str, Enum):
    MASTER = "master"
    INDIVIDUAL_MIC = "individual_mic"
    PHONE = "phone"
    SOUND_PAD = "sound_pad"
    UNKNOWN = "unknown"

    @property
    def is_single_speaker(self) -> bool:
        return self in (ChannelRole.INDIVIDUAL_MIC, ChannelRole.PHONE, ChannelRole.SOUND_PAD)


@dataclass(frozen=True)
class ChannelClassification:
    """Result of classifying a file name. mic_index is 0-based."""
    role: ChannelRole
    mic_index: Optional[int] = None

    @property
    def mic_number(self) -> Optional[int]:
        """1-based mic number as it appears in file names (MIC1, MIC2, ...)."""
        return self.mic_index + 1 if self.mic_index is not None else None


@dataclass(frozen=True)
class Channel:
    """A transcribed audio channel. Role is fixed at construction."""
    file_name: str
    role: ChannelRole
    mic_index: Optional[int] = None
    utterances: tuple[Utterance, ...] = ()

    @property
    def mic_number(self) -> Optional[int]:
        return self.mic_index + 1 if self.mic_index is not None else None

    @property
    def spoken_utterances(self) -> list[Utterance]:
        return [u for u in self.utterances if not u.is_blank]


@dataclass(frozen=True)
class AttributedLine:
    """A line of dialogue with a resolved speaker.

    match_score is 0 for directly attributed lines, otherwise the combined
    similarity score of the accepted match. matched is False for every
    placeholder attribution (unknown speaker, unmapped diarization label).
    """
    speaker_name: str
    text: str
    source_start: float
    source_end: float
    match_score: float = 0.0
    source_file: Optional[str] = None
    matched: bool = True

    def render(self) -> str:
        return f"{self.speaker_name}: {self.text.strip()}"


@dataclass
class ChannelAttribution:
    """Output of direct attribution for one single-speaker channel."""
    file_name: str
    speaker_name: str
    lines: list[AttributedLine] = field(default_factory=list)
    assignment_missing: bool = False


class PipelineStage(str, Enum):
    """One-shot pipeline stages, in execution order."""
    NOT_RUN = "not_run"
    DIAGNOSED = "diagnosed"
    ALIGNED = "aligned"
    COMPOSITED = "composited"
    ANALYZED = "analyzed"
    REPORTED = "reported"

    @property
    def progress(self) -> float:
        """Fraction of the pipeline finished once this stage completes."""
        order = list(PipelineStage)
        return order.index(self) / (len(order) - 1)
