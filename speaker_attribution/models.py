from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


# --- Transcription provider payload ---------------------------------------

class ProviderWord(BaseModel):
    """A word as returned by the transcription provider."""
    word: Optional[str] = None
    start: float = 0.0
    end: float = 0.0
    confidence: Optional[float] = None


class ProviderUtterance(BaseModel):
    """An utterance as returned by the transcription provider.

    Only timings are required; null or missing text, confidence and speaker
    are tolerated so one bad utterance never invalidates its channel.
    """
    start: float
    end: float
    text: Optional[str] = None
    confidence: Optional[float] = None
    speaker: Optional[int] = None
    channel: Optional[int] = None
    words: Optional[List[ProviderWord]] = None


class ProviderTranscription(BaseModel):
    full_transcript: Optional[str] = None
    utterances: Optional[List[ProviderUtterance]] = None


class ProviderResult(BaseModel):
    transcription: Optional[ProviderTranscription] = None


class ProviderResponse(BaseModel):
    """Top-level transcription response for one audio file."""
    id: str = ""
    status: str = ""
    result: Optional[ProviderResult] = None


# --- Requests ---------------------------------------------------------------

class ChannelPayload(BaseModel):
    """One audio file of a session and its raw transcription payload."""
    file_name: str
    transcription: Optional[Any] = None


class AttributionRequestDTO(BaseModel):
    channels: List[ChannelPayload] = []
    mic_assignments: Dict[int, str] = {}


# --- Responses --------------------------------------------------------------

class AttributedLineDTO(BaseModel):
    speaker: str
    text: str
    start: float
    end: float
    match_score: float = 0.0
    matched: bool = True
    source_file: Optional[str] = None


class CurseWord(BaseModel):
    word: str
    severity: Literal["mild", "strong"]


class SpeakerStatistics(BaseModel):
    """Per-speaker conversation counters and the tokens that produced them."""
    utterance_count: int = 0
    word_count: int = 0
    question_count: int = 0
    questions: List[str] = []
    laughter_count: int = 0
    laughter_words: List[str] = []
    curse_word_count: int = 0
    curse_words: List[CurseWord] = []
    pejorative_count: int = 0
    pejorative_words: List[str] = []
    interruption_count: int = 0


class StatisticsTotals(BaseModel):
    utterance_count: int = 0
    word_count: int = 0
    question_count: int = 0
    laughter_count: int = 0
    curse_word_count: int = 0
    pejorative_count: int = 0
    interruption_count: int = 0


class ConversationStatistics(BaseModel):
    """Aggregate conversation statistics for an attributed transcript."""
    speakers: Dict[str, SpeakerStatistics] = {}
    totals: StatisticsTotals = Field(default_factory=StatisticsTotals)
    total_speakers: int = 0
    most_talkative: Optional[str] = None
    quietest: Optional[str] = None
    most_inquisitive: Optional[str] = None
    most_profane: Optional[str] = None
    conversation_tone: Optional[str] = None


class AnalysisReport(BaseModel):
    """Pre-flight snapshot of the channels available for attribution.

    Mic keys are 0-based mic indices (MIC1.WAV -> 0).
    """
    master_mix_found: bool = False
    master_mix_file: Optional[str] = None
    master_mix_utterance_count: int = 0
    mic_files_found: Dict[int, bool] = {}
    mic_file_utterance_counts: Dict[int, int] = {}
    mic_file_speaker_always_zero: Dict[int, bool] = {}
    total_mic_files_found: int = 0
    phone_found: bool = False
    sound_pad_found: bool = False
    unknown_files: List[str] = []
    errors: List[str] = []

    # Master-mix activity before attribution; every line counts as "Unknown".
    word_counts_per_speaker: Dict[str, int] = {}
    utterance_counts_per_speaker: Dict[str, int] = {}
    total_words: int = 0
    total_utterances: int = 0
    conversation_tone: Optional[str] = None

    @property
    def ready_for_alignment(self) -> bool:
        return self.master_mix_found and self.master_mix_utterance_count > 0


class AttributionResult(BaseModel):
    """Outcome of a speaker attribution run."""
    success: bool = False
    error_message: Optional[str] = None
    stage: str = "not_run"
    output_transcript: str = ""
    attributed_lines: List[AttributedLineDTO] = []
    total_utterances: int = 0
    matched_utterances: int = 0
    unmatched_utterances: int = 0
    utterances_per_person: Dict[str, int] = {}
    unmatched_texts: List[str] = []
    statistics: Optional[ConversationStatistics] = None
    channel_transcripts: Dict[str, str] = {}
    mic_files_used: List[int] = []
    fallback_used: bool = False
    deduced_speaker: Optional[str] = None
    diagnostics: List[str] = []
    report: Optional[AnalysisReport] = None
