"""Provider payload <-> domain <-> DTO mappers.

Raw transcription JSON is validated and converted to domain Utterances
here, once. The rest of the package never touches provider dictionaries.
"""

from typing import Any, Optional

from speaker_attribution.domain.models import AttributedLine, Utterance, Word
from speaker_attribution.models import (
    AttributedLineDTO, ConversationStatistics, ProviderResponse, ProviderTranscription,
    ProviderUtterance, ProviderResult, ProviderWord, SpeakerStatistics, StatisticsTotals,
)


def word_from_dto(dto: ProviderWord) -> Word:
    return Word(text=dto.word or "", start=dto.start, end=dto.end, confidence=dto.confidence or 0.0)


def utterance_from_dto(dto: ProviderUtterance) -> Utterance:
    """Convert a provider utterance DTO to a domain Utterance.

    Null text becomes "" (a blank utterance, skipped downstream); null
    confidence and speaker become 0.
    """
    return Utterance(
        start=dto.start,
        end=dto.end,
        text=dto.text or "",
        confidence=dto.confidence or 0.0,
        speaker_label=dto.speaker or 0,
        words=tuple(word_from_dto(w) for w in (dto.words or [])),
    )


def _transcription_from_payload(payload: Any) -> Optional[ProviderTranscription]:
    if isinstance(payload, list):
        return ProviderTranscription(utterances=[ProviderUtterance.model_validate(u) for u in payload])
    if not isinstance(payload, dict):
        raise ValueError(f"Unrecognized transcription payload of type {type(payload).__name__}")
    if "result" in payload:
        result = ProviderResponse.model_validate(payload).result
        return result.transcription if result else None
    if "transcription" in payload:
        return ProviderResult.model_validate(payload).transcription
    if "utterances" in payload:
        return ProviderTranscription.model_validate(payload)
    raise ValueError("Transcription payload has no result, transcription or utterances")


def parse_transcription(payload: Any) -> list[Utterance]:
    """Parse a provider payload into domain utterances, preserving provider order.

    Accepts a full provider response, a bare {"utterances": [...]} object or
    a bare list of utterances. A None payload, or one without utterances,
    yields an empty list.

    Raises:
        ValueError: for payloads that are not transcription data
            (pydantic's ValidationError is a ValueError).
    """
    if payload is None:
        return []
    transcription = _transcription_from_payload(payload)
    if transcription is None or not transcription.utterances:
        return []
    return [utterance_from_dto(u) for u in transcription.utterances]


def line_to_dto(line: AttributedLine) -> AttributedLineDTO:
    return AttributedLineDTO(
        speaker=line.speaker_name,
        text=line.text.strip(),
        start=line.source_start,
        end=line.source_end,
        match_score=round(line.match_score, 4),
        matched=line.matched,
        source_file=line.source_file,
    )


def lines_to_dtos(lines: list[AttributedLine]) -> list[AttributedLineDTO]:
    """Convert attributed lines to DTOs, preserving order."""
    return [line_to_dto(line) for line in lines]


def statistics_to_dto(raw: dict, conversation_tone: Optional[str] = None) -> ConversationStatistics:
    """Wrap the analytics dict in its response model."""
    return ConversationStatistics(
        speakers={name: SpeakerStatistics(**data) for name, data in raw["speakers"].items()},
        totals=StatisticsTotals(**raw["totals"]),
        total_speakers=raw["total_speakers"],
        most_talkative=raw.get("most_talkative"),
        quietest=raw.get("quietest"),
        most_inquisitive=raw.get("most_inquisitive"),
        most_profane=raw.get("most_profane"),
        conversation_tone=conversation_tone,
    )
