"""Utterance alignment: attribute master-mix utterances to individual channels.

The master channel is the only one holding the whole conversation, but its
diarization labels are unreliable. Each master utterance is matched against
every utterance of every single-speaker channel and inherits the owner of
the best-scoring one. Diarization labels are used only when there is no
individual channel data at all.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence

from speaker_attribution.attribution import strip_speaker_prefix
from speaker_attribution.channels import lookup_assignment
from speaker_attribution.domain.models import AttributedLine, Channel, Utterance, UNKNOWN_SPEAKER
from speaker_attribution.scoring import (
    ScoringWeights, DEFAULT_WEIGHTS, GROUP_THRESHOLD, GROUP_TRIGGER_SCORE, GROUP_WINDOW_SECONDS,
    combined_score, group_score, within_window,
)

logger = logging.getLogger(__name__)

DEDUCED_MATCH_SCORE = 0.8


@dataclass(frozen=True)
class CandidateChannel:
    """A single-speaker channel whose utterances master lines can be matched to.

    assigned is False when owner_name is only a placeholder ("Mic 3"); lines
    matched to such a channel keep the placeholder but count as unmatched.
    """
    channel: Channel
    owner_name: str
    assigned: bool = True


@dataclass(frozen=True)
class BestMatch:
    owner_name: str
    score: float
    utterance: Optional[Utterance]
    source_file: str
    assigned: bool = True
    grouped: bool = False


@dataclass
class AlignmentResult:
    lines: list[AttributedLine] = field(default_factory=list)
    fallback_used: bool = False
    deduced_speaker: Optional[str] = None


def find_best_match(
    master_utterance: Utterance,
    candidates: Sequence[CandidateChannel],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Optional[BestMatch]:
    """Highest combined score across all candidate utterances, accepted or not.

    Ties keep the first candidate seen, so results follow input order.
    """
    best: Optional[BestMatch] = None
    for candidate in candidates:
        for utterance in candidate.channel.utterances:
            if utterance.is_blank:
                continue
            score = combined_score(master_utterance, utterance, weights)
            if best is None or score > best.score:
                best = BestMatch(
                    candidate.owner_name, score, utterance, candidate.channel.file_name, candidate.assigned,
                )
    return best


def should_prefer_mic_text(master: Utterance, mic: Utterance, score: float) -> bool:
    """Whether the matched mic transcription is better than the master's own."""
    if score > 0.9:
        return True
    if mic.confidence > master.confidence + 0.1:
        return True
    if score > 0.7 and len(mic.text) > len(master.text) * 1.2:
        return True
    if master.confidence < 0.5 and mic.confidence > 0.7:
        return True
    if score > 0.6 and len(mic.text.split()) > len(master.text.split()) * 1.5:
        return True
    return False


def find_group_match(
    master_utterance: Utterance,
    candidates: Sequence[CandidateChannel],
) -> Optional[BestMatch]:
    """Best channel when the master utterance merges several of a channel's utterances.

    Every spoken utterance of a channel within GROUP_WINDOW_SECONDS of the
    master utterance is read as one block and scored with group_score. Only
    scores above GROUP_THRESHOLD count; ties keep the first candidate.
    """
    best: Optional[BestMatch] = None
    for candidate in candidates:
        nearby = [
            u for u in candidate.channel.spoken_utterances
            if within_window(master_utterance, u, GROUP_WINDOW_SECONDS)
        ]
        if not nearby:
            continue
        score = group_score(master_utterance, nearby)
        if score > GROUP_THRESHOLD and (best is None or score > best.score):
            best = BestMatch(
                candidate.owner_name, score, None, candidate.channel.file_name, candidate.assigned, grouped=True,
            )
    return best


def _attribute_utterance(
    master: Channel,
    utterance: Utterance,
    candidates: Sequence[CandidateChannel],
    weights: ScoringWeights,
    prefer_mic_text: bool,
    group_matching: bool = False,
) -> AttributedLine:
    best = find_best_match(utterance, candidates, weights)

    if group_matching and (best is None or best.score < GROUP_TRIGGER_SCORE):
        grouped = find_group_match(utterance, candidates)
        if grouped is not None and (best is None or grouped.score > best.score):
            logger.debug(
                f"Group match for [{utterance.start:.1f}s-{utterance.end:.1f}s]: "
                f"{grouped.owner_name} (score {grouped.score:.2f})"
            )
            best = grouped

    if best is not None and (best.grouped or weights.accepts(best.score)):
        source = utterance
        if (
            prefer_mic_text
            and best.utterance is not None
            and should_prefer_mic_text(utterance, best.utterance, best.score)
        ):
            source = best.utterance
            logger.debug(
                f"Using {best.source_file} text for [{utterance.start:.2f}-{utterance.end:.2f}] "
                f"(mic confidence {best.utterance.confidence:.2f}, master {utterance.confidence:.2f})"
            )
        logger.debug(
            f"Matched [{utterance.start:.1f}s-{utterance.end:.1f}s] to {best.owner_name} (score {best.score:.2f})"
        )
        return AttributedLine(
            speaker_name=best.owner_name,
            text=strip_speaker_prefix(source.text),
            source_start=source.start,
            source_end=source.end,
            match_score=best.score,
            source_file=master.file_name,
            matched=best.assigned,
        )

    logger.debug(f"No speaker match for [{utterance.start:.1f}s-{utterance.end:.1f}s]: {utterance.text[:50]}")
    return AttributedLine(
        speaker_name=UNKNOWN_SPEAKER,
        text=strip_speaker_prefix(utterance.text),
        source_start=utterance.start,
        source_end=utterance.end,
        match_score=0.0,
        source_file=master.file_name,
        matched=False,
    )


def map_diarization_labels(master: Channel, mic_assignments: Optional[Dict[int, str]]) -> list[AttributedLine]:
    """Fallback: treat each utterance's diarization label as a 0-based mic index.

    Unmapped labels become "Speaker {label + 1}" so no text is dropped.
    """
    lines = []
    for utterance in master.utterances:
        if utterance.is_blank:
            continue
        name = lookup_assignment(mic_assignments, utterance.speaker_label)
        lines.append(AttributedLine(
            speaker_name=name if name is not None else f"Speaker {utterance.speaker_label + 1}",
            text=strip_speaker_prefix(utterance.text),
            source_start=utterance.start,
            source_end=utterance.end,
            match_score=0.0,
            source_file=master.file_name,
            matched=name is not None,
        ))
    return lines


def deduce_missing_speaker(
    lines: list[AttributedLine],
    mic_assignments: Optional[Dict[int, str]],
) -> tuple[list[AttributedLine], Optional[str]]:
    """Give unknown lines to the one assigned participant who never matched.

    Applies only when exactly one assigned participant is missing from the
    matched lines; otherwise the lines come back untouched.
    """
    unknown = [line for line in lines if line.speaker_name == UNKNOWN_SPEAKER and not line.matched]
    if not unknown:
        return lines, None

    assigned = {name.strip() for name in (mic_assignments or {}).values() if name and name.strip()}
    matched = {line.speaker_name for line in lines if line.matched}
    missing = sorted(assigned - matched)

    if len(missing) != 1:
        logger.info(f"Speaker deduction not applicable: {len(missing)} unmatched participants, need exactly 1")
        return lines, None

    participant = missing[0]
    logger.info(f"Speaker deduction: assigning {len(unknown)} unknown lines to {participant}")
    deduced = [
        replace(line, speaker_name=participant, match_score=DEDUCED_MATCH_SCORE, matched=True)
        if line.speaker_name == UNKNOWN_SPEAKER and not line.matched else line
        for line in lines
    ]
    return deduced, participant


def align_master_channel(
    master: Channel,
    candidates: Sequence[CandidateChannel],
    mic_assignments: Optional[Dict[int, str]] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    max_workers: int = 1,
    prefer_mic_text: bool = False,
    deduce_missing: bool = False,
    group_matching: bool = False,
) -> AlignmentResult:
    """Attribute every spoken master utterance to a speaker.

    Args:
        master: The master-mix channel.
        candidates: Single-speaker channels with their resolved owner names.
        mic_assignments: 0-based mic index -> participant, used by the
            diarization fallback and by speaker deduction.
        weights: Combined-score weights and acceptance threshold.
        max_workers: >1 spreads master utterances over a thread pool.
        prefer_mic_text: Replace master text with the matched mic text when
            the mic transcription looks better.
        deduce_missing: Reassign unknown lines to a lone unmatched participant.
        group_matching: When the best single match scores below
            GROUP_TRIGGER_SCORE, also try each channel's nearby utterances
            read as one block.

    Returns:
        AlignmentResult with one line per spoken master utterance, in master order.
    """
    usable = [c for c in candidates if c.channel.spoken_utterances]
    if not usable:
        logger.warning(
            f"No individual channel data for {master.file_name}, falling back to diarization labels"
        )
        return AlignmentResult(lines=map_diarization_labels(master, mic_assignments), fallback_used=True)

    spoken = master.spoken_utterances
    logger.info(
        f"Aligning {len(spoken)} master utterances against {len(usable)} channels "
        f"({sum(len(c.channel.utterances) for c in usable)} candidate utterances)"
    )

    def _align(utterance: Utterance) -> AttributedLine:
        return _attribute_utterance(master, utterance, usable, weights, prefer_mic_text, group_matching)

    if max_workers > 1 and len(spoken) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            lines = list(pool.map(_align, spoken))
    else:
        lines = [_align(u) for u in spoken]

    deduced_speaker = None
    if deduce_missing:
        lines, deduced_speaker = deduce_missing_speaker(lines, mic_assignments)

    matched = sum(1 for line in lines if line.matched)
    logger.info(f"Alignment complete: {matched}/{len(lines)} master utterances matched")
    return AlignmentResult(lines=lines, deduced_speaker=deduced_speaker)
