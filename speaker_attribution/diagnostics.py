"""Pre-flight diagnostics for a session's channels.

Diagnosis never raises for a bad channel: problems are written to the
report's errors and scanning moves on to the next channel.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from speaker_attribution.analytics import compute_conversation_statistics
from speaker_attribution.channels import build_channel, classify_channel
from speaker_attribution.compositor import compose_transcript
from speaker_attribution.domain.models import AttributedLine, Channel, ChannelRole, Utterance
from speaker_attribution.mappers import parse_transcription
from speaker_attribution.models import AnalysisReport
from speaker_attribution.ports.tone import ToneSummarizerPort

logger = logging.getLogger(__name__)

PRE_ATTRIBUTION_SPEAKER = "Unknown"


@dataclass
class ChannelSource:
    """A session file handed over by the host.

    Either transcription (raw provider payload) or utterances (already
    parsed) is set; utterances wins when both are.
    """
    file_name: str
    transcription: Any = None
    utterances: Optional[Sequence[Utterance]] = None


@dataclass
class Diagnosis:
    report: AnalysisReport
    master: Optional[Channel] = None
    single_speaker: list[Channel] = field(default_factory=list)


def _load_channel(source: ChannelSource) -> Channel:
    if source.utterances is not None:
        return build_channel(source.file_name, source.utterances)
    return build_channel(source.file_name, parse_transcription(source.transcription))


def summarize_tone(tone: Optional[ToneSummarizerPort], transcript: str) -> Optional[str]:
    """Best-effort tone; a failing summarizer leaves the tone unset."""
    if tone is None or not transcript:
        return None
    try:
        return tone.summarize(transcript)
    except Exception as e:
        logger.warning(f"Tone summarization failed: {e}")
        return None


def _populate_master_activity(report: AnalysisReport, master: Channel, tone: Optional[ToneSummarizerPort]) -> None:
    lines = [
        AttributedLine(PRE_ATTRIBUTION_SPEAKER, u.text.strip(), u.start, u.end, matched=False)
        for u in master.spoken_utterances
    ]
    stats = compute_conversation_statistics(lines)
    report.word_counts_per_speaker = {name: s["word_count"] for name, s in stats["speakers"].items()}
    report.utterance_counts_per_speaker = {name: s["utterance_count"] for name, s in stats["speakers"].items()}
    report.total_words = stats["totals"]["word_count"]
    report.total_utterances = stats["totals"]["utterance_count"]
    report.conversation_tone = summarize_tone(tone, compose_transcript(lines).text)


def build_analysis_report(
    sources: Sequence[ChannelSource],
    mic_assignments: Optional[Dict[int, str]] = None,
    tone: Optional[ToneSummarizerPort] = None,
) -> Diagnosis:
    """Scan the session's channels and report what is available for attribution.

    Args:
        sources: Session files with their transcription data.
        mic_assignments: 0-based mic index -> participant. Assigned mics that
            have no file are reported as not found.
        tone: Optional summarizer for the pre-attribution master transcript.

    Returns:
        Diagnosis holding the AnalysisReport and the parsed channels the
        pipeline should use (the first master and one channel per mic).
    """
    report = AnalysisReport()
    diagnosis = Diagnosis(report=report)
    for mic_index in sorted((mic_assignments or {}).keys()):
        report.mic_files_found[mic_index] = False

    for source in sources:
        classification = classify_channel(source.file_name)
        role = classification.role

        if role == ChannelRole.INDIVIDUAL_MIC:
            if report.mic_files_found.get(classification.mic_index):
                report.errors.append(
                    f"Duplicate file for mic {classification.mic_number}: ignoring {source.file_name}"
                )
                continue
            report.mic_files_found[classification.mic_index] = True
        elif role == ChannelRole.MASTER:
            if report.master_mix_found:
                report.errors.append(
                    f"Multiple master channels: using {report.master_mix_file}, ignoring {source.file_name}"
                )
                continue
            report.master_mix_found = True
            report.master_mix_file = source.file_name
        elif role == ChannelRole.PHONE:
            report.phone_found = True
        elif role == ChannelRole.SOUND_PAD:
            report.sound_pad_found = True
        else:
            report.unknown_files.append(source.file_name)
            continue

        try:
            channel = _load_channel(source)
        except Exception as e:
            logger.error(f"Error reading transcription data for {source.file_name}: {e}")
            report.errors.append(f"Could not read transcription for {source.file_name}: {e}")
            continue

        if role == ChannelRole.MASTER:
            diagnosis.master = channel
            report.master_mix_utterance_count = len(channel.utterances)
        else:
            diagnosis.single_speaker.append(channel)
            if role == ChannelRole.INDIVIDUAL_MIC:
                report.mic_file_utterance_counts[channel.mic_index] = len(channel.utterances)
                report.mic_file_speaker_always_zero[channel.mic_index] = all(
                    u.speaker_label == 0 for u in channel.utterances
                )
                if not report.mic_file_speaker_always_zero[channel.mic_index]:
                    logger.warning(f"{channel.file_name} reports more than one speaker label")

    report.total_mic_files_found = sum(1 for found in report.mic_files_found.values() if found)

    if diagnosis.master is not None:
        try:
            _populate_master_activity(report, diagnosis.master, tone)
        except Exception as e:
            logger.warning(f"Failed to generate conversation statistics: {e}")
            report.errors.append(f"Conversation statistics unavailable: {e}")

    logger.info(
        f"Analysis complete: master mix found={report.master_mix_found}, "
        f"mic files found={report.total_mic_files_found}, errors={len(report.errors)}"
    )
    return diagnosis
