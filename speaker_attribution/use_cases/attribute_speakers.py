"""AttributeSpeakersUseCase: orchestrates the speaker attribution pipeline.

Stages run in a fixed order: diagnose the channels, attribute single-speaker
channels directly, align the master channel, composite the transcript,
analyze it, and package the result. Each stage is a pure transformation of
the previous stage's output; missing inputs short-circuit to empty output
instead of raising.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from speaker_attribution.alignment import CandidateChannel, align_master_channel
from speaker_attribution.analytics import compute_conversation_statistics
from speaker_attribution.attribution import attribute_channel
from speaker_attribution.compositor import compose_channels, compose_transcript
from speaker_attribution.diagnostics import ChannelSource, build_analysis_report, summarize_tone
from speaker_attribution.domain.models import AttributedLine, ChannelRole, PipelineStage
from speaker_attribution.mappers import lines_to_dtos, statistics_to_dto
from speaker_attribution.models import AnalysisReport, AttributionResult
from speaker_attribution.ports.progress import ProgressPort
from speaker_attribution.ports.tone import ToneSummarizerPort
from speaker_attribution.scoring import ScoringWeights, DEFAULT_WEIGHTS

logger = logging.getLogger(__name__)


@dataclass
class AttributionRequest:
    """All inputs for one attribution run."""
    channels: List[ChannelSource] = field(default_factory=list)
    mic_assignments: Dict[int, str] = field(default_factory=dict)


def format_unmatched(line: AttributedLine) -> str:
    return f"[{line.source_start:.2f}-{line.source_end:.2f}] {line.text.strip()}"


class AttributeSpeakersUseCase:
    def __init__(
        self,
        progress: ProgressPort,
        tone: Optional[ToneSummarizerPort] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        max_workers: int = 1,
        unmatched_preview: int = 50,
        prefer_mic_text: bool = False,
        deduce_missing_speaker: bool = False,
        interruption_overlap: float = 0.5,
        group_matching: bool = False,
    ):
        self._progress = progress
        self._tone = tone
        self._weights = weights
        self._max_workers = max_workers
        self._unmatched_preview = unmatched_preview
        self._prefer_mic_text = prefer_mic_text
        self._deduce_missing_speaker = deduce_missing_speaker
        self._interruption_overlap = interruption_overlap
        self._group_matching = group_matching

    def diagnose(self, req: AttributionRequest) -> AnalysisReport:
        """Pre-flight report: which channels exist and whether alignment can run."""
        return build_analysis_report(req.channels, req.mic_assignments, tone=self._tone).report

    def execute(self, req: AttributionRequest) -> AttributionResult:
        """Run the full pipeline. Always returns a result; failures set success=False."""
        job_id = uuid.uuid4().hex[:12]
        result = AttributionResult(stage=PipelineStage.NOT_RUN.value)
        try:
            self._run(job_id, req, result)
        except Exception as e:
            logger.exception(f"[{job_id}] Speaker attribution failed")
            result.success = False
            result.error_message = str(e)
        return result

    def _advance(self, job_id: str, result: AttributionResult, stage: PipelineStage, detail: Optional[str] = None) -> None:
        result.stage = stage.value
        self._progress.report(job_id, stage, detail=detail)

    def _run(self, job_id: str, req: AttributionRequest, result: AttributionResult) -> None:
        assignments = req.mic_assignments or {}

        # 1. Diagnose
        diagnosis = build_analysis_report(req.channels, assignments)
        result.report = diagnosis.report
        self._advance(
            job_id, result, PipelineStage.DIAGNOSED,
            detail=f"master={diagnosis.report.master_mix_found}, mics={diagnosis.report.total_mic_files_found}",
        )

        # 2. Direct attribution for single-speaker channels
        attributions = []
        candidates = []
        for channel in diagnosis.single_speaker:
            attribution = attribute_channel(channel, assignments)
            attributions.append(attribution)
            result.channel_transcripts[channel.file_name] = compose_transcript(attribution.lines).text
            if attribution.assignment_missing:
                result.diagnostics.append(
                    f"No participant assigned to mic {channel.mic_number} ({channel.file_name}); "
                    f"lines labelled '{attribution.speaker_name}'"
                )
            if channel.spoken_utterances:
                candidates.append(CandidateChannel(
                    channel, attribution.speaker_name, assigned=not attribution.assignment_missing,
                ))
                if channel.role == ChannelRole.INDIVIDUAL_MIC:
                    result.mic_files_used.append(channel.mic_index)
        result.mic_files_used.sort()

        # 3. Align the master channel, or fall back to a lone single-speaker channel
        master = diagnosis.master
        if master is not None and master.spoken_utterances:
            alignment = align_master_channel(
                master,
                candidates,
                mic_assignments=assignments,
                weights=self._weights,
                max_workers=self._max_workers,
                prefer_mic_text=self._prefer_mic_text,
                deduce_missing=self._deduce_missing_speaker,
                group_matching=self._group_matching,
            )
            lines = alignment.lines
            result.fallback_used = alignment.fallback_used
            result.deduced_speaker = alignment.deduced_speaker
            if alignment.fallback_used:
                result.diagnostics.append(
                    "No individual channel data; speakers mapped from master diarization labels"
                )
            composed = compose_transcript(lines)
        else:
            spoken = [a for a in attributions if a.lines]
            if not diagnosis.report.master_mix_found and len(spoken) == 1:
                logger.info(f"[{job_id}] No master channel; using {spoken[0].file_name} as the transcript")
                composed = compose_channels(spoken)
            else:
                result.success = False
                result.error_message = self._missing_master_message(diagnosis.report, master)
                logger.warning(f"[{job_id}] {result.error_message}")
                return
        self._advance(job_id, result, PipelineStage.ALIGNED, detail=f"{len(composed.lines)} lines")

        # 4. Composite
        result.output_transcript = composed.text
        result.attributed_lines = lines_to_dtos(composed.lines)
        self._advance(job_id, result, PipelineStage.COMPOSITED)

        # 5. Analyze
        raw_stats = compute_conversation_statistics(composed.lines, self._interruption_overlap)
        tone = summarize_tone(self._tone, composed.text)
        result.statistics = statistics_to_dto(raw_stats, conversation_tone=tone)
        self._advance(job_id, result, PipelineStage.ANALYZED)

        # 6. Report
        matched_lines = [line for line in composed.lines if line.matched]
        unmatched_lines = [line for line in composed.lines if not line.matched]
        result.total_utterances = len(composed.lines)
        result.matched_utterances = len(matched_lines)
        result.unmatched_utterances = len(unmatched_lines)
        for line in matched_lines:
            result.utterances_per_person[line.speaker_name] = result.utterances_per_person.get(line.speaker_name, 0) + 1
        result.unmatched_texts = [format_unmatched(line) for line in unmatched_lines[:self._unmatched_preview]]
        result.success = True
        self._advance(
            job_id, result, PipelineStage.REPORTED,
            detail=f"{result.matched_utterances} matched, {result.unmatched_utterances} unmatched",
        )
        logger.info(
            f"[{job_id}] Speaker attribution complete: {result.matched_utterances} matched, "
            f"{result.unmatched_utterances} unmatched out of {result.total_utterances} utterances"
        )

    @staticmethod
    def _missing_master_message(report: AnalysisReport, master) -> str:
        if not report.master_mix_found:
            return "Master mix transcription not found"
        if master is None:
            return "Invalid master mix transcription data"
        return "Master mix transcription has no utterances"
