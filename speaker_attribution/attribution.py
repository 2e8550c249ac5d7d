"""Direct attribution for single-speaker channels.

A MIC, PHONE or SOUND_PAD channel carries exactly one voice, so every
utterance belongs to the channel owner and no scoring is needed.
"""

import re
import logging
from typing import Dict, Optional

from speaker_attribution.channels import resolve_owner_name, placeholder_owner_name
from speaker_attribution.domain.models import AttributedLine, Channel, ChannelAttribution

logger = logging.getLogger(__name__)

# Provider-rendered speaker prefixes: "Speaker 1:", "speaker 2 :", "[Speaker 3]:", "(Speaker 4):"
_SPEAKER_PREFIX = re.compile(
    r"^\s*(?:\[\s*speaker\s+\d+\s*\]|\(\s*speaker\s+\d+\s*\)|speaker\s+\d+)\s*:\s*",
    re.IGNORECASE,
)


def strip_speaker_prefix(text: str) -> str:
    """Remove a leading provider speaker label so the resolved name can replace it.

    A text that is nothing but a label is returned as-is (trimmed).
    """
    stripped = _SPEAKER_PREFIX.sub("", text or "", count=1).strip()
    return stripped or (text or "").strip()


def attribute_channel(channel: Channel, mic_assignments: Optional[Dict[int, str]] = None) -> ChannelAttribution:
    """Assign every non-blank utterance of a single-speaker channel to its owner.

    Args:
        channel: A channel classified as INDIVIDUAL_MIC, PHONE or SOUND_PAD.
        mic_assignments: 0-based mic index -> participant name.

    Returns:
        ChannelAttribution with one line per spoken utterance, in channel order.
        An unassigned mic is labelled "Mic {n}" and flagged assignment_missing.

    Raises:
        ValueError: if the channel is not a single-speaker channel.
    """
    if not channel.role.is_single_speaker:
        raise ValueError(f"{channel.file_name} is a {channel.role.value} channel, not a single-speaker channel")

    owner = resolve_owner_name(channel, mic_assignments)
    assignment_missing = owner is None
    if assignment_missing:
        owner = placeholder_owner_name(channel)
        logger.warning(
            f"No participant assigned to mic {channel.mic_index} (file {channel.file_name}); using '{owner}'"
        )

    lines = []
    for utterance in channel.utterances:
        if utterance.is_blank:
            continue
        lines.append(AttributedLine(
            speaker_name=owner,
            text=strip_speaker_prefix(utterance.text),
            source_start=utterance.start,
            source_end=utterance.end,
            match_score=0.0,
            source_file=channel.file_name,
            matched=not assignment_missing,
        ))

    logger.info(f"Attributed {len(lines)} lines from {channel.file_name} to {owner}")
    return ChannelAttribution(
        file_name=channel.file_name,
        speaker_name=owner,
        lines=lines,
        assignment_missing=assignment_missing,
    )
