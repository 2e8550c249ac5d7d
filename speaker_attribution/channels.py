"""Channel classification from file naming conventions.

MIC files are 1-based in file names (MIC1.WAV) and 0-based everywhere
else, including the caller's mic assignment table.
"""

import re
import logging
from typing import Dict, Iterable, Optional

from speaker_attribution.domain.models import (
    Channel, ChannelClassification, ChannelRole, Utterance,
    PHONE_SPEAKER, SOUND_PAD_SPEAKER,
)

logger = logging.getLogger(__name__)

_MIC_PATTERN = re.compile(r"^MIC(\d+)\.(?:WAV|MP3)$", re.IGNORECASE)
_PHONE_NAMES = {"PHONE.WAV", "PHONE.MP3"}
_SOUND_PAD_NAMES = {"SOUND_PAD.WAV", "SOUNDPAD.WAV", "SOUND_PAD.MP3", "SOUNDPAD.MP3"}
_MASTER_MARKERS = ("MIX", "MASTER")


def classify_channel(file_name: Optional[str]) -> ChannelClassification:
    """Determine a channel's role from its file name. First match wins.

    Args:
        file_name: Bare file name, e.g. "MIC2.wav" or "2024_master_mix.mp3".

    Returns:
        ChannelClassification with a 0-based mic_index for individual mics.
    """
    name = (file_name or "").strip()
    upper = name.upper()

    mic_match = _MIC_PATTERN.match(name)
    if mic_match:
        # MIC0.WAV maps to index -1; unassigned, it is labelled "Mic 0".
        return ChannelClassification(ChannelRole.INDIVIDUAL_MIC, int(mic_match.group(1)) - 1)

    if upper in _PHONE_NAMES:
        return ChannelClassification(ChannelRole.PHONE)
    if upper in _SOUND_PAD_NAMES:
        return ChannelClassification(ChannelRole.SOUND_PAD)
    if any(marker in upper for marker in _MASTER_MARKERS):
        return ChannelClassification(ChannelRole.MASTER)
    return ChannelClassification(ChannelRole.UNKNOWN)


def build_channel(file_name: str, utterances: Iterable[Utterance] = ()) -> Channel:
    """Classify file_name once and wrap the utterances in a Channel."""
    classification = classify_channel(file_name)
    return Channel(
        file_name=file_name,
        role=classification.role,
        mic_index=classification.mic_index,
        utterances=tuple(utterances),
    )


def lookup_assignment(mic_assignments: Optional[Dict[int, str]], mic_index: Optional[int]) -> Optional[str]:
    """Return the participant assigned to a 0-based mic index, ignoring blank names."""
    if not mic_assignments or mic_index is None:
        return None
    name = mic_assignments.get(mic_index)
    if name is None or not str(name).strip():
        return None
    return str(name).strip()


def resolve_owner_name(channel: Channel, mic_assignments: Optional[Dict[int, str]]) -> Optional[str]:
    """Known owner of a single-speaker channel, or None when it can't be resolved."""
    if channel.role == ChannelRole.INDIVIDUAL_MIC:
        return lookup_assignment(mic_assignments, channel.mic_index)
    if channel.role == ChannelRole.PHONE:
        return PHONE_SPEAKER
    if channel.role == ChannelRole.SOUND_PAD:
        return SOUND_PAD_SPEAKER
    return None


def placeholder_owner_name(channel: Channel) -> str:
    """Generic label for a mic with no assignment, using the 1-based file number."""
    if channel.mic_number is not None:
        return f"Mic {channel.mic_number}"
    return channel.file_name
