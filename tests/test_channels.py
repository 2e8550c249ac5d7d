import pytest

from speaker_attribution.channels import (
    build_channel, classify_channel, lookup_assignment, placeholder_owner_name, resolve_owner_name,
)
from speaker_attribution.domain.models import ChannelRole, PHONE_SPEAKER, SOUND_PAD_SPEAKER


@pytest.mark.parametrize("file_name, role, mic_index", [
    ("MIC1.WAV", ChannelRole.INDIVIDUAL_MIC, 0),
    ("mic2.wav", ChannelRole.INDIVIDUAL_MIC, 1),
    ("MIC12.mp3", ChannelRole.INDIVIDUAL_MIC, 11),
    ("PHONE.WAV", ChannelRole.PHONE, None),
    ("phone.mp3", ChannelRole.PHONE, None),
    ("SOUND_PAD.WAV", ChannelRole.SOUND_PAD, None),
    ("SoundPad.wav", ChannelRole.SOUND_PAD, None),
    ("MASTER_MIX.WAV", ChannelRole.MASTER, None),
    ("2024-01-05_mix.mp3", ChannelRole.MASTER, None),
    ("notes.txt", ChannelRole.UNKNOWN, None),
    ("", ChannelRole.UNKNOWN, None),
    (None, ChannelRole.UNKNOWN, None),
])
def test_classify_channel(file_name, role, mic_index):
    classification = classify_channel(file_name)
    assert classification.role == role
    assert classification.mic_index == mic_index


def test_mic_zero_is_an_individual_mic():
    """File numbers are 1-based, so MIC0 lands on index -1 and keeps its file number."""
    classification = classify_channel("MIC0.WAV")
    assert classification.role == ChannelRole.INDIVIDUAL_MIC
    assert classification.mic_index == -1
    assert classification.mic_number == 0
    assert placeholder_owner_name(build_channel("MIC0.WAV")) == "Mic 0"
    assert resolve_owner_name(build_channel("MIC0.WAV"), {0: "Bob"}) is None


def test_mic_pattern_takes_precedence_over_mix_marker():
    assert classify_channel("MIC3.WAV").role == ChannelRole.INDIVIDUAL_MIC
    assert classify_channel("MIC_MIX.WAV").role == ChannelRole.MASTER


def test_mic_number_is_one_based():
    assert classify_channel("MIC4.WAV").mic_number == 4
    assert classify_channel("PHONE.WAV").mic_number is None


def test_lookup_assignment_ignores_blank_names():
    assignments = {0: "Bob", 1: "   ", 2: ""}
    assert lookup_assignment(assignments, 0) == "Bob"
    assert lookup_assignment(assignments, 1) is None
    assert lookup_assignment(assignments, 2) is None
    assert lookup_assignment(assignments, 5) is None
    assert lookup_assignment(None, 0) is None
    assert lookup_assignment(assignments, None) is None


def test_resolve_owner_name_by_role():
    assignments = {0: "Bob"}
    assert resolve_owner_name(build_channel("MIC1.WAV"), assignments) == "Bob"
    assert resolve_owner_name(build_channel("MIC2.WAV"), assignments) is None
    assert resolve_owner_name(build_channel("PHONE.WAV"), {}) == PHONE_SPEAKER
    assert resolve_owner_name(build_channel("SOUND_PAD.WAV"), {}) == SOUND_PAD_SPEAKER
    assert resolve_owner_name(build_channel("MASTER_MIX.WAV"), assignments) is None


def test_placeholder_uses_file_number():
    assert placeholder_owner_name(build_channel("MIC3.WAV")) == "Mic 3"
