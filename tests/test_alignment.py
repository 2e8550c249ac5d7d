import pytest

from conftest import utterance
from speaker_attribution.alignment import (
    CandidateChannel, DEDUCED_MATCH_SCORE, align_master_channel, deduce_missing_speaker,
    find_best_match, find_group_match, map_diarization_labels, should_prefer_mic_text,
)
from speaker_attribution.channels import build_channel
from speaker_attribution.domain.models import AttributedLine, UNKNOWN_SPEAKER


@pytest.fixture
def candidates(bob_channel, alice_channel):
    return [CandidateChannel(bob_channel, "Bob"), CandidateChannel(alice_channel, "Alice")]


def test_matches_overlapping_mic(master_channel, candidates, mic_assignments):
    result = align_master_channel(master_channel, candidates, mic_assignments)

    assert [line.speaker_name for line in result.lines] == ["Bob", "Alice", UNKNOWN_SPEAKER]
    assert result.lines[0].match_score == pytest.approx(0.965)
    assert result.lines[0].matched
    assert not result.lines[2].matched
    assert not result.fallback_used


def test_one_line_per_spoken_master_utterance(candidates):
    master = build_channel("MASTER_MIX.WAV", [
        utterance(0.0, 2.0, "hello there"),
        utterance(2.0, 2.5, "  "),
        utterance(3.0, 5.0, "how are you doing today"),
    ])
    result = align_master_channel(master, candidates)
    assert len(result.lines) == 2
    assert [line.source_start for line in result.lines] == [0.0, 3.0]


def test_lines_follow_master_order(candidates):
    master = build_channel("MASTER_MIX.WAV", [
        utterance(3.0, 5.0, "how are you doing today"),
        utterance(0.0, 2.0, "hello there"),
    ])
    result = align_master_channel(master, candidates)
    assert [line.speaker_name for line in result.lines] == ["Alice", "Bob"]


def test_unmatched_utterance_goes_to_unknown(candidates):
    master = build_channel("MASTER_MIX.WAV", [utterance(10.0, 12.0, "yeah totally")])
    line = align_master_channel(master, candidates).lines[0]
    assert line.render() == "Unknown Speaker: yeah totally"
    assert line.match_score == 0.0


def test_score_at_threshold_is_rejected():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 2.0, "hello there")])
    mic = build_channel("MIC1.WAV", [utterance(5.0, 7.0, "hello there")])
    line = align_master_channel(master, [CandidateChannel(mic, "Bob")]).lines[0]
    assert line.speaker_name == UNKNOWN_SPEAKER


def test_timing_alone_can_match():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 2.0, "good morning")])
    mic = build_channel("MIC1.WAV", [utterance(1.0, 3.0, "hi everyone")])
    line = align_master_channel(master, [CandidateChannel(mic, "Bob")]).lines[0]
    assert line.speaker_name == "Bob"
    assert line.match_score == pytest.approx(0.35)


def test_ties_go_to_first_candidate():
    master_utterance = utterance(0.0, 2.0, "same")
    first = build_channel("MIC1.WAV", [utterance(0.0, 2.0, "same")])
    second = build_channel("MIC2.WAV", [utterance(0.0, 2.0, "same")])
    best = find_best_match(master_utterance, [CandidateChannel(first, "Bob"), CandidateChannel(second, "Alice")])
    assert best.owner_name == "Bob"
    assert best.source_file == "MIC1.WAV"


def test_blank_candidate_utterances_are_skipped():
    master_utterance = utterance(0.0, 2.0, "hello")
    mic = build_channel("MIC1.WAV", [utterance(0.0, 2.0, "   ")])
    assert find_best_match(master_utterance, [CandidateChannel(mic, "Bob")]) is None


def test_fallback_maps_diarization_labels():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 1.0, "yeah totally", speaker=2)])
    result = align_master_channel(master, [], {0: "Ann", 1: "Ben", 2: "Cal"})
    assert result.fallback_used
    assert result.lines[0].render() == "Cal: yeah totally"
    assert result.lines[0].matched


def test_fallback_used_when_candidates_are_silent():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 1.0, "hi", speaker=0)])
    silent = build_channel("MIC1.WAV", [utterance(0.0, 1.0, "")])
    result = align_master_channel(master, [CandidateChannel(silent, "Bob")], {0: "Ann"})
    assert result.fallback_used
    assert result.lines[0].speaker_name == "Ann"


def test_fallback_unmapped_label_is_numbered():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 1.0, "Speaker 5: hi", speaker=4)])
    lines = map_diarization_labels(master, {0: "Ann"})
    assert lines[0].render() == "Speaker 5: hi"
    assert not lines[0].matched


def test_threaded_alignment_matches_sequential(master_channel, candidates, mic_assignments):
    sequential = align_master_channel(master_channel, candidates, mic_assignments)
    threaded = align_master_channel(master_channel, candidates, mic_assignments, max_workers=4)
    assert threaded.lines == sequential.lines


def test_alignment_is_idempotent(master_channel, candidates, mic_assignments):
    first = align_master_channel(master_channel, candidates, mic_assignments)
    second = align_master_channel(master_channel, candidates, mic_assignments)
    assert first.lines == second.lines


def test_prefer_mic_text_replaces_master_text():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 2.0, "hello there", confidence=0.4)])
    mic = build_channel("MIC1.WAV", [utterance(0.0, 2.0, "hello there friend", confidence=0.95)])
    candidates = [CandidateChannel(mic, "Bob")]

    default = align_master_channel(master, candidates).lines[0]
    preferred = align_master_channel(master, candidates, prefer_mic_text=True).lines[0]

    assert default.text == "hello there"
    assert preferred.text == "hello there friend"
    assert preferred.speaker_name == "Bob"


@pytest.mark.parametrize("master, mic, score, expected", [
    (utterance(0, 1, "a b", confidence=0.9), utterance(0, 1, "a b", confidence=0.9), 0.95, True),
    (utterance(0, 1, "a b", confidence=0.5), utterance(0, 1, "a b", confidence=0.7), 0.4, True),
    (utterance(0, 1, "a b", confidence=0.9), utterance(0, 1, "a b", confidence=0.9), 0.5, False),
    (utterance(0, 1, "a b", confidence=0.4), utterance(0, 1, "a b", confidence=0.75), 0.4, True),
    (utterance(0, 1, "a", confidence=0.9), utterance(0, 1, "a b c", confidence=0.9), 0.65, True),
])
def test_should_prefer_mic_text(master, mic, score, expected):
    assert should_prefer_mic_text(master, mic, score) is expected


def _unknown(start):
    return AttributedLine(UNKNOWN_SPEAKER, "hm", start, start + 1, matched=False)


def test_deduce_missing_speaker_assigns_lone_absentee():
    lines = [AttributedLine("Bob", "hi", 0, 1, match_score=0.9), _unknown(2)]
    deduced, name = deduce_missing_speaker(lines, {0: "Bob", 1: "Alice"})
    assert name == "Alice"
    assert deduced[1].speaker_name == "Alice"
    assert deduced[1].match_score == DEDUCED_MATCH_SCORE
    assert deduced[1].matched
    assert deduced[0] == lines[0]


def test_deduce_missing_speaker_needs_exactly_one_absentee():
    lines = [_unknown(0)]
    deduced, name = deduce_missing_speaker(lines, {0: "Bob", 1: "Alice"})
    assert name is None
    assert deduced == lines


def test_alignment_with_deduction(mic_assignments):
    master = build_channel("MASTER_MIX.WAV", [
        utterance(0.0, 2.0, "hello there"),
        utterance(10.0, 12.0, "yeah totally"),
    ])
    bob = build_channel("MIC1.WAV", [utterance(0.1, 2.1, "hello there")])
    result = align_master_channel(master, [CandidateChannel(bob, "Bob")], mic_assignments, deduce_missing=True)
    assert result.deduced_speaker == "Alice"
    assert [line.speaker_name for line in result.lines] == ["Bob", "Alice"]


@pytest.fixture
def split_session():
    """Master merges three of Bob's mic utterances into one long line."""
    master = build_channel("MASTER_MIX.WAV", [
        utterance(0.0, 12.0, "I think we should go see the new movie tonight"),
    ])
    bob = build_channel("MIC1.WAV", [
        utterance(0.0, 2.0, "I think"),
        utterance(4.0, 6.0, "we should go see"),
        utterance(9.0, 11.0, "the new movie tonight"),
    ])
    alice = build_channel("MIC2.WAV", [utterance(30.0, 32.0, "something else entirely")])
    return master, [CandidateChannel(bob, "Bob"), CandidateChannel(alice, "Alice")]


def test_split_utterances_stay_unknown_by_default(split_session):
    master, candidates = split_session
    line = align_master_channel(master, candidates).lines[0]
    assert line.speaker_name == UNKNOWN_SPEAKER
    assert not line.matched


def test_group_matching_attributes_split_utterances(split_session):
    master, candidates = split_session
    line = align_master_channel(master, candidates, group_matching=True).lines[0]
    assert line.speaker_name == "Bob"
    assert line.matched
    assert line.match_score == pytest.approx(0.5 + 0.3 + 0.2 * 11 / 12)
    assert line.text == "I think we should go see the new movie tonight"


def test_group_match_ignores_channels_outside_the_window(split_session):
    master, candidates = split_session
    assert find_group_match(master.utterances[0], candidates[1:]) is None


def test_group_match_needs_more_than_threshold():
    master_utterance = utterance(0.0, 12.0, "hello")
    mic = build_channel("MIC1.WAV", [utterance(14.0, 15.0, "unrelated words")])
    assert find_group_match(master_utterance, [CandidateChannel(mic, "Bob")]) is None


def test_group_matching_keeps_strong_single_matches(master_channel, candidates):
    plain = align_master_channel(master_channel, candidates)
    grouped = align_master_channel(master_channel, candidates, group_matching=True)
    assert [entry.speaker_name for entry in grouped.lines[:2]] == [entry.speaker_name for entry in plain.lines[:2]]
    assert grouped.lines[0].match_score == plain.lines[0].match_score


def test_match_to_unassigned_channel_keeps_placeholder_but_is_unmatched():
    master = build_channel("MASTER_MIX.WAV", [utterance(0.0, 2.0, "hello there")])
    mic = build_channel("MIC3.WAV", [utterance(0.1, 2.1, "hello there")])
    line = align_master_channel(master, [CandidateChannel(mic, "Mic 3", assigned=False)]).lines[0]
    assert line.speaker_name == "Mic 3"
    assert line.match_score == pytest.approx(0.965)
    assert not line.matched
