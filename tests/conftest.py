# File: tests/conftest.py

import logging

import pytest

from speaker_attribution.channels import build_channel
from speaker_attribution.domain.models import AttributedLine, Utterance


def utterance(start, end, text, speaker=0, confidence=0.9):
    """Shorthand for building a domain Utterance in tests."""
    return Utterance(start=start, end=end, text=text, confidence=confidence, speaker_label=speaker)


def line(speaker, text, start=0.0, end=1.0, matched=True):
    return AttributedLine(speaker_name=speaker, text=text, source_start=start, source_end=end, matched=matched)


def provider_payload(*utterances):
    """Wrap utterance dicts the way the transcription provider returns them."""
    return {
        "id": "job-1",
        "status": "done",
        "result": {
            "transcription": {
                "full_transcript": " ".join(u["text"] for u in utterances),
                "utterances": list(utterances),
            }
        },
    }


def provider_utterance(start, end, text, speaker=0, confidence=0.9):
    return {
        "start": start,
        "end": end,
        "text": text,
        "confidence": confidence,
        "speaker": speaker,
        "channel": 0,
        "words": [],
    }


class RecordingProgress:
    """Progress sink that keeps every reported stage."""

    def __init__(self):
        self.stages = []

    def report(self, job_id, stage, detail=None):
        self.stages.append(stage)


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    """Keep test output readable."""
    logging.getLogger("speaker_attribution").setLevel(logging.WARNING)
    yield


@pytest.fixture
def mic_assignments():
    return {0: "Bob", 1: "Alice"}


@pytest.fixture
def master_channel():
    return build_channel("MASTER_MIX.WAV", [
        utterance(0.0, 2.0, "hello there", speaker=1),
        utterance(3.0, 5.0, "how are you doing today", speaker=0),
        utterance(10.0, 12.0, "yeah totally", speaker=1),
    ])


@pytest.fixture
def bob_channel():
    return build_channel("MIC1.WAV", [utterance(0.1, 2.1, "hello there")])


@pytest.fixture
def alice_channel():
    return build_channel("MIC2.WAV", [utterance(3.0, 5.1, "how are you doing today")])


@pytest.fixture
def session_sources():
    """Raw provider payloads for a two-mic session with a master mix."""
    from speaker_attribution.diagnostics import ChannelSource

    return [
        ChannelSource("MASTER_MIX.WAV", provider_payload(
            provider_utterance(0.0, 2.0, "Speaker 2: hello there", speaker=1),
            provider_utterance(3.0, 5.0, "how are you doing today?", speaker=0),
            provider_utterance(10.0, 12.0, "yeah totally", speaker=1),
        )),
        ChannelSource("MIC1.WAV", provider_payload(provider_utterance(0.1, 2.1, "hello there"))),
        ChannelSource("MIC2.WAV", provider_payload(provider_utterance(3.0, 5.1, "how are you doing today?"))),
    ]
