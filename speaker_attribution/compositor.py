"""Transcript composition from attributed lines."""

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from speaker_attribution.domain.models import AttributedLine, ChannelAttribution


@dataclass
class ComposedTranscript:
    lines: list[AttributedLine] = field(default_factory=list)
    text: str = ""

    @property
    def rendered_lines(self) -> list[str]:
        return [line.render() for line in self.lines]


def compose_transcript(lines: Iterable[AttributedLine]) -> ComposedTranscript:
    """Render lines as "{speaker}: {text}" joined by newlines, keeping input order.

    Master-channel lines already arrive in provider (time) order, so no
    sorting happens here.
    """
    kept = [line for line in lines if line.text and line.text.strip()]
    return ComposedTranscript(lines=kept, text="\n".join(line.render() for line in kept))


def compose_channels(attributions: Sequence[ChannelAttribution]) -> ComposedTranscript:
    """Merge directly attributed channels into one transcript ordered by start time.

    The sort is stable, so lines with equal start times keep channel order.
    """
    merged = [line for attribution in attributions for line in attribution.lines]
    merged.sort(key=lambda line: line.source_start)
    return compose_transcript(merged)
