"""Similarity scoring between utterances from different channels.

Timing is weighted over wording: channel transcriptions of the same speech
differ in text (bleed, mishearing) far more than in timing.
"""

from dataclasses import dataclass
from typing import Sequence

from speaker_attribution.domain.models import Utterance

DEFAULT_OVERLAP_WEIGHT = 0.7
DEFAULT_LEXICAL_WEIGHT = 0.3
DEFAULT_MATCH_THRESHOLD = 0.30


@dataclass(frozen=True)
class ScoringWeights:
    """Weights for the combined score and the strict acceptance threshold."""
    overlap_weight: float = DEFAULT_OVERLAP_WEIGHT
    lexical_weight: float = DEFAULT_LEXICAL_WEIGHT
    threshold: float = DEFAULT_MATCH_THRESHOLD

    def accepts(self, score: float) -> bool:
        return score > self.threshold


DEFAULT_WEIGHTS = ScoringWeights()


def overlap_score(a: Utterance, b: Utterance) -> float:
    """Shared time divided by the longer of the two durations, in [0, 1].

    Inverted ranges have negative duration and contribute no overlap.
    """
    overlap = max(0.0, min(a.end, b.end) - max(a.start, b.start))
    longest = max(a.end - a.start, b.end - b.start)
    if longest <= 0:
        return 0.0
    return min(1.0, max(0.0, overlap / longest))


def tokenize(text: str) -> set[str]:
    return set((text or "").lower().split())


def lexical_score(text_a: str, text_b: str) -> float:
    """Jaccard similarity of lower-cased whitespace token sets."""
    tokens_a = tokenize(text_a)
    tokens_b = tokenize(text_b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def combined_score(a: Utterance, b: Utterance, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    return (
        weights.overlap_weight * overlap_score(a, b)
        + weights.lexical_weight * lexical_score(a.text, b.text)
    )


# Grouped matching: a master utterance that merges several mic utterances.
GROUP_WINDOW_SECONDS = 5.0
GROUP_TRIGGER_SCORE = 0.5
GROUP_THRESHOLD = 0.4


def within_window(a: Utterance, b: Utterance, window: float = GROUP_WINDOW_SECONDS) -> bool:
    """Whether the two ranges overlap once each is widened by window seconds."""
    return a.start - window <= b.end + window and b.start - window <= a.end + window


def coverage_score(master_text: str, texts: Sequence[str]) -> float:
    """Fraction of the master's distinct tokens found in any of texts."""
    master_tokens = tokenize(master_text)
    if not master_tokens:
        return 0.0
    covered = set()
    for text in texts:
        covered |= master_tokens & tokenize(text)
    return len(covered) / len(master_tokens)


def span_overlap_score(master: Utterance, utterances: Sequence[Utterance]) -> float:
    """Share of the master's duration covered by the span of utterances."""
    if not utterances or master.duration <= 0:
        return 0.0
    span_start = min(u.start for u in utterances)
    span_end = max(u.end for u in utterances)
    overlap = min(master.end, span_end) - max(master.start, span_start)
    if overlap <= 0:
        return 0.0
    return min(1.0, overlap / master.duration)


def group_score(master: Utterance, utterances: Sequence[Utterance]) -> float:
    """Score a master utterance against several utterances read as one.

    0.5 * lexical similarity to the joined text, 0.3 * token coverage and
    0.2 * timing overlap of the group's span.
    """
    texts = [u.text.strip() for u in utterances]
    return (
        0.5 * lexical_score(master.text, " ".join(texts))
        + 0.3 * coverage_score(master.text, texts)
        + 0.2 * span_overlap_score(master, utterances)
    )
