"""Conversation analytics over attributed transcript lines.

Detectors are plain lexical patterns: whole-word, case-insensitive matches
against fixed term lists. No model is involved, so results are
deterministic and easy to test.
"""

import re
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from speaker_attribution.domain.models import AttributedLine

logger = logging.getLogger(__name__)

MILD = "mild"
STRONG = "strong"

LAUGHTER_TERMS = [
    "lol", "lmao", "lmfao", "lmfaooo", "rofl", "roflmao",
    "laughing", "laughs", "laughter", "chuckle", "chuckles", "chuckling",
    "giggle", "giggles", "giggling", "snicker", "chortle", "guffaw", "cackle",
    "teehee", "hihi", "hoho", "kek", "jaja", "xd",
]
# Lengthened runs: haha, hahaa, ahahaha, haaaa, hehehe, heeheh, ...
_LAUGHTER_RUNS = [r"a*h+a+(?:h+a+)+h*", r"ha{3,}h*", r"h+e+(?:h+e+)+h*"]

MILD_PROFANITY_TERMS = [
    "damn", "dammit", "damnit", "hell", "heck", "crap", "crappy", "crappier", "crappiest",
    "piss", "pissed", "pissing", "pisses", "bloody", "bugger", "arse", "ass", "bollocks",
    "freaking", "freakin", "frickin", "fricking", "jerk", "jerks", "suck", "sucks", "sucked",
    "sucky", "screwed", "screw", "screwing", "gosh", "darn", "darned", "dang", "dangit",
    "fudge", "crud", "cripes", "crikey", "geez", "jeez", "bullcrap", "butthead", "buttface",
    "butthole", "dipstick", "douche", "tit", "tits", "boobs",
]

STRONG_PROFANITY_TERMS = [
    "fuck", "fucks", "fucked", "fucker", "fuckers", "fucking", "fuckin", "fck", "fuk",
    "motherfucker", "motherfucking", "clusterfuck", "fuckup", "fuckface", "fuckhead", "fuckwit",
    "shit", "shits", "shitty", "shitting", "shitted", "shite", "bullshit", "horseshit", "dipshit",
    "batshit", "apeshit", "chickenshit", "shithead", "shithole", "shitshow", "shitstorm", "shitload",
    "cock", "cocks", "cocksucker", "dick", "dicks", "dickhead", "dickface", "dickwad", "dickweed",
    "prick", "pricks", "twat", "twats", "cunt", "cunts", "asshole", "assholes", "asshat", "asswipe",
    "jackass", "dumbass", "smartass", "badass", "fatass", "bitch", "bitches", "bitchy", "bitching",
    "sonofabitch", "son-of-a-bitch", "whore", "whores", "slut", "sluts", "slutty", "bastard",
    "bastards", "douchebag", "scumbag", "goddamn", "goddamnit", "goddam", "wtf",
    "piece-of-shit", "holy-shit", "what-the-fuck",
]

PEJORATIVE_TERMS = [
    "stupid", "idiot", "idiots", "moron", "morons", "dumb", "dumbass", "dimwit", "airhead",
    "brainless", "lame", "pathetic", "clueless", "loser", "losers", "worthless", "useless",
    "garbage", "trash", "scum", "lowlife", "deadbeat", "slob", "sleaze", "ugly", "hideous",
    "gross", "disgusting", "repulsive", "freak", "weirdo", "creep", "creepy", "psycho",
    "lunatic", "maniac", "nutcase", "nerd", "geek", "dork", "wimp", "coward", "sissy", "brat",
    "annoying", "obnoxious", "toxic", "cringe", "cringey", "poser", "wannabe", "phony",
    "awful", "terrible", "horrible", "atrocious", "abysmal", "pitiful", "boring", "tedious",
]

INTERROGATIVE_WORDS = [
    "who", "what", "when", "where", "why", "how",
    "do", "does", "did", "is", "are", "can", "could", "would", "should",
]


def _term_pattern(terms: Sequence[str], extra: Sequence[str] = ()) -> "re.Pattern[str]":
    # Longest first so multi-part terms win over their prefixes.
    escaped = [re.escape(t) for t in sorted(set(terms), key=len, reverse=True)]
    return re.compile(r"\b(?:" + "|".join(list(extra) + escaped) + r")\b", re.IGNORECASE)


_LAUGHTER_PATTERN = _term_pattern(LAUGHTER_TERMS, _LAUGHTER_RUNS)
_STRONG_PATTERN = _term_pattern(STRONG_PROFANITY_TERMS)
# A term listed in both severities counts once, as strong.
_MILD_PATTERN = _term_pattern(sorted(set(MILD_PROFANITY_TERMS) - set(STRONG_PROFANITY_TERMS)))
_PEJORATIVE_PATTERN = _term_pattern(PEJORATIVE_TERMS)
_SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]*")
_INTERROGATIVE_PATTERN = re.compile(r"^(?:" + "|".join(INTERROGATIVE_WORDS) + r")\b", re.IGNORECASE)

COUNTED_METRICS = (
    "utterance_count", "word_count", "question_count", "laughter_count",
    "curse_word_count", "pejorative_count", "interruption_count",
)


def count_words(text: str) -> int:
    return len((text or "").split())


def find_questions(text: str) -> List[str]:
    """Extract question sentences from text.

    A sentence is a question if its terminal punctuation contains "?", or if
    it has no terminal punctuation and it (or its last comma clause) opens
    with an interrogative word. Returned phrases always end with "?".
    """
    questions = []
    for match in _SENTENCE_PATTERN.finditer(text or ""):
        sentence = match.group(0).strip()
        body = sentence.rstrip(".!?").strip()
        if not body:
            continue
        terminator = sentence[len(body):]
        if "?" in terminator:
            questions.append(body + "?")
        elif not terminator:
            last_clause = body.rsplit(",", 1)[-1].strip()
            if _INTERROGATIVE_PATTERN.match(body) or _INTERROGATIVE_PATTERN.match(last_clause):
                questions.append(body + "?")
    return questions


def find_laughter(text: str) -> List[str]:
    return [m.group(0).lower() for m in _LAUGHTER_PATTERN.finditer(text or "")]


def find_curse_words(text: str) -> List[Tuple[str, str]]:
    """Return (word, severity) pairs in order of appearance."""
    found = [(m.start(), m.group(0).lower(), STRONG) for m in _STRONG_PATTERN.finditer(text or "")]
    taken = [(m.start(), m.end()) for m in _STRONG_PATTERN.finditer(text or "")]
    for m in _MILD_PATTERN.finditer(text or ""):
        # Skip mild hits inside a hyphenated strong phrase.
        if any(start <= m.start() < end for start, end in taken):
            continue
        found.append((m.start(), m.group(0).lower(), MILD))
    found.sort(key=lambda item: item[0])
    return [(word, severity) for _, word, severity in found]


def find_pejoratives(text: str) -> List[str]:
    return [m.group(0).lower() for m in _PEJORATIVE_PATTERN.finditer(text or "")]


def _empty_speaker_stats() -> dict:
    return {
        "utterance_count": 0,
        "word_count": 0,
        "question_count": 0,
        "questions": [],
        "laughter_count": 0,
        "laughter_words": [],
        "curse_word_count": 0,
        "curse_words": [],
        "pejorative_count": 0,
        "pejorative_words": [],
        "interruption_count": 0,
    }


def count_interruptions(lines: Sequence[AttributedLine], overlap_threshold: float = 0.5) -> Dict[str, int]:
    """Count speaker changes where the new speaker starts before the previous one finished.

    Starting within overlap_threshold seconds of the previous end is treated
    as a natural hand-off, not an interruption.
    """
    counts: Dict[str, int] = {}
    for previous, current in zip(lines, lines[1:]):
        if current.speaker_name == previous.speaker_name:
            continue
        if current.source_start < previous.source_end - overlap_threshold:
            counts[current.speaker_name] = counts.get(current.speaker_name, 0) + 1
    return counts


def _top_speaker(speakers: Dict[str, dict], metric: str, lowest: bool = False) -> Optional[str]:
    ranked = [(name, data[metric]) for name, data in speakers.items()]
    if not ranked:
        return None
    if lowest:
        return min(ranked, key=lambda item: item[1])[0]
    name, value = max(ranked, key=lambda item: item[1])
    return name if value > 0 else None


def compute_conversation_statistics(
    lines: Iterable[AttributedLine],
    interruption_overlap: float = 0.5,
) -> dict:
    """Compute per-speaker and total conversation statistics.

    Args:
        lines: Attributed lines in transcript order.
        interruption_overlap: Seconds of overlap tolerated before a speaker
            change counts as an interruption.

    Returns:
        Dict with "speakers" (name -> counters and matched tokens), "totals"
        (sum of every counter), "total_speakers" and highlight names.
    """
    ordered = [line for line in lines if line.text and line.text.strip()]
    speakers: Dict[str, dict] = {}

    for line in ordered:
        stats = speakers.setdefault(line.speaker_name, _empty_speaker_stats())
        text = line.text.strip()

        stats["utterance_count"] += 1
        stats["word_count"] += count_words(text)

        questions = find_questions(text)
        stats["question_count"] += len(questions)
        stats["questions"].extend(questions)

        laughter = find_laughter(text)
        stats["laughter_count"] += len(laughter)
        stats["laughter_words"].extend(laughter)

        curses = find_curse_words(text)
        stats["curse_word_count"] += len(curses)
        stats["curse_words"].extend({"word": word, "severity": severity} for word, severity in curses)

        pejoratives = find_pejoratives(text)
        stats["pejorative_count"] += len(pejoratives)
        stats["pejorative_words"].extend(pejoratives)

    for name, count in count_interruptions(ordered, interruption_overlap).items():
        speakers[name]["interruption_count"] += count

    totals = {metric: sum(s[metric] for s in speakers.values()) for metric in COUNTED_METRICS}

    logger.debug(
        f"Conversation stats: {totals['word_count']} words, {totals['utterance_count']} utterances, "
        f"{len(speakers)} speakers"
    )

    return {
        "speakers": speakers,
        "totals": totals,
        "total_speakers": len(speakers),
        "most_talkative": _top_speaker(speakers, "word_count"),
        "quietest": _top_speaker(speakers, "word_count", lowest=True),
        "most_inquisitive": _top_speaker(speakers, "question_count"),
        "most_profane": _top_speaker(speakers, "curse_word_count"),
    }
