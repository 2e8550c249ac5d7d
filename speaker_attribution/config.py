import os
import logging
from typing import Dict, Any

from dotenv import load_dotenv

from speaker_attribution.scoring import (
    ScoringWeights, DEFAULT_OVERLAP_WEIGHT, DEFAULT_LEXICAL_WEIGHT, DEFAULT_MATCH_THRESHOLD,
)

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8002
DEFAULT_MAX_WORKERS = 1
DEFAULT_UNMATCHED_PREVIEW = 50
DEFAULT_INTERRUPTION_OVERLAP = 0.5


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.overlap_weight = float(os.environ.get("ATTRIBUTION_OVERLAP_WEIGHT", DEFAULT_OVERLAP_WEIGHT))
        self.lexical_weight = float(os.environ.get("ATTRIBUTION_LEXICAL_WEIGHT", DEFAULT_LEXICAL_WEIGHT))
        self.match_threshold = float(os.environ.get("ATTRIBUTION_MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD))
        self.max_workers = max(1, int(os.environ.get("ATTRIBUTION_MAX_WORKERS", DEFAULT_MAX_WORKERS)))
        self.unmatched_preview = int(os.environ.get("ATTRIBUTION_UNMATCHED_PREVIEW", DEFAULT_UNMATCHED_PREVIEW))
        self.prefer_mic_text = _env_flag("ATTRIBUTION_PREFER_MIC_TEXT")
        self.deduce_missing_speaker = _env_flag("ATTRIBUTION_DEDUCE_MISSING_SPEAKER")
        self.interruption_overlap = float(
            os.environ.get("ATTRIBUTION_INTERRUPTION_OVERLAP", DEFAULT_INTERRUPTION_OVERLAP)
        )
        self.tone = os.environ.get("ATTRIBUTION_TONE", "lexical").strip().lower()
        self.group_matching = _env_flag("ATTRIBUTION_GROUP_MATCHING")

    def scoring_weights(self) -> ScoringWeights:
        return ScoringWeights(
            overlap_weight=self.overlap_weight,
            lexical_weight=self.lexical_weight,
            threshold=self.match_threshold,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "overlap_weight": self.overlap_weight,
            "lexical_weight": self.lexical_weight,
            "match_threshold": self.match_threshold,
            "max_workers": self.max_workers,
            "unmatched_preview": self.unmatched_preview,
            "prefer_mic_text": self.prefer_mic_text,
            "deduce_missing_speaker": self.deduce_missing_speaker,
            "interruption_overlap": self.interruption_overlap,
            "tone": self.tone,
            "group_matching": self.group_matching,
        }


config = Config()


def get_config() -> Config:
    return config


def create_tone_adapter(cfg: Config):
    """Create the tone summarizer selected by ATTRIBUTION_TONE, or None."""
    if cfg.tone == "none":
        return None
    if cfg.tone == "lexical":
        from speaker_attribution.adapters.local.lexical_tone import LexicalToneAdapter
        return LexicalToneAdapter()
    raise ValueError(f"Unknown ATTRIBUTION_TONE: {cfg.tone!r}. Valid options: lexical, none")


def create_progress_adapter():
    """Create the progress sink (always logging)."""
    from speaker_attribution.adapters.local.log_progress import LogProgressAdapter
    return LogProgressAdapter()


def create_use_case(cfg: Config):
    """Wire the attribution use case from configuration."""
    from speaker_attribution.use_cases.attribute_speakers import AttributeSpeakersUseCase

    use_case = AttributeSpeakersUseCase(
        progress=create_progress_adapter(),
        tone=create_tone_adapter(cfg),
        weights=cfg.scoring_weights(),
        max_workers=cfg.max_workers,
        unmatched_preview=cfg.unmatched_preview,
        prefer_mic_text=cfg.prefer_mic_text,
        deduce_missing_speaker=cfg.deduce_missing_speaker,
        interruption_overlap=cfg.interruption_overlap,
        group_matching=cfg.group_matching,
    )
    logger.info(f"Attribution use case: weights={cfg.scoring_weights()}, workers={cfg.max_workers}, tone={cfg.tone}")
    return use_case
