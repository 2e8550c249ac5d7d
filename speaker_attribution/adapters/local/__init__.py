"""Local adapters: logging progress sink and keyword tone heuristic."""

from .lexical_tone import LexicalToneAdapter
from .log_progress import LogProgressAdapter

__all__ = ["LexicalToneAdapter", "LogProgressAdapter"]
