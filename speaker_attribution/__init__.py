"""Attribute multi-channel session transcriptions to named speakers."""

__version__ = "1.0.0"
