"""Scheduled, batched summarization of chat transcripts."""

__version__ = "0.1.0"
