"""Exception types raised by the summarization pipeline."""

from __future__ import annotations


class SummarizerError(Exception):
    """Base class for all summarization failures."""


class CapabilityMissingError(SummarizerError):
    """Raised when no usable text-generation backend was supplied."""


class EmptyResultError(SummarizerError):
    """Raised when the backend returned nothing usable."""


class NoContentError(SummarizerError):
    """Raised when there is no conversation or no eligible message to summarize."""


class ParseFailureError(SummarizerError):
    """Raised when imported text matches none of the known summary layouts."""


class ConcurrentAttemptError(SummarizerError):
    """Raised when a summarization is requested while another one is running."""


class InvalidConfigError(SummarizerError, ValueError):
    """Raised when a summarizer configuration value is out of range."""
