"""Summarization system for chat transcripts."""

from .config import SummarizerConfig
from .errors import (
    CapabilityMissingError,
    ConcurrentAttemptError,
    EmptyResultError,
    InvalidConfigError,
    NoContentError,
    ParseFailureError,
    SummarizerError,
)
from .reducer import HierarchicalReducer
from .scheduler import ConversationSource, GenerationLock, SchedulerState, SummarySession
from .summarizer import LLMProtocol, Summarizer, build_merge_prompt, render_prompt
from .summary_format import ParsedSummary, export_summary, parse_summary
from .summary_store import Provenance, SummaryRecord, SummaryStore
from .transcript import Conversation, Message, Role, collect_transcript, make_batches

__all__ = [
    "SummarizerConfig",
    "SummarizerError",
    "CapabilityMissingError",
    "ConcurrentAttemptError",
    "EmptyResultError",
    "InvalidConfigError",
    "NoContentError",
    "ParseFailureError",
    "HierarchicalReducer",
    "ConversationSource",
    "GenerationLock",
    "SchedulerState",
    "SummarySession",
    "LLMProtocol",
    "Summarizer",
    "build_merge_prompt",
    "render_prompt",
    "ParsedSummary",
    "export_summary",
    "parse_summary",
    "Provenance",
    "SummaryRecord",
    "SummaryStore",
    "Conversation",
    "Message",
    "Role",
    "collect_transcript",
    "make_batches",
]
