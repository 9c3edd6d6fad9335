"""Decides when a conversation gets summarized and runs the pipeline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any, Protocol

from .config import SummarizerConfig
from .errors import ConcurrentAttemptError, NoContentError, SummarizerError
from .reducer import HierarchicalReducer
from .summarizer import Summarizer
from .summary_store import Provenance, SummaryRecord, SummaryStore, now_ms
from .transcript import Conversation, collect_transcript, make_batches

_LOG = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    GENERATING = "generating"


class ConversationSource(Protocol):
    """Host-side accessor for the conversation currently open."""

    def current_conversation(self) -> Conversation | None: ...


class GenerationLock:
    """Re-entrancy lock plus the completion time used for the cooldown.

    Only one holder at a time; :meth:`hold` always releases and stamps
    ``last_completion`` on exit, whether the body succeeded or raised.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.state = SchedulerState.IDLE
        self.last_completion: float | None = None

    @property
    def is_generating(self) -> bool:
        return self.state is SchedulerState.GENERATING

    def in_cooldown(self, cooldown_seconds: float) -> bool:
        if self.last_completion is None:
            return False
        return self._clock() - self.last_completion < cooldown_seconds

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self.is_generating:
            raise ConcurrentAttemptError("A summary is already being generated")
        self.state = SchedulerState.GENERATING
        try:
            yield
        finally:
            self.state = SchedulerState.IDLE
            self.last_completion = self._clock()


class SummarySession:
    """Owns the config, store, summarizer and lock for one process.

    Every pipeline entry point goes through this object so the guard state is
    never shared implicitly.
    """

    def __init__(
        self,
        config: SummarizerConfig,
        store: SummaryStore,
        llm: Any,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session.

        Args:
            config: Summarizer settings
            store: Where finished summaries are written
            llm: Text generator (object with async generate() or async callable)
            clock: Monotonic clock in seconds, used for the cooldown

        Raises:
            CapabilityMissingError: if ``llm`` cannot generate text
        """
        self.config = config
        self.store = store
        self.summarizer = Summarizer(llm, config.prompt_template)
        self.reducer = HierarchicalReducer(self.summarizer)
        self.lock = GenerationLock(clock)

    @property
    def state(self) -> SchedulerState:
        return self.lock.state

    def update_config(self, config: SummarizerConfig) -> None:
        """Swap in a new config; the prompt template takes effect on the next run."""
        self.config = config
        self.summarizer.template = config.prompt_template

    def pending_messages(self, conversation: Conversation) -> int:
        """Messages added since the stored summary was made."""
        if not conversation.conversation_id:
            return 0
        record = self.store.get(conversation.conversation_id)
        last_count = record.message_count if record else 0
        return len(conversation.messages) - last_count

    def should_auto_summarize(self, conversation: Conversation | None) -> bool:
        config = self.config
        if not config.enabled or not config.auto_summarize:
            return False
        if self.lock.is_generating:
            return False
        if self.lock.in_cooldown(config.cooldown_seconds):
            return False
        if conversation is None or not conversation.conversation_id:
            return False
        return self.pending_messages(conversation) >= config.interval

    async def on_message_received(self, conversation: Conversation | None) -> SummaryRecord | None:
        """Handle a new-message event; summarize when the thresholds are met.

        Never raises. Returns the new record, or None when nothing ran or the
        run failed.
        """
        if self.lock.is_generating:
            return None
        self.lock.state = SchedulerState.CHECKING
        try:
            eligible = self.should_auto_summarize(conversation)
        finally:
            self.lock.state = SchedulerState.IDLE
        if not eligible:
            return None

        _LOG.info(
            "Auto-triggering summary for %s: %d messages (%d new)",
            conversation.conversation_id,
            len(conversation.messages),
            self.pending_messages(conversation),
        )
        try:
            return await self._run(conversation)
        except NoContentError:
            _LOG.debug("Nothing to summarize for %s", conversation.conversation_id)
        except SummarizerError as exc:
            _LOG.warning("Automatic summary failed for %s: %s", conversation.conversation_id, exc)
        except Exception:
            _LOG.exception("Automatic summary failed for %s", conversation.conversation_id)
        return None

    async def summarize_now(self, conversation: Conversation | None) -> SummaryRecord:
        """
        Summarize on user request, ignoring cooldown and thresholds.

        Returns:
            The stored record

        Raises:
            ConcurrentAttemptError: if a summary is already being generated
            NoContentError: if there is no conversation or no message
            CapabilityMissingError, EmptyResultError: from the summarizer
            Exception: whatever the text generator raised
        """
        if self.lock.is_generating:
            raise ConcurrentAttemptError("A summary is already being generated")
        return await self._run(conversation)

    async def _run(self, conversation: Conversation | None) -> SummaryRecord:
        if conversation is None or not conversation.conversation_id or not conversation.messages:
            raise NoContentError("There is no chat content to summarize")

        with self.lock.hold():
            lines = collect_transcript(conversation.messages, self.config.message_limit)
            batches = make_batches(lines, self.config.batch_size)
            content = await self.reducer.reduce(batches)

            record = SummaryRecord(
                timestamp=now_ms(),
                content=content,
                message_count=len(conversation.messages),
                source_name=conversation.source_name,
                provenance=Provenance.ORIGINAL,
            )
            self.store.put(conversation.conversation_id, record)

        _LOG.info(
            "Stored summary for %s (%d batches, %d chars)",
            conversation.conversation_id,
            len(batches),
            len(content),
        )
        return record

    async def on_source_message(self, source: ConversationSource) -> SummaryRecord | None:
        """Event-bus adapter: read the current conversation and handle the event."""
        return await self.on_message_received(source.current_conversation())

    def clear(self, conversation_id: str) -> None:
        self.store.delete(conversation_id)
