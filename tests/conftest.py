"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from chat_summarizer.summarization import (
    Conversation,
    Message,
    Role,
    SummarizerConfig,
    SummarySession,
    SummaryStore,
)


class DummyLLM:
    """Dummy LLM that records prompts and returns numbered summaries."""

    def __init__(self, fail_on_call: int | None = None, reply: str | None = None):
        self.call_count = 0
        self.prompts: list[str] = []
        self.fail_on_call = fail_on_call
        self.reply = reply

    async def generate(self, prompt: str) -> str:
        self.call_count += 1
        self.prompts.append(prompt)
        if self.fail_on_call == self.call_count:
            raise RuntimeError(f"generation failed on call {self.call_count}")
        if self.reply is not None:
            return self.reply
        return f"  Summary #{self.call_count}  "


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db(temp_dir):
    """Create a temporary database file."""
    yield str(temp_dir / "test.db")


@pytest.fixture
def llm_factory():
    """DummyLLM class, for tests that need failing or fixed replies."""
    return DummyLLM


@pytest.fixture
def dummy_llm():
    """Create a dummy LLM for testing."""
    return DummyLLM()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_messages():
    """Factory producing alternating user/agent messages."""

    def _make(count: int, start: int = 0) -> tuple[Message, ...]:
        messages = []
        for i in range(start, start + count):
            if i % 2 == 0:
                messages.append(Message(Role.USER, f"user message {i}"))
            else:
                messages.append(Message(Role.AGENT, f"agent message {i}", name="Alice"))
        return tuple(messages)

    return _make


@pytest.fixture
def make_conversation(make_messages):
    def _make(count: int, conversation_id: str | None = "chat-1") -> Conversation:
        return Conversation(conversation_id, make_messages(count), source_name="Alice")

    return _make


@pytest.fixture
def auto_config():
    """Config with automatic summaries switched on."""
    return SummarizerConfig(enabled=True, auto_summarize=True, interval=20, batch_size=50)


@pytest.fixture
def store():
    return SummaryStore()


@pytest.fixture
def session(auto_config, store, dummy_llm, clock):
    return SummarySession(auto_config, store, dummy_llm, clock=clock)
