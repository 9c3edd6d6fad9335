"""Summary generation logic."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from .errors import CapabilityMissingError, EmptyResultError

_LOG = logging.getLogger(__name__)

MESSAGES_PLACEHOLDER = "{{messages}}"

GenerateFn = Callable[[str], Awaitable[str]]


class LLMProtocol(Protocol):
    """Protocol for LLM interface."""

    async def generate(self, prompt: str) -> str:
        """Generate text from a prompt."""
        ...


def resolve_generate_fn(llm: Any) -> GenerateFn:
    """Return the coroutine function used to talk to ``llm``.

    Accepts an object implementing :class:`LLMProtocol` or a plain async
    callable taking the prompt string.

    Raises:
        CapabilityMissingError: if ``llm`` offers neither.
    """
    if llm is None:
        raise CapabilityMissingError("No text generator configured")
    if inspect.isclass(llm):
        raise CapabilityMissingError(f"Expected a text generator instance, got the class {llm.__name__}")
    generate = getattr(llm, "generate", None)
    if callable(generate):
        return generate
    if callable(llm):
        return llm
    raise CapabilityMissingError(f"{type(llm).__name__} cannot generate text")


def render_prompt(
    template: str,
    lines: Sequence[str],
    batch_number: int = 0,
    total_batches: int = 0,
) -> str:
    """
    Build the prompt for a single batch of transcript lines.

    Args:
        template: Prompt template containing ``{{messages}}``
        lines: Transcript lines of the batch
        batch_number: 1-based batch index, 0 when not batching
        total_batches: Number of batches in this run, 0 when not batching

    Returns:
        Formatted prompt for LLM
    """
    messages_text = "\n\n".join(lines)
    prompt = template.replace(MESSAGES_PLACEHOLDER, messages_text)

    if batch_number > 0 and total_batches > 0:
        prompt = f"[Summarizing batch {batch_number} of {total_batches}]\n\n{prompt}"

    return prompt


def label_batch_summaries(summaries: Sequence[str]) -> list[str]:
    """Prefix each batch summary with its 1-based batch index."""
    return [f"[Batch {i} summary]\n{text}" for i, text in enumerate(summaries, start=1)]


def build_merge_prompt(summaries: Sequence[str]) -> str:
    """
    Build prompt that folds several batch summaries into one.

    Args:
        summaries: Batch summaries in batch order

    Returns:
        Formatted prompt for LLM
    """
    labeled = "\n\n".join(label_batch_summaries(summaries))

    prompt = f"""The following are summaries of consecutive parts of one conversation.
Integrate them into a single complete and coherent summary.

{labeled}

Write the final combined summary."""

    return prompt


class Summarizer:
    """Handles summary generation using an LLM."""

    def __init__(self, llm: Any, template: str):
        """
        Initialize summarizer.

        Args:
            llm: Object with an async generate() method, or an async callable
            template: Per-batch prompt template containing ``{{messages}}``

        Raises:
            CapabilityMissingError: if ``llm`` cannot generate text
        """
        self._generate_fn = resolve_generate_fn(llm)
        self.template = template

    async def _generate(self, prompt: str) -> str:
        _LOG.debug("Sending summarization prompt (%d chars)", len(prompt))
        result = await self._generate_fn(prompt)
        if not isinstance(result, str) or not result.strip():
            raise EmptyResultError("Text generator returned an empty result")
        return result.strip()

    async def summarize_batch(
        self,
        lines: Sequence[str],
        batch_number: int = 0,
        total_batches: int = 0,
    ) -> str:
        """
        Generate a summary for one batch of transcript lines.

        Args:
            lines: Transcript lines
            batch_number: 1-based batch index (0 for a single-batch run)
            total_batches: Total batch count (0 for a single-batch run)

        Returns:
            Summary text
        """
        prompt = render_prompt(self.template, lines, batch_number, total_batches)
        return await self._generate(prompt)

    async def merge(self, summaries: Sequence[str]) -> str:
        """Generate one summary out of the batch summaries, kept in batch order."""
        return await self._generate(build_merge_prompt(summaries))
