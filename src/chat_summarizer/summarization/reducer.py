"""Batch-then-merge reduction of a transcript into one summary."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence

from .errors import NoContentError
from .summarizer import Summarizer

_LOG = logging.getLogger(__name__)


class HierarchicalReducer:
    """Summarizes each batch in order and merges the results."""

    def __init__(self, summarizer: Summarizer):
        self.summarizer = summarizer

    async def iter_batch_summaries(
        self,
        batches: Sequence[Sequence[str]],
    ) -> AsyncIterator[tuple[int, str]]:
        """Yield ``(batch_number, summary)`` one batch at a time, in batch order.

        The next batch is not sent until the previous summary has been
        yielded, so a failure stops the iteration at that batch.
        """
        total = len(batches)
        for number, batch in enumerate(batches, start=1):
            _LOG.info("Summarizing batch %d/%d (%d lines)", number, total, len(batch))
            summary = await self.summarizer.summarize_batch(batch, number, total)
            yield number, summary

    async def reduce(self, batches: Sequence[Sequence[str]]) -> str:
        """
        Reduce transcript batches to a single summary.

        One batch costs one generation call. N > 1 batches cost N calls plus
        one merge call.

        Args:
            batches: Output of :func:`make_batches`

        Returns:
            Final summary text

        Raises:
            NoContentError: if there are no batches
        """
        if not batches:
            raise NoContentError("Nothing to summarize")

        if len(batches) == 1:
            return await self.summarizer.summarize_batch(batches[0])

        summaries: list[str] = []
        async for _, summary in self.iter_batch_summaries(batches):
            summaries.append(summary)

        _LOG.info("Merging %d batch summaries", len(summaries))
        return await self.summarizer.merge(summaries)
