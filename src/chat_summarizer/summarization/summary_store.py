"""In-memory summary store with optional write-through persistence."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Protocol

from .errors import NoContentError

_LOG = logging.getLogger(__name__)


class Provenance(str, Enum):
    ORIGINAL = "original"
    IMPORTED = "imported"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SummaryRecord:
    """Latest summary of one conversation."""

    timestamp: int  # epoch milliseconds
    content: str
    message_count: int
    source_name: str
    provenance: Provenance = Provenance.ORIGINAL

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["provenance"] = self.provenance.value
        return data


class SummaryPersistence(Protocol):
    """Storage collaborator the store writes through to."""

    def load_summaries(self) -> dict[str, SummaryRecord]: ...

    def write_summary(self, conversation_id: str, record: SummaryRecord) -> None: ...

    def delete_summary(self, conversation_id: str) -> None: ...


class SummaryStore:
    """Maps conversation ids to their latest :class:`SummaryRecord`.

    Writes are forwarded to ``persistence`` when one is attached. A failed
    write is logged and the in-memory state is kept.
    """

    def __init__(self, persistence: SummaryPersistence | None = None) -> None:
        self._records: dict[str, SummaryRecord] = {}
        self._persistence = persistence

    @classmethod
    def load(cls, persistence: SummaryPersistence) -> "SummaryStore":
        """Create a store pre-populated from ``persistence``."""
        store = cls(persistence)
        store._records.update(persistence.load_summaries())
        _LOG.info("Loaded %d stored summaries", len(store._records))
        return store

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, conversation_id: str) -> SummaryRecord | None:
        return self._records.get(conversation_id)

    def put(self, conversation_id: str, record: SummaryRecord) -> None:
        """Replace whatever was stored for ``conversation_id``."""
        self._records[conversation_id] = record
        if self._persistence is None:
            return
        try:
            self._persistence.write_summary(conversation_id, record)
        except Exception:
            _LOG.exception("Failed to persist summary for %s", conversation_id)

    def delete(self, conversation_id: str) -> None:
        if self._records.pop(conversation_id, None) is None:
            return
        if self._persistence is None:
            return
        try:
            self._persistence.delete_summary(conversation_id)
        except Exception:
            _LOG.exception("Failed to delete persisted summary for %s", conversation_id)

    def import_from(self, raw_text: str, conversation_id: str | None = None) -> SummaryRecord:
        """
        Parse an exported summary and store it.

        Args:
            raw_text: Exported text (canonical, legacy or freeform)
            conversation_id: Target conversation; defaults to the CHAT_ID in the text

        Returns:
            The stored record

        Raises:
            ParseFailureError: if the text is not recognized (store untouched)
            NoContentError: if no target conversation id is known
        """
        from .summary_format import parse_summary

        parsed = parse_summary(raw_text)
        target = conversation_id or parsed.conversation_id
        if not target:
            raise NoContentError("No conversation to import the summary into")
        self.put(target, parsed.record)
        _LOG.info("Imported summary into %s (%d chars)", target, len(parsed.record.content))
        return parsed.record
