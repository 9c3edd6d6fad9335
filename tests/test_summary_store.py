"""Tests for SummaryStore and its persistence hooks."""

import logging
from unittest.mock import MagicMock

import pytest

from chat_summarizer.summarization import Provenance, SummaryRecord, SummaryStore


@pytest.fixture
def record():
    return SummaryRecord(timestamp=1, content="summary", message_count=5, source_name="Alice")


class TestSummaryStore:
    """Test in-memory behaviour."""

    def test_put_get(self, record):
        store = SummaryStore()

        store.put("chat-1", record)

        assert store.get("chat-1") is record
        assert "chat-1" in store
        assert len(store) == 1

    def test_get_missing(self):
        assert SummaryStore().get("nope") is None

    def test_put_replaces(self, record):
        store = SummaryStore()
        newer = SummaryRecord(timestamp=2, content="newer", message_count=9, source_name="Alice")

        store.put("chat-1", record)
        store.put("chat-1", newer)

        assert store.get("chat-1") is newer
        assert len(store) == 1

    def test_delete(self, record):
        store = SummaryStore()
        store.put("chat-1", record)

        store.delete("chat-1")

        assert "chat-1" not in store

    def test_delete_missing_is_noop(self):
        SummaryStore().delete("nope")

    def test_record_to_dict(self, record):
        assert record.to_dict() == {
            "timestamp": 1,
            "content": "summary",
            "message_count": 5,
            "source_name": "Alice",
            "provenance": "original",
        }


class TestPersistence:
    """Test write-through to a persistence collaborator."""

    def test_load(self, record):
        persistence = MagicMock()
        persistence.load_summaries.return_value = {"chat-1": record}

        store = SummaryStore.load(persistence)

        assert store.get("chat-1") is record

    def test_put_writes_through(self, record):
        persistence = MagicMock()
        store = SummaryStore(persistence)

        store.put("chat-1", record)

        persistence.write_summary.assert_called_once_with("chat-1", record)

    def test_delete_writes_through(self, record):
        persistence = MagicMock()
        store = SummaryStore(persistence)
        store.put("chat-1", record)

        store.delete("chat-1")

        persistence.delete_summary.assert_called_once_with("chat-1")

    def test_delete_missing_skips_persistence(self):
        persistence = MagicMock()

        SummaryStore(persistence).delete("nope")

        persistence.delete_summary.assert_not_called()

    def test_write_failure_is_logged_and_kept_in_memory(self, record, caplog):
        persistence = MagicMock()
        persistence.write_summary.side_effect = OSError("disk full")
        store = SummaryStore(persistence)

        with caplog.at_level(logging.ERROR):
            store.put("chat-1", record)

        assert store.get("chat-1") is record
        assert "Failed to persist summary for chat-1" in caplog.text

    def test_imported_provenance_round_trips(self):
        persistence = MagicMock()
        store = SummaryStore(persistence)
        imported = SummaryRecord(1, "text", 0, "Unknown", Provenance.IMPORTED)

        store.put("chat-1", imported)

        assert persistence.write_summary.call_args.args[1].provenance is Provenance.IMPORTED
