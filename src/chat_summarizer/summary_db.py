"""SQLite persistence for the summarizer config and stored summaries."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .summarization.config import SummarizerConfig
from .summarization.summary_store import Provenance, SummaryRecord

_LOG = logging.getLogger(__name__)

_CONFIG_KEY = "summarizer_config"


class SummaryDB:
    """Keyed settings storage plus one summary row per conversation."""

    def __init__(self, db_path: str | Path) -> None:
        path = Path(db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = str(path)
        self._ensure_tables_exist()

    @contextmanager
    def _get_connection(self, row_factory: bool = False) -> Iterator[sqlite3.Connection]:
        """Get a database connection that auto-commits on success."""
        conn = sqlite3.connect(self.db_path)
        try:
            if row_factory:
                conn.row_factory = sqlite3.Row
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _ensure_tables_exist(self) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS summaries (
                    conversation_id TEXT PRIMARY KEY,
                    timestamp INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    message_count INTEGER NOT NULL,
                    source_name TEXT,
                    provenance TEXT NOT NULL DEFAULT 'original'
                )
                """
            )

    # ==================== Config ====================

    def load_config(self, base: SummarizerConfig | None = None) -> SummarizerConfig:
        """Return the persisted config overlaid on ``base``.

        Returns ``base`` (or the defaults) when nothing is stored or the stored
        value is unreadable.
        """
        fallback = base or SummarizerConfig()
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (_CONFIG_KEY,)).fetchone()
        if row is None:
            return fallback
        try:
            return SummarizerConfig.from_dict(json.loads(row[0]), base=fallback)
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            _LOG.warning("Ignoring unreadable stored config: %s", exc)
            return fallback

    def save_config(self, config: SummarizerConfig) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (_CONFIG_KEY, json.dumps(config.to_dict())),
            )

    # ==================== Summaries ====================

    def load_summaries(self) -> dict[str, SummaryRecord]:
        with self._get_connection(row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM summaries").fetchall()
        return {row["conversation_id"]: self._row_to_record(row) for row in rows}

    def write_summary(self, conversation_id: str, record: SummaryRecord) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO summaries
                (conversation_id, timestamp, content, message_count, source_name, provenance)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    conversation_id,
                    record.timestamp,
                    record.content,
                    record.message_count,
                    record.source_name,
                    record.provenance.value,
                ),
            )

    def delete_summary(self, conversation_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM summaries WHERE conversation_id = ?", (conversation_id,))

    def _row_to_record(self, row: sqlite3.Row) -> SummaryRecord:
        return SummaryRecord(
            timestamp=row["timestamp"],
            content=row["content"],
            message_count=row["message_count"],
            source_name=row["source_name"] or "Unknown",
            provenance=Provenance(row["provenance"]),
        )
