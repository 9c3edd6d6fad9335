"""Text export/import of summary records.

The canonical layout is written by :func:`export_summary`. :func:`parse_summary`
also accepts the two older layouts (English and the original Chinese labels,
including files that only carry a character line) and, as a last resort,
freeform text of plausible length.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import ParseFailureError
from .summary_store import Provenance, SummaryRecord, now_ms

_LOG = logging.getLogger(__name__)

HEADER_MARKER = "=== CHAT SUMMARY ==="
CONTENT_MARKER = "=== SUMMARY CONTENT ==="
END_MARKER = "=== END OF SUMMARY ==="

FREEFORM_MIN_CHARS = 50
FREEFORM_MAX_CHARS = 50_000

_LEGACY_CONTENT_RE = re.compile(r"^=+\s*(?:summary content|总结内容)\s*=+\s*$", re.IGNORECASE | re.MULTILINE)
_FIELD_RE = re.compile(r"^\s*([^:：]+?)\s*[:：]\s*(.*?)\s*$")

_LEGACY_KEYS = {
    "character": "character",
    "角色": "character",
    "generated": "generated",
    "generated at": "generated",
    "生成时间": "generated",
    "messages": "messages",
    "message count": "messages",
    "消息数量": "messages",
}

_LEGACY_TIME_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y, %I:%M:%S %p",
)


@dataclass(frozen=True)
class ParsedSummary:
    record: SummaryRecord
    conversation_id: str | None
    layout: str


def export_summary(
    record: SummaryRecord,
    conversation_id: str,
    generated_at: datetime | None = None,
) -> str:
    """Render ``record`` in the canonical export layout."""
    generated = generated_at or datetime.now(timezone.utc)
    return (
        f"{HEADER_MARKER}\n"
        f"CHARACTER: {record.source_name}\n"
        f"CHAT_ID: {conversation_id}\n"
        f"TIMESTAMP: {record.timestamp}\n"
        f"MESSAGE_COUNT: {record.message_count}\n"
        f"GENERATED_AT: {generated.isoformat()}\n"
        f"\n"
        f"{CONTENT_MARKER}\n"
        f"\n"
        f"{record.content}\n"
        f"\n"
        f"{END_MARKER}\n"
    )


def _parse_fields(header: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in header.splitlines():
        match = _FIELD_RE.match(line)
        if match:
            fields[match.group(1).strip().lower()] = match.group(2)
    return fields


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_time_ms(value: str | None) -> int | None:
    """Best-effort conversion of a human or ISO timestamp to epoch ms."""
    if not value:
        return None
    value = value.strip()
    try:
        return int(datetime.fromisoformat(value).timestamp() * 1000)
    except ValueError:
        pass
    for fmt in _LEGACY_TIME_FORMATS:
        try:
            return int(datetime.strptime(value, fmt).timestamp() * 1000)
        except ValueError:
            continue
    return None


def _parse_canonical(text: str) -> ParsedSummary | None:
    if HEADER_MARKER not in text or CONTENT_MARKER not in text:
        return None
    header_part, _, body = text.partition(CONTENT_MARKER)
    header = header_part.split(HEADER_MARKER, 1)[1]
    # The last end marker closes the summary; earlier ones belong to the content.
    head, marker, _ = body.rpartition(END_MARKER)
    content = (head if marker else body).strip()
    if not content:
        raise ParseFailureError("Summary file has no content")

    fields = _parse_fields(header)
    timestamp = _parse_int(fields.get("timestamp"))
    if timestamp is None:
        timestamp = _parse_time_ms(fields.get("generated_at")) or now_ms()

    record = SummaryRecord(
        timestamp=timestamp,
        content=content,
        message_count=_parse_int(fields.get("message_count")) or 0,
        source_name=fields.get("character") or "Unknown",
        provenance=Provenance.IMPORTED,
    )
    return ParsedSummary(record, fields.get("chat_id") or None, "canonical")


def _parse_legacy(text: str) -> ParsedSummary | None:
    match = _LEGACY_CONTENT_RE.search(text)
    if match is None:
        return None
    content = text[match.end():].strip()
    if not content:
        raise ParseFailureError("Summary file has no content")

    fields: dict[str, str] = {}
    for key, value in _parse_fields(text[: match.start()]).items():
        canonical_key = _LEGACY_KEYS.get(key)
        if canonical_key:
            fields[canonical_key] = value

    record = SummaryRecord(
        timestamp=_parse_time_ms(fields.get("generated")) or now_ms(),
        content=content,
        message_count=_parse_int(fields.get("messages")) or 0,
        source_name=fields.get("character") or "Unknown",
        provenance=Provenance.IMPORTED,
    )
    layout = "legacy" if "messages" in fields or "generated" in fields else "legacy-two-field"
    return ParsedSummary(record, None, layout)


def _parse_freeform(text: str) -> ParsedSummary | None:
    content = text.strip()
    if not FREEFORM_MIN_CHARS <= len(content) <= FREEFORM_MAX_CHARS:
        return None
    record = SummaryRecord(
        timestamp=now_ms(),
        content=content,
        message_count=0,
        source_name="Unknown",
        provenance=Provenance.IMPORTED,
    )
    return ParsedSummary(record, None, "freeform")


def parse_summary(raw_text: str) -> ParsedSummary:
    """
    Parse exported summary text.

    Args:
        raw_text: File contents

    Returns:
        Parsed record (provenance ``imported``), chat id if present, and the
        name of the layout that matched

    Raises:
        ParseFailureError: if no layout matches
    """
    text = (raw_text or "").replace("\r\n", "\n")
    for parser in (_parse_canonical, _parse_legacy, _parse_freeform):
        parsed = parser(text)
        if parsed is not None:
            _LOG.debug("Parsed summary using %s layout", parsed.layout)
            return parsed
    raise ParseFailureError("Unrecognized summary format")
