"""Command-line front end for the chat summarizer.

Usage:
    python -m chat_summarizer summarize chat.jsonl [--name Alice]
    python -m chat_summarizer replay chat.jsonl [--gap 5]
    python -m chat_summarizer --chat-id chat show|clear|export|import FILE
    python -m chat_summarizer config [KEY VALUE]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sqlite3
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .settings import get_db_path, get_generator_api, get_generator_model, load_config_from_env
from .summarization import (
    Conversation,
    Message,
    SummarizerError,
    SummarySession,
    SummaryStore,
    export_summary,
)
from .summary_db import SummaryDB
from .text_generators import get_text_generator

logger = logging.getLogger("chat_summarizer")


# ==================== Transcript loading ====================

def load_transcript(path: Path) -> tuple[list[Message], dict[str, Any]]:
    """Read messages and metadata from a JSON or JSONL chat file.

    Accepted shapes: a JSON list of messages, a JSON object with a
    ``messages`` list, or JSONL with one message per line. Lines without
    message text (e.g. a chat header) are kept as metadata.
    """
    raw = path.read_text(encoding="utf-8").strip()
    items: list[dict[str, Any]] = []
    metadata: dict[str, Any] = {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        items = [json.loads(line) for line in raw.splitlines() if line.strip()]
    else:
        if isinstance(data, list):
            items = data
        else:
            items = data.pop("messages", [])
            metadata = data

    messages: list[Message] = []
    for item in items:
        if not any(k in item for k in ("mes", "text", "content")):
            metadata.update(item)
            continue
        messages.append(Message.from_dict(item))
    return messages, metadata


class TranscriptReplay:
    """Conversation source that reveals a transcript one message at a time."""

    def __init__(self, conversation_id: str, messages: Sequence[Message], source_name: str) -> None:
        self.conversation_id = conversation_id
        self.messages = list(messages)
        self.source_name = source_name
        self.visible = 0

    def current_conversation(self) -> Conversation:
        return Conversation(
            conversation_id=self.conversation_id,
            messages=tuple(self.messages[: self.visible]),
            source_name=self.source_name,
        )


class SimulatedClock:
    """Monotonic clock advanced by hand during a replay."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ==================== Commands ====================

def _conversation_from_file(args: argparse.Namespace) -> tuple[str, list[Message], str]:
    path = Path(args.transcript)
    messages, metadata = load_transcript(path)
    chat_id = args.chat_id or metadata.get("chat_id") or path.stem
    name = args.name or metadata.get("character_name") or metadata.get("name") or "Unknown"
    return str(chat_id), messages, str(name)


def _build_session(args: argparse.Namespace, db: SummaryDB, **kwargs: Any) -> SummarySession:
    config = db.load_config(load_config_from_env())
    llm = get_text_generator(args.api or get_generator_api(), args.model or get_generator_model())
    return SummarySession(config, SummaryStore.load(db), llm, **kwargs)


async def _cmd_summarize(args: argparse.Namespace, db: SummaryDB) -> int:
    chat_id, messages, name = _conversation_from_file(args)
    session = _build_session(args, db)
    conversation = Conversation(chat_id, tuple(messages), name)
    print(f"Summarizing {len(messages)} messages from {chat_id}...", file=sys.stderr)
    record = await session.summarize_now(conversation)
    print(record.content)
    return 0


async def _cmd_replay(args: argparse.Namespace, db: SummaryDB) -> int:
    chat_id, messages, name = _conversation_from_file(args)
    clock = SimulatedClock()
    session = _build_session(args, db, clock=clock)
    if not (session.config.enabled and session.config.auto_summarize):
        print("Automatic summaries are disabled; enable them with 'config auto_summarize true'", file=sys.stderr)

    replay = TranscriptReplay(chat_id, messages, name)
    runs = 0
    for index in range(1, len(messages) + 1):
        replay.visible = index
        clock.now += args.gap
        record = await session.on_source_message(replay)
        if record is not None:
            runs += 1
            print(f"--- summary after message {index} ({record.message_count} messages) ---")
            print(record.content)
    print(f"Replayed {len(messages)} messages, {runs} summaries generated", file=sys.stderr)
    return 0


def _cmd_show(args: argparse.Namespace, db: SummaryDB) -> int:
    record = SummaryStore.load(db).get(args.chat_id)
    if record is None:
        print(f"No summary for {args.chat_id}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(f"{record.source_name} - {record.message_count} messages ({record.provenance.value})")
        print()
        print(record.content)
    return 0


def _cmd_clear(args: argparse.Namespace, db: SummaryDB) -> int:
    SummaryStore.load(db).delete(args.chat_id)
    print(f"Cleared summary for {args.chat_id}", file=sys.stderr)
    return 0


def _cmd_export(args: argparse.Namespace, db: SummaryDB) -> int:
    record = SummaryStore.load(db).get(args.chat_id)
    if record is None:
        print(f"No summary to export for {args.chat_id}", file=sys.stderr)
        return 1
    text = export_summary(record, args.chat_id)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Exported to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(text)
    return 0


def _cmd_import(args: argparse.Namespace, db: SummaryDB) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    record = SummaryStore.load(db).import_from(text, args.chat_id)
    print(f"Imported summary from {record.source_name} ({len(record.content)} chars)", file=sys.stderr)
    return 0


def _cmd_config(args: argparse.Namespace, db: SummaryDB) -> int:
    config = db.load_config(load_config_from_env())
    if args.key is not None:
        if args.value is None:
            print("config needs both KEY and VALUE", file=sys.stderr)
            return 2
        config = config.with_value(args.key, args.value)
        db.save_config(config)
    print(json.dumps(config.to_dict(), ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat_summarizer", description="Summarize chat transcripts")
    parser.add_argument("--db", help="SQLite file (default: SUMMARIZER_DB_PATH)")
    parser.add_argument("--chat-id", help="Conversation id (default: transcript file name)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("summarize", "Summarize a transcript now"),
        ("replay", "Feed a transcript through the automatic scheduler"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("transcript")
        cmd.add_argument("--name", help="Character / source name")
        cmd.add_argument("--api", help="anthropic, openai or openrouter")
        cmd.add_argument("--model")
        if name == "replay":
            cmd.add_argument("--gap", type=float, default=5.0, help="Simulated seconds between messages")

    show = sub.add_parser("show", help="Print the stored summary")
    show.add_argument("--json", action="store_true")
    sub.add_parser("clear", help="Delete the stored summary")
    export = sub.add_parser("export", help="Export the stored summary")
    export.add_argument("-o", "--output")
    imp = sub.add_parser("import", help="Import a summary file")
    imp.add_argument("file")
    config = sub.add_parser("config", help="Show or change settings")
    config.add_argument("key", nargs="?")
    config.add_argument("value", nargs="?")
    return parser


_COMMANDS = {
    "summarize": _cmd_summarize,
    "replay": _cmd_replay,
    "show": _cmd_show,
    "clear": _cmd_clear,
    "export": _cmd_export,
    "import": _cmd_import,
    "config": _cmd_config,
}

_NEEDS_CHAT_ID = {"show", "clear", "export"}


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command in _NEEDS_CHAT_ID and not args.chat_id:
        print(f"{args.command} needs --chat-id", file=sys.stderr)
        return 2

    db_path = args.db or get_db_path()
    try:
        db = SummaryDB(db_path)
    except (OSError, sqlite3.Error) as exc:
        print(f"Error: cannot open database {db_path}: {exc}", file=sys.stderr)
        return 1

    handler = _COMMANDS[args.command]
    try:
        result = handler(args, db)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
    except SummarizerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("%s failed", args.command)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
