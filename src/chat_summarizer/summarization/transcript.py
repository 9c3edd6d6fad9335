"""Transcript collection and batching."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    """A single chat message as read from the conversation."""

    role: Role
    text: str
    name: str | None = None

    @property
    def speaker(self) -> str:
        """Label used in front of the message text in prompts."""
        if self.role is Role.USER:
            return "User"
        return self.name or "Agent"

    @property
    def is_content(self) -> bool:
        return self.role is not Role.SYSTEM and bool(self.text.strip())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build a message from either the generic or the host chat shape.

        Generic: ``{"role": "user"|"agent"|"system", "text": ..., "name": ...}``.
        Host chat: ``{"is_user": bool, "is_system": bool, "name": ..., "mes": ...}``.
        """
        if "mes" in data or "is_user" in data:
            if data.get("is_system"):
                role = Role.SYSTEM
            elif data.get("is_user"):
                role = Role.USER
            else:
                role = Role.AGENT
            text = data.get("mes") or ""
        else:
            raw_role = str(data.get("role") or "user").lower()
            if raw_role == "assistant":
                raw_role = Role.AGENT.value
            try:
                role = Role(raw_role)
            except ValueError as exc:
                raise ValueError(f"Unknown message role: {raw_role!r}") from exc
            text = data.get("text") or data.get("content") or ""
        name = data.get("name")
        return cls(role=role, text=str(text), name=str(name) if name else None)


@dataclass(frozen=True)
class Conversation:
    """Snapshot of the active conversation handed to the scheduler."""

    conversation_id: str | None
    messages: Sequence[Message] = field(default_factory=tuple)
    source_name: str = "Unknown"


def collect_transcript(messages: Iterable[Message], limit: int | None = None) -> list[str]:
    """Return ``"speaker: text"`` lines for eligible messages, oldest first.

    System messages and messages with blank text are dropped. When ``limit``
    is given only the most recent ``limit`` eligible messages are kept.
    """
    eligible = [m for m in messages if m.is_content]
    if limit is not None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        eligible = eligible[-limit:]
    return [f"{m.speaker}: {m.text}" for m in eligible]


def make_batches(lines: Sequence[str], batch_size: int) -> list[list[str]]:
    """Split ``lines`` into contiguous chunks of at most ``batch_size``."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(lines[i : i + batch_size]) for i in range(0, len(lines), batch_size)]
