"""Validated summarizer configuration."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Optional

from .errors import InvalidConfigError
from .summarizer import MESSAGES_PLACEHOLDER

DEFAULT_INTERVAL = 20
DEFAULT_BATCH_SIZE = 50
DEFAULT_COOLDOWN_SECONDS = 10.0

DEFAULT_PROMPT_TEMPLATE: str = (
    "Summarize the following conversation. Extract the key information, "
    "important events and how the characters develop:\n\n"
    f"{MESSAGES_PLACEHOLDER}\n\n"
    "Summarize the core content of the conversation above in concise language."
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SummarizerConfig:
    """Process-wide summarizer settings.

    ``message_limit`` caps the collector to the most recent N eligible
    messages; ``None`` summarizes the whole transcript in batches.
    """

    enabled: bool = True
    auto_summarize: bool = False
    interval: int = DEFAULT_INTERVAL
    batch_size: int = DEFAULT_BATCH_SIZE
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    message_limit: Optional[int] = None
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise InvalidConfigError("interval must be a positive integer")
        if self.batch_size <= 0:
            raise InvalidConfigError("batch_size must be a positive integer")
        if self.message_limit is not None and self.message_limit <= 0:
            raise InvalidConfigError("message_limit must be positive when set")
        if self.cooldown_seconds < 0:
            raise InvalidConfigError("cooldown_seconds cannot be negative")
        if MESSAGES_PLACEHOLDER not in self.prompt_template:
            raise InvalidConfigError(f"prompt_template must contain {MESSAGES_PLACEHOLDER}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: Optional["SummarizerConfig"] = None) -> "SummarizerConfig":
        """Overlay the known keys of ``data`` on ``base`` (or the defaults)."""
        known = {f.name for f in fields(cls)}
        updates = {k: v for k, v in data.items() if k in known}
        return replace(base or cls(), **updates)

    def with_value(self, key: str, raw: str) -> "SummarizerConfig":
        """Return a copy with ``key`` parsed from its string form."""
        if key not in {f.name for f in fields(self)}:
            raise InvalidConfigError(f"Unknown config key: {key}")
        current = getattr(self, key)
        value: Any
        try:
            if isinstance(current, bool):
                value = raw.strip().lower() in _TRUE_VALUES
            elif key == "message_limit":
                value = None if raw.strip().lower() in {"", "none", "0"} else int(raw)
            elif key == "cooldown_seconds":
                value = float(raw)
            elif isinstance(current, int):
                value = int(raw)
            else:
                value = raw
        except ValueError as exc:
            raise InvalidConfigError(f"Invalid value for {key}: {raw!r}") from exc
        return replace(self, **{key: value})
