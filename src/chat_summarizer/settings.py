"""Environment-driven settings.

These are defaults; a config persisted through
:class:`chat_summarizer.summary_db.SummaryDB` overrides them. Secrets (API
keys) stay in the environment / .env.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .summarization.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_INTERVAL,
    DEFAULT_PROMPT_TEMPLATE,
    SummarizerConfig,
)
from .summarization.summarizer import MESSAGES_PLACEHOLDER


_PROMPT_CACHE: Optional[str] = None
_PROMPT_MTIME: Optional[float] = None
_PROMPT_PATH: Optional[Path] = None


def _project_root() -> Path:
    """Return the repository root path if determinable from this file.

    settings.py lives at src/chat_summarizer/settings.py.
    repo root is two levels up from src/chat_summarizer -> src -> repo.
    """
    return Path(__file__).resolve().parents[2]


def _candidate_prompt_paths() -> list[Path]:
    """Return possible paths for the summary prompt file.

    Priority order:
    1) SUMMARY_PROMPT_FILE (as-is); if relative, also try as repo-root-relative.
    2) config/summary_prompt.txt (repo-root-relative).
    """
    env_val = os.getenv("SUMMARY_PROMPT_FILE", "").strip()
    candidates: list[Path] = []
    if env_val:
        p = Path(env_val).expanduser()
        candidates.append(p)
        if not p.is_absolute():
            candidates.append(_project_root() / p)
    candidates.append(_project_root() / "config" / "summary_prompt.txt")
    return candidates


def get_default_summary_prompt() -> str:
    """Load the summary prompt template from a file if available.

    - If SUMMARY_PROMPT_FILE is set, use that path (absolute or repo-root-relative).
    - Else, try repo-root `config/summary_prompt.txt`.
    - Fall back to the built-in prompt if none found/readable, or if a file
      lacks the ``{{messages}}`` placeholder.

    Uses a simple mtime cache to avoid re-reading unchanged files.
    """
    global _PROMPT_CACHE, _PROMPT_MTIME, _PROMPT_PATH  # noqa: PLW0603

    for path in _candidate_prompt_paths():
        try:
            if not path.is_file():
                continue
            mtime = path.stat().st_mtime
            if _PROMPT_PATH == path and _PROMPT_CACHE is not None and _PROMPT_MTIME == mtime:
                return _PROMPT_CACHE
            text = path.read_text(encoding="utf-8")
        except OSError:
            continue
        if MESSAGES_PLACEHOLDER not in text:
            continue
        _PROMPT_CACHE = text
        _PROMPT_MTIME = mtime
        _PROMPT_PATH = path
        return text
    return DEFAULT_PROMPT_TEMPLATE


def _env_bool(name: str, fallback: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return fallback
    return raw in {"1", "true", "yes", "on"}


def _env_int(name: str, fallback: Optional[int]) -> Optional[int]:
    try:
        return int(os.getenv(name, ""))
    except ValueError:
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, ""))
    except ValueError:
        return fallback


def load_config_from_env() -> SummarizerConfig:
    """Build a config from the SUMMARIZER_* environment variables."""
    return SummarizerConfig(
        enabled=_env_bool("SUMMARIZER_ENABLED", True),
        auto_summarize=_env_bool("SUMMARIZER_AUTO", False),
        interval=_env_int("SUMMARIZER_INTERVAL", DEFAULT_INTERVAL),
        batch_size=_env_int("SUMMARIZER_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        prompt_template=get_default_summary_prompt(),
        message_limit=_env_int("SUMMARIZER_MESSAGE_LIMIT", None),
        cooldown_seconds=_env_float("SUMMARIZER_COOLDOWN_SECONDS", DEFAULT_COOLDOWN_SECONDS),
    )


def get_generator_api() -> str:
    return os.getenv("SUMMARIZER_API", "anthropic").strip().lower()


def get_generator_model() -> str:
    return os.getenv("SUMMARIZER_MODEL", "claude-haiku-4-5")


DEFAULT_DB_PATH = Path("data") / "summaries.db"


def get_db_path() -> Path:
    """SQLite file from SUMMARIZER_DB_PATH, else ``data/summaries.db`` under the working directory."""
    return Path(os.getenv("SUMMARIZER_DB_PATH", str(DEFAULT_DB_PATH))).expanduser()
