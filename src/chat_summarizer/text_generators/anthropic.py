"""Text-generation backend that calls Anthropic's Claude models."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from anthropic import APIConnectionError, APIError, AsyncAnthropic, RateLimitError

from .base import TextGeneratorAPI, ensure_prompt

_log = logging.getLogger(__name__)

# One shared client per process
_CLIENT_CACHE: Dict[str, AsyncAnthropic] = {}


class AnthropicTextGenerator(TextGeneratorAPI):
    """Generate summaries using Anthropic's Claude models.

    Relies on the ``anthropic`` package and an ``ANTHROPIC_API_KEY``
    environment variable. The prompt is sent as a single user message;
    ``max_tokens`` defaults to 2048 and can be raised with
    ``ANTHROPIC_MAX_TOKENS``.
    """

    def __init__(self, model: str = "claude-haiku-4-5") -> None:
        self.model = model

    def _get_client(self) -> AsyncAnthropic:
        """Return (and cache) a shared ``AsyncAnthropic`` client instance."""
        if "default" not in _CLIENT_CACHE:
            _CLIENT_CACHE["default"] = AsyncAnthropic()  # picks up API key
        return _CLIENT_CACHE["default"]

    async def generate(self, prompt: str, *, temperature: float = 0.3) -> str:
        """Return Claude's reply for *prompt* as a plain string."""
        text = ensure_prompt(prompt)
        client = self._get_client()

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": int(os.getenv("ANTHROPIC_MAX_TOKENS", "2048")),
            "messages": [{"role": "user", "content": text}],
            "temperature": temperature,
        }
        _log.debug("Anthropic request: model=%s, prompt_len=%d", self.model, len(text))

        try:
            response = await client.messages.create(**kwargs)
        except RateLimitError as e:
            _log.warning("Anthropic rate limit hit for model %s: %s", self.model, e)
            raise
        except APIConnectionError as e:
            _log.error("Anthropic connection error for model %s: %s", self.model, e)
            raise
        except APIError as e:
            _log.error("Anthropic API error for model %s (status %s): %s", self.model, getattr(e, "status_code", "unknown"), e)
            raise

        # SDK returns a list of content blocks; aggregate text blocks.
        parts: List[str] = []
        for block in getattr(response, "content", []) or []:
            block_text = getattr(block, "text", None)
            if block_text:
                parts.append(block_text)
        return "".join(parts).strip()
