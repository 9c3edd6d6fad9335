# text_generators/openai_chat.py
from __future__ import annotations

import logging
import os
from typing import Dict

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from .base import TextGeneratorAPI, ensure_prompt

_CLIENT_CACHE: Dict[str, AsyncOpenAI] = {}
_LOG = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _get_openai_client() -> AsyncOpenAI:
    if "openai" not in _CLIENT_CACHE:
        _CLIENT_CACHE["openai"] = AsyncOpenAI()  # picks up OPENAI_API_KEY
    return _CLIENT_CACHE["openai"]


def _get_openrouter_client() -> AsyncOpenAI:
    """Get or create the shared OpenRouter client."""
    if "openrouter" not in _CLIENT_CACHE:
        api_key = os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable is required for OpenRouter")
        _CLIENT_CACHE["openrouter"] = AsyncOpenAI(api_key=api_key, base_url=OPENROUTER_BASE_URL)
    return _CLIENT_CACHE["openrouter"]


class OpenAIChatTextGenerator(TextGeneratorAPI):
    """Text-generation backend for OpenAI chat models.

    Requires OPENAI_API_KEY in the environment.
    """

    provider = "OpenAI"

    def __init__(self, model: str = "gpt-4o-mini") -> None:
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        return _get_openai_client()

    async def generate(self, prompt: str, *, temperature: float = 0.3) -> str:
        text = ensure_prompt(prompt)
        client = self._get_client()

        _LOG.debug("%s request: model=%s, prompt_len=%d", self.provider, self.model, len(text))

        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": text}],
                temperature=temperature,
            )
        except RateLimitError as e:
            _LOG.warning("%s rate limit hit for model %s: %s", self.provider, self.model, e)
            raise
        except APIConnectionError as e:
            _LOG.error("%s connection error for model %s: %s", self.provider, self.model, e)
            raise
        except APIError as e:
            _LOG.error("%s API error for model %s (status %s): %s", self.provider, self.model, getattr(e, "status_code", "unknown"), e)
            raise

        choice = resp.choices[0]
        content = choice.message.content
        _LOG.info(
            "%s result: finish_reason=%s, content_len=%d",
            self.provider,
            getattr(choice, "finish_reason", None),
            len(content) if content else 0,
        )
        return (content or "").strip()


class OpenRouterTextGenerator(OpenAIChatTextGenerator):
    """Same chat-completions call routed through OpenRouter.

    Requires OPENROUTER_API_KEY in the environment.
    """

    provider = "OpenRouter"

    def __init__(self, model: str = "meta-llama/llama-3.1-70b-instruct") -> None:
        super().__init__(model)

    def _get_client(self) -> AsyncOpenAI:
        return _get_openrouter_client()
