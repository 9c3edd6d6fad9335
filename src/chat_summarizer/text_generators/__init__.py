# text_generators/__init__.py
from .base import TextGeneratorAPI
from .anthropic import AnthropicTextGenerator
from .openai_chat import OpenAIChatTextGenerator, OpenRouterTextGenerator

__all__ = [
    "TextGeneratorAPI",
    "AnthropicTextGenerator",
    "OpenAIChatTextGenerator",
    "OpenRouterTextGenerator",
    "get_text_generator",
]


def get_text_generator(api: str, model: str | None = None) -> TextGeneratorAPI:
    """Return an appropriate text-generator instance for the given API."""
    if api == "anthropic":
        return AnthropicTextGenerator(model) if model else AnthropicTextGenerator()
    if api in ("openai", "chatgpt"):
        return OpenAIChatTextGenerator(model) if model else OpenAIChatTextGenerator()
    if api == "openrouter":
        return OpenRouterTextGenerator(model) if model else OpenRouterTextGenerator()
    raise ValueError(f"Unknown API: {api}")
