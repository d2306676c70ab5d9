"""Translation providers.

This package contains the provider protocols and the concrete adapters for
the supported vendors (Anthropic, OpenAI).
"""

from html_translator.providers.anthropic import AnthropicProvider
from html_translator.providers.openai import OpenAIProvider
from html_translator.providers.protocol import BatchProtocol, TranslationProvider

__all__ = [
    "TranslationProvider",
    "BatchProtocol",
    "AnthropicProvider",
    "OpenAIProvider",
]
