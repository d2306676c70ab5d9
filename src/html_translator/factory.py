"""Translation provider factory."""

from __future__ import annotations

import logging
from typing import Any, TypeAlias

from pydantic import ValidationError

from html_translator.configuration import TranslatorConfiguration
from html_translator.errors import ConfigurationError
from html_translator.providers.anthropic import AnthropicProvider
from html_translator.providers.openai import OpenAIProvider
from html_translator.types import ProviderName

logger = logging.getLogger(__name__)

Provider: TypeAlias = AnthropicProvider | OpenAIProvider
"""Any bundled adapter; each satisfies ``TranslationProvider`` and ``BatchProtocol``."""


class ProviderFactory:
    """Factory for creating provider adapters from configuration."""

    @staticmethod
    def create_provider(config: TranslatorConfiguration) -> Provider:
        """Create the adapter selected by ``config.provider``.

        Args:
            config: Validated provider configuration.

        Returns:
            Configured AnthropicProvider or OpenAIProvider instance.

        """
        api_key = config.api_key.get_secret_value()
        model = config.get_default_model()

        match config.provider:
            case ProviderName.ANTHROPIC:
                provider: Provider = AnthropicProvider(
                    api_key=api_key,
                    model=model,
                    base_url=config.base_url,
                    timeouts=config.timeouts,
                )
            case ProviderName.OPENAI:
                provider = OpenAIProvider(
                    api_key=api_key,
                    model=model,
                    base_url=config.base_url,
                    timeouts=config.timeouts,
                )

        logger.debug(f"Created {config.provider} provider (model={model})")
        return provider

    @staticmethod
    def create_from_properties(properties: dict[str, Any]) -> Provider:
        """Create an adapter from a properties dict with environment fallback.

        Args:
            properties: Configuration properties; missing keys are read from
                the environment (see ``TranslatorConfiguration.from_properties``).

        Returns:
            Configured provider instance.

        Raises:
            ConfigurationError: If the provider is unsupported or the API key
                is missing.

        """
        try:
            config = TranslatorConfiguration.from_properties(properties)
        except ValidationError as e:
            raise ConfigurationError(_describe_validation_error(e)) from e
        return ProviderFactory.create_provider(config)

    @staticmethod
    def create_from_environment() -> Provider:
        """Create the adapter named by TRANSLATOR_PROVIDER (default: anthropic)."""
        return ProviderFactory.create_from_properties({})


def _describe_validation_error(error: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in item['loc']) or 'config'}: {item['msg']}"
        for item in error.errors()
    ]
    return "Invalid translator configuration: " + "; ".join(problems)
