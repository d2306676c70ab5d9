"""Shared CLI infrastructure setup."""

from __future__ import annotations

import logging
from typing import Any

from html_translator.cli.errors import CLIError
from html_translator.errors import ConfigurationError
from html_translator.factory import Provider, ProviderFactory
from html_translator.orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)


def build_provider(command: str, provider: str, model: str | None = None) -> Provider:
    """Create the adapter named on the command line.

    Args:
        command: CLI command name for error context.
        provider: Provider name or alias (``anthropic``/``claude``,
            ``openai``/``chatgpt``).
        model: Optional model override; the provider default otherwise.

    Raises:
        CLIError: If the provider is unknown or its API key is missing.

    """
    properties: dict[str, Any] = {"provider": provider}
    if model:
        properties["model"] = model

    try:
        adapter = ProviderFactory.create_from_properties(properties)
    except ConfigurationError as e:
        raise CLIError(str(e), command=command, original_error=e) from e

    logger.debug(f"Using {adapter.provider_name} with model {adapter.model_name}")
    return adapter


def build_orchestrator(command: str, provider: str) -> BatchOrchestrator:
    """Create a batch orchestrator over the named provider."""
    return BatchOrchestrator(build_provider(command, provider))
