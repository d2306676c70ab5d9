"""Provider configuration with environment fallback.

Configuration objects are immutable: the provider, credential and model are
fixed for the lifetime of an adapter. Use a new configuration (or
``with_model()`` on an adapter) to target another model.
"""

from __future__ import annotations

import os
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from html_translator.types import ProviderName

DEFAULT_MODELS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "claude-sonnet-4-5-20250929",
    ProviderName.OPENAI: "gpt-4o",
}

API_KEY_ENV_VARS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderName.OPENAI: "OPENAI_API_KEY",
}

MODEL_ENV_VARS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "ANTHROPIC_MODEL",
    ProviderName.OPENAI: "OPENAI_MODEL",
}

BASE_URL_ENV_VARS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "ANTHROPIC_BASE_URL",
    ProviderName.OPENAI: "OPENAI_BASE_URL",
}

_PROVIDER_ALIASES: dict[str, str] = {
    "claude": ProviderName.ANTHROPIC.value,
    "chatgpt": ProviderName.OPENAI.value,
}


class Timeouts(BaseModel):
    """Per-operation network timeouts in seconds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    chat: float = 120.0
    """Single translate/converse requests."""

    download: float = 120.0
    """Batch result downloads."""

    submit: float = 60.0
    """Batch creation and file upload."""

    metadata: float = 30.0
    """Batch status, cancel and list."""


def normalise_provider(value: str) -> str:
    """Return the canonical provider name for a name or alias."""
    lowered = value.strip().lower()
    return _PROVIDER_ALIASES.get(lowered, lowered)


class TranslatorConfiguration(BaseModel):
    """Configuration for one translation provider.

    Supports explicit instantiation and a layered ``from_properties()``
    factory that falls back to environment variables.

    Attributes:
        provider: Provider name (``anthropic``/``openai``; ``claude`` and
            ``chatgpt`` are accepted as aliases).
        api_key: API key for the selected provider.
        model: Optional model name (provider default if None).
        base_url: Optional API base URL override (proxies, compatible APIs).
        timeouts: Network timeouts per operation class.

    Example:
        ```python
        config = TranslatorConfiguration(provider="claude", api_key="sk-ant-...")
        config = TranslatorConfiguration.from_properties({"provider": "openai"})
        ```

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: ProviderName = Field(description="Translation provider")
    api_key: SecretStr = Field(description="API key for the provider")
    model: str | None = Field(
        default=None, description="Model name (provider default if None)"
    )
    base_url: str | None = Field(default=None, description="API base URL override")
    timeouts: Timeouts = Field(default_factory=Timeouts)

    @field_validator("provider", mode="before")
    @classmethod
    def validate_provider(cls, v: Any) -> Any:
        """Lower-case the provider name and resolve aliases."""
        if isinstance(v, str):
            return normalise_provider(v)
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: SecretStr) -> SecretStr:
        """Reject empty or whitespace-only API keys."""
        stripped = v.get_secret_value().strip()
        if not stripped:
            raise ValueError("API key cannot be empty")
        return SecretStr(stripped)

    @classmethod
    def from_properties(cls, properties: dict[str, Any]) -> Self:
        """Create configuration from properties with environment fallback.

        Priority: explicit properties, then environment variables, then
        defaults. Environment variables used:

        - TRANSLATOR_PROVIDER: Provider name (default: "anthropic")
        - ANTHROPIC_API_KEY / OPENAI_API_KEY
        - ANTHROPIC_MODEL / OPENAI_MODEL
        - ANTHROPIC_BASE_URL / OPENAI_BASE_URL

        Args:
            properties: Configuration properties dictionary.

        Returns:
            Validated configuration instance.

        Raises:
            ValidationError: If configuration is invalid.

        """
        config_data = properties.copy()

        if "provider" not in config_data:
            config_data["provider"] = os.getenv("TRANSLATOR_PROVIDER", "anthropic")

        provider = normalise_provider(str(config_data["provider"]))
        try:
            name = ProviderName(provider)
        except ValueError:
            # Let pydantic report the invalid provider
            return cls.model_validate(config_data)

        if "api_key" not in config_data:
            config_data["api_key"] = os.getenv(API_KEY_ENV_VARS[name], "")

        if "model" not in config_data:
            model_value = os.getenv(MODEL_ENV_VARS[name])
            if model_value:
                config_data["model"] = model_value

        if "base_url" not in config_data:
            base_url = os.getenv(BASE_URL_ENV_VARS[name])
            if base_url:
                config_data["base_url"] = base_url

        return cls.model_validate(config_data)

    def get_default_model(self) -> str:
        """Return the configured model, or the provider's default model."""
        return self.model or DEFAULT_MODELS[self.provider]
