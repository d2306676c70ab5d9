"""Dual-provider HTML translation with Anthropic and OpenAI batch support."""

__version__ = "0.1.0"

from html_translator.configuration import Timeouts, TranslatorConfiguration
from html_translator.errors import (
    BatchNotReadyError,
    BatchSizeExceededError,
    BatchValidationError,
    ConfigurationError,
    ErrorKind,
    MalformedResponseError,
    ProviderConnectionError,
    ProviderError,
    TranslationServiceError,
)
from html_translator.factory import ProviderFactory
from html_translator.orchestrator import BatchOrchestrator
from html_translator.prompts import LANGUAGE_NAMES, build_prompt
from html_translator.providers import (
    AnthropicProvider,
    BatchProtocol,
    OpenAIProvider,
    TranslationProvider,
)
from html_translator.sanitizer import strip_code_fence
from html_translator.types import (
    BatchJob,
    BatchResultEntry,
    ProviderName,
    TranslationRequest,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Timeouts",
    "TranslatorConfiguration",
    # Errors
    "ErrorKind",
    "TranslationServiceError",
    "ConfigurationError",
    "ProviderConnectionError",
    "ProviderError",
    "MalformedResponseError",
    "BatchValidationError",
    "BatchSizeExceededError",
    "BatchNotReadyError",
    # Types
    "ProviderName",
    "TranslationRequest",
    "BatchJob",
    "BatchResultEntry",
    # Prompting
    "LANGUAGE_NAMES",
    "build_prompt",
    "strip_code_fence",
    # Providers
    "TranslationProvider",
    "BatchProtocol",
    "AnthropicProvider",
    "OpenAIProvider",
    "ProviderFactory",
    # Orchestration
    "BatchOrchestrator",
]
