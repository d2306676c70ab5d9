"""Translation service exceptions.

Every exception carries an ``ErrorKind`` tag so callers can branch on
``error.kind`` instead of matching exception types.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(Enum):
    """Category of a translation service failure."""

    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    PROVIDER = "provider"
    MALFORMED_RESPONSE = "malformed_response"
    BATCH_VALIDATION = "batch_validation"
    BATCH_SIZE_EXCEEDED = "batch_size_exceeded"
    BATCH_NOT_READY = "batch_not_ready"


class TranslationServiceError(Exception):
    """Base exception for translation service related errors."""

    kind: ClassVar[ErrorKind]


class ConfigurationError(TranslationServiceError):
    """Exception raised when a provider is misconfigured (e.g. missing API key)."""

    kind = ErrorKind.CONFIGURATION


class ProviderConnectionError(TranslationServiceError, ConnectionError):
    """Exception raised when no response was received from the vendor."""

    kind = ErrorKind.CONNECTION


class ProviderError(TranslationServiceError):
    """Exception raised when the vendor answers with a non-success status."""

    kind = ErrorKind.PROVIDER

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponseError(TranslationServiceError):
    """Exception raised when a success response lacks the expected shape."""

    kind = ErrorKind.MALFORMED_RESPONSE


class BatchValidationError(TranslationServiceError):
    """Exception raised when a batch submission is rejected before sending."""

    kind = ErrorKind.BATCH_VALIDATION


class BatchSizeExceededError(BatchValidationError):
    """Exception raised when a batch exceeds the provider's item ceiling."""

    kind = ErrorKind.BATCH_SIZE_EXCEEDED

    def __init__(self, count: int, limit: int, provider: str) -> None:
        super().__init__(
            f"Batch of {count} request(s) exceeds the {provider} limit of {limit}"
        )
        self.count = count
        self.limit = limit
        self.provider = provider


class BatchNotReadyError(TranslationServiceError):
    """Exception raised when results are requested before an output exists."""

    kind = ErrorKind.BATCH_NOT_READY

    def __init__(self, batch_id: str, status: str | None = None) -> None:
        message = f"Batch {batch_id} has no results yet"
        if status:
            message += f" (status: {status})"
        super().__init__(message)
        self.batch_id = batch_id
        self.status = status


def vendor_error_message(body: object, fallback: str) -> str:
    """Extract the human-readable message from a vendor error body.

    Handles both the full envelope (``{"error": {"message": ...}}``) and the
    already-unwrapped error object (``{"message": ...}``). Falls back to the
    raw response text when neither is present.
    """
    if isinstance(body, Mapping):
        error: Any = body.get("error", body)
        if isinstance(error, Mapping) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(body.get("message"), str):
            return body["message"]
    return fallback
