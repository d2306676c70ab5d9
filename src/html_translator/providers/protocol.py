"""Translation provider protocols.

Defines the contracts that provider adapters satisfy:

- ``TranslationProvider``: single synchronous-style chat requests
- ``BatchProtocol``: the asynchronous batch job lifecycle

Both bundled adapters implement the two protocols. The batch orchestrator
only depends on ``BatchProtocol`` and receives the concrete adapter by
injection.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from html_translator.types import (
    BatchJob,
    BatchResultEntry,
    ProviderName,
    TranslationRequest,
)


@runtime_checkable
class TranslationProvider(Protocol):
    """Protocol for single-request translation and conversation."""

    @property
    def provider_name(self) -> ProviderName:
        """Return the provider discriminator."""
        ...

    @property
    def model_name(self) -> str:
        """Return the model used for every request of this adapter."""
        ...

    async def translate(
        self,
        text: str,
        from_lang: str = "cs",
        to_lang: str = "pl",
        max_tokens: int = 4096,
    ) -> str:
        """Translate an HTML fragment.

        Args:
            text: HTML fragment to translate.
            from_lang: Source language code.
            to_lang: Target language code.
            max_tokens: Completion token limit.

        Returns:
            Translated HTML with any wrapping code fence removed.

        Raises:
            ProviderError: If the vendor returns a non-success status.
            MalformedResponseError: If the reply lacks a text field.
            ProviderConnectionError: If no response was received.

        """
        ...

    async def converse(
        self,
        message: str,
        max_tokens: int = 4096,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Send a free-form message and return the raw model reply.

        Args:
            message: User message, sent without templating.
            max_tokens: Completion token limit.
            options: Extra request body parameters (e.g. ``temperature``).

        Returns:
            The model's reply text, unsanitized.

        """
        ...


@runtime_checkable
class BatchProtocol(Protocol):
    """Protocol for vendor batch APIs.

    Implementations translate between ``TranslationRequest``/``BatchJob``
    and one vendor's wire format. They never hold batch state locally: every
    call queries the vendor.
    """

    @property
    def provider_name(self) -> ProviderName:
        """Return the provider discriminator."""
        ...

    @property
    def max_batch_size(self) -> int:
        """Return the maximum number of requests per batch."""
        ...

    async def create_batch(
        self, requests: Sequence[TranslationRequest], max_tokens: int = 4096
    ) -> BatchJob:
        """Submit translation requests as a single batch.

        Raises:
            BatchSizeExceededError: If the request count exceeds the ceiling.
            ProviderError: If the vendor rejects the submission.
            ProviderConnectionError: If no response was received.

        """
        ...

    async def get_batch_status(self, batch_id: str) -> BatchJob:
        """Return the vendor's current view of a batch."""
        ...

    async def get_batch_results(self, batch_id: str) -> list[BatchResultEntry]:
        """Return one entry per request of a finished batch.

        Raises:
            BatchNotReadyError: If the vendor has not produced results yet.

        """
        ...

    async def cancel_batch(self, batch_id: str) -> dict[str, Any]:
        """Request cancellation and return the vendor acknowledgement."""
        ...

    async def list_batches(self, limit: int = 20) -> dict[str, Any]:
        """Return a page of the account's batches."""
        ...
