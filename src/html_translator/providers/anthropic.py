"""Anthropic (Claude) translation provider implementation."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Generator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Self

import anthropic
import httpx
from anthropic import AsyncAnthropic

from html_translator.configuration import DEFAULT_MODELS, Timeouts
from html_translator.errors import (
    BatchNotReadyError,
    ConfigurationError,
    MalformedResponseError,
    ProviderConnectionError,
    ProviderError,
    vendor_error_message,
)
from html_translator.prompts import build_prompt
from html_translator.providers._wire import check_batch_size, clamp_list_limit
from html_translator.sanitizer import strip_code_fence
from html_translator.types import (
    BatchJob,
    BatchResultEntry,
    BatchStatusLiteral,
    ProviderName,
    TranslationRequest,
)

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """Anthropic Claude provider using the Anthropic SDK.

    Single requests go through the Messages API, batches through the Message
    Batches API, where the request list is posted directly in the create call.
    Satisfies both the ``TranslationProvider`` and ``BatchProtocol`` protocols.

    The model is fixed per instance; use ``with_model()`` for another model.
    """

    MAX_BATCH_SIZE = 100_000

    _async_client: AsyncAnthropic | None = None

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeouts: Timeouts | None = None,
    ) -> None:
        """Initialise the Anthropic provider.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var
                     when None.
            model: Model name. Falls back to ANTHROPIC_MODEL env var,
                   then defaults to claude-sonnet-4-5-20250929.
            base_url: API base URL. Falls back to ANTHROPIC_BASE_URL env var.
            timeouts: Per-operation network timeouts.

        Raises:
            ConfigurationError: If the API key is empty or not found in environment.

        """
        self._model = (
            model
            or os.getenv("ANTHROPIC_MODEL")
            or DEFAULT_MODELS[ProviderName.ANTHROPIC]
        )
        self._api_key = (
            api_key if api_key is not None else os.getenv("ANTHROPIC_API_KEY")
        )
        self._base_url = base_url or os.getenv("ANTHROPIC_BASE_URL")
        self._timeouts = timeouts or Timeouts()

        if not self._api_key or not self._api_key.strip():
            raise ConfigurationError(
                "Anthropic API key is required. Set ANTHROPIC_API_KEY environment "
                "variable or provide api_key parameter."
            )

        logger.info(f"Initialised Anthropic provider with model: {self._model}")

    @property
    def provider_name(self) -> ProviderName:
        """Return the provider discriminator."""
        return ProviderName.ANTHROPIC

    @property
    def model_name(self) -> str:
        """Return the model name being used."""
        return self._model

    @property
    def max_batch_size(self) -> int:
        """Return the maximum number of requests per batch."""
        return self.MAX_BATCH_SIZE

    def with_model(self, model: str) -> Self:
        """Return a new provider with the same credentials and another model."""
        return type(self)(
            api_key=self._api_key,
            model=model,
            base_url=self._base_url,
            timeouts=self._timeouts,
        )

    def _get_async_client(self) -> AsyncAnthropic:
        """Return the lazily-initialised ``AsyncAnthropic`` client.

        Retries are disabled: callers own the retry policy.
        """
        if self._async_client is None:
            self._async_client = AsyncAnthropic(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=0,
            )
        return self._async_client

    # -------------------------------------------------------------------------
    # TranslationProvider protocol
    # -------------------------------------------------------------------------

    async def translate(
        self,
        text: str,
        from_lang: str = "cs",
        to_lang: str = "pl",
        max_tokens: int = 4096,
    ) -> str:
        """Translate an HTML fragment and strip any wrapping code fence.

        Raises:
            ProviderError: If the API returns a non-success status.
            MalformedResponseError: If the reply has no text content.
            ProviderConnectionError: If no response was received.

        """
        logger.debug(
            f"Translating {len(text)} chars from {from_lang} to {to_lang} "
            f"with {self._model}"
        )
        prompt = build_prompt(text, from_lang, to_lang)
        reply = await self._send_message(prompt, max_tokens)
        return strip_code_fence(reply)

    async def converse(
        self,
        message: str,
        max_tokens: int = 4096,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Send a free-form message and return the raw reply text."""
        return await self._send_message(message, max_tokens, options)

    async def _send_message(
        self,
        message: str,
        max_tokens: int,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": message}],
        }
        params.update(options or {})

        client = self._get_async_client()
        with _vendor_errors("Message request"):
            response = await client.messages.create(
                **params, timeout=self._timeouts.chat
            )

        return _extract_text(response)

    # -------------------------------------------------------------------------
    # BatchProtocol
    # -------------------------------------------------------------------------

    async def create_batch(
        self, requests: Sequence[TranslationRequest], max_tokens: int = 4096
    ) -> BatchJob:
        """Submit translation requests via the Message Batches API.

        Each request becomes ``{custom_id, params}`` with the request id as
        ``custom_id``; the list is posted in a single create call.

        Raises:
            BatchSizeExceededError: If more than 100 000 requests are given.
            ProviderError: If the API rejects the submission.
            ProviderConnectionError: If no response was received.

        """
        check_batch_size(len(requests), self.MAX_BATCH_SIZE, self.provider_name)

        request_list: list[dict[str, Any]] = [
            {
                "custom_id": request.id,
                "params": {
                    "model": self._model,
                    "max_tokens": max_tokens,
                    "messages": [
                        {
                            "role": "user",
                            "content": build_prompt(
                                request.text, request.source_lang, request.target_lang
                            ),
                        }
                    ],
                },
            }
            for request in requests
        ]

        client = self._get_async_client()
        with _vendor_errors("Batch submission"):
            batch = await client.messages.batches.create(
                requests=request_list,  # type: ignore[arg-type]
                timeout=self._timeouts.submit,
            )

        logger.info(f"Submitted batch {batch.id} with {len(requests)} request(s)")

        return _to_batch_job(batch, request_count=len(requests))

    async def get_batch_status(self, batch_id: str) -> BatchJob:
        """Return the current state of a batch."""
        client = self._get_async_client()
        with _vendor_errors("Batch status check"):
            batch = await client.messages.batches.retrieve(
                batch_id, timeout=self._timeouts.metadata
            )
        return _to_batch_job(batch)

    async def get_batch_results(self, batch_id: str) -> list[BatchResultEntry]:
        """Stream results of an ended batch from the results endpoint.

        Succeeded results have their completion text sanitized; errored,
        cancelled and expired results carry an error message instead.

        Raises:
            BatchNotReadyError: If the batch has no results URL yet.

        """
        client = self._get_async_client()
        with _vendor_errors("Batch results retrieval"):
            batch = await client.messages.batches.retrieve(
                batch_id, timeout=self._timeouts.metadata
            )

        if not batch.results_url:
            raise BatchNotReadyError(batch_id, status=batch.processing_status)

        entries: list[BatchResultEntry] = []
        with _vendor_errors("Batch results retrieval"):
            result_stream = await client.messages.batches.results(
                batch_id, timeout=self._timeouts.download
            )
            try:
                async for response in result_stream:
                    entries.append(_parse_result(response))
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON in results of batch {batch_id}: {e}")
                raise MalformedResponseError(
                    f"Invalid JSON in Anthropic batch results: {e}"
                ) from e

        logger.debug(f"Retrieved {len(entries)} result(s) for batch {batch_id}")
        return entries

    async def cancel_batch(self, batch_id: str) -> dict[str, Any]:
        """Request cancellation and return the batch as reported by the API."""
        client = self._get_async_client()
        with _vendor_errors("Batch cancellation"):
            batch = await client.messages.batches.cancel(
                batch_id, timeout=self._timeouts.metadata
            )
        logger.info(f"Requested cancellation of batch {batch_id}")
        return batch.model_dump(mode="json")

    async def list_batches(self, limit: int = 20) -> dict[str, Any]:
        """Return the most recent batches (at most 100)."""
        client = self._get_async_client()
        with _vendor_errors("Batch listing"):
            page = await client.messages.batches.list(
                limit=clamp_list_limit(limit), timeout=self._timeouts.metadata
            )
        return {
            "data": [batch.model_dump(mode="json") for batch in page.data],
            "has_more": bool(page.has_more),
        }


@contextmanager
def _vendor_errors(operation: str) -> Generator[None]:
    """Translate Anthropic SDK exceptions into translation service errors."""
    try:
        yield
    except anthropic.APIStatusError as e:
        message = vendor_error_message(e.body, e.response.text)
        logger.error(f"{operation} failed with status {e.status_code}: {message}")
        raise ProviderError(message, status_code=e.status_code) from e
    except (anthropic.APIConnectionError, httpx.TransportError) as e:
        logger.error(f"{operation} failed: {e}")
        raise ProviderConnectionError(
            f"Connection to Anthropic API failed: {e}"
        ) from e


def _extract_text(response: Any) -> str:
    """Return the text of the first content block of a message."""
    content = getattr(response, "content", None)
    if not content:
        raise MalformedResponseError("Unexpected Anthropic response: no content")
    text = getattr(content[0], "text", None)
    if not isinstance(text, str):
        raise MalformedResponseError(
            "Unexpected Anthropic response: first content block has no text"
        )
    return text


def _map_status(batch: Any) -> BatchStatusLiteral:
    processing_status: str = batch.processing_status
    if processing_status == "ended" and batch.cancel_initiated_at is not None:
        return "cancelled"
    return _ANTHROPIC_STATUS_MAP.get(processing_status, "in_progress")


def _to_batch_job(batch: Any, request_count: int | None = None) -> BatchJob:
    """Build a ``BatchJob`` from an Anthropic ``MessageBatch``."""
    counts = batch.request_counts
    succeeded = counts.succeeded or 0
    failed = (counts.errored or 0) + (counts.expired or 0) + (counts.canceled or 0)
    total = (counts.processing or 0) + succeeded + failed

    return BatchJob(
        id=batch.id,
        provider=ProviderName.ANTHROPIC,
        status=_map_status(batch),
        request_count=request_count if request_count is not None else total,
        succeeded_count=succeeded,
        failed_count=failed,
        created_at=batch.created_at,
        output_handle=batch.results_url,
    )


def _parse_result(response: Any) -> BatchResultEntry:
    """Parse one streamed ``MessageBatchIndividualResponse``."""
    raw: dict[str, Any] = response.model_dump(mode="json")
    result = response.result

    match result.type:
        case "succeeded":
            try:
                text = _extract_text(result.message)
            except MalformedResponseError as e:
                return BatchResultEntry(
                    custom_id=response.custom_id, raw=raw, error=str(e)
                )
            return BatchResultEntry(
                custom_id=response.custom_id, raw=raw, text=strip_code_fence(text)
            )
        case "errored":
            # ErrorResponse wraps the error object in a response envelope
            error = result.error.error.message
        case "canceled":
            error = "Request was cancelled"
        case _:
            error = "Request expired"

    return BatchResultEntry(custom_id=response.custom_id, raw=raw, error=error)


_ANTHROPIC_STATUS_MAP: dict[str, BatchStatusLiteral] = {
    "in_progress": "in_progress",
    "canceling": "cancelling",
    "ended": "completed",
}
