"""OpenAI (ChatGPT) translation provider implementation."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Self

import httpx
import openai
from openai import AsyncOpenAI

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
from html_translator.providers._wire import (
    check_batch_size,
    clamp_list_limit,
    encode_jsonl,
    iter_jsonl,
)
from html_translator.sanitizer import strip_code_fence
from html_translator.types import (
    BatchJob,
    BatchResultEntry,
    BatchStatusLiteral,
    ProviderName,
    TranslationRequest,
)

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_ENDPOINT = "/v1/chat/completions"
COMPLETION_WINDOW = "24h"


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK.

    Single requests go through Chat Completions. Batches take two steps: the
    requests are uploaded as a JSONL file via the Files API, then a batch is
    created referencing the uploaded file. Results are downloaded from the
    output file named in the batch status.
    Satisfies both the ``TranslationProvider`` and ``BatchProtocol`` protocols.
    """

    MAX_BATCH_SIZE = 50_000

    _async_client: AsyncOpenAI | None = None

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeouts: Timeouts | None = None,
    ) -> None:
        """Initialise the OpenAI provider.

        Args:
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var
                     when None.
            model: Model name. Falls back to OPENAI_MODEL env var,
                   then defaults to gpt-4o.
            base_url: Base URL for OpenAI-compatible APIs. Falls back to
                      OPENAI_BASE_URL env var.
            timeouts: Per-operation network timeouts.

        Raises:
            ConfigurationError: If the API key is empty or not found in environment.

        """
        self._model = (
            model or os.getenv("OPENAI_MODEL") or DEFAULT_MODELS[ProviderName.OPENAI]
        )
        self._api_key = (
            api_key if api_key is not None else os.getenv("OPENAI_API_KEY")
        )
        self._base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self._timeouts = timeouts or Timeouts()

        if not self._api_key or not self._api_key.strip():
            raise ConfigurationError(
                "OpenAI API key is required. Set OPENAI_API_KEY environment "
                "variable or provide api_key parameter."
            )

        logger.info(f"Initialised OpenAI provider with model: {self._model}")

    @property
    def provider_name(self) -> ProviderName:
        """Return the provider discriminator."""
        return ProviderName.OPENAI

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

    def _get_async_client(self) -> AsyncOpenAI:
        """Return the lazily-initialised ``AsyncOpenAI`` client."""
        if self._async_client is None:
            self._async_client = AsyncOpenAI(
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
            MalformedResponseError: If the reply has no message content.
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
            "messages": [{"role": "user", "content": message}],
            "max_tokens": max_tokens,
        }
        params.update(options or {})

        client = self._get_async_client()
        with _vendor_errors("Chat completion request"):
            response = await client.chat.completions.create(
                **params, timeout=self._timeouts.chat
            )

        return _extract_content(response)

    # -------------------------------------------------------------------------
    # BatchProtocol
    # -------------------------------------------------------------------------

    async def create_batch(
        self, requests: Sequence[TranslationRequest], max_tokens: int = 4096
    ) -> BatchJob:
        """Upload the requests as a JSONL file, then create a batch from it.

        Raises:
            BatchSizeExceededError: If more than 50 000 requests are given.
            ProviderError: If the API rejects the upload or the batch.
            ProviderConnectionError: If no response was received.

        """
        check_batch_size(len(requests), self.MAX_BATCH_SIZE, self.provider_name)

        payload = encode_jsonl(
            {
                "custom_id": request.id,
                "method": "POST",
                "url": CHAT_COMPLETIONS_ENDPOINT,
                "body": {
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
        )

        client = self._get_async_client()
        with _vendor_errors("Batch submission"):
            uploaded = await client.files.create(
                file=("batch_input.jsonl", payload, "application/jsonl"),
                purpose="batch",
                timeout=self._timeouts.submit,
            )
            logger.debug(f"Uploaded batch input file {uploaded.id}")

            batch = await client.batches.create(
                input_file_id=uploaded.id,
                endpoint=CHAT_COMPLETIONS_ENDPOINT,
                completion_window=COMPLETION_WINDOW,
                timeout=self._timeouts.submit,
            )

        logger.info(f"Submitted batch {batch.id} with {len(requests)} request(s)")

        return _to_batch_job(batch, request_count=len(requests))

    async def get_batch_status(self, batch_id: str) -> BatchJob:
        """Return the current state of a batch."""
        client = self._get_async_client()
        with _vendor_errors("Batch status check"):
            batch = await client.batches.retrieve(
                batch_id, timeout=self._timeouts.metadata
            )
        return _to_batch_job(batch)

    async def get_batch_results(self, batch_id: str) -> list[BatchResultEntry]:
        """Download and parse the output (and error) files of a batch.

        Both files share the same JSONL structure; requests that failed are
        reported in the error file, so reading both yields one entry per
        submitted request.

        Raises:
            BatchNotReadyError: If the batch has no output file yet.

        """
        client = self._get_async_client()
        with _vendor_errors("Batch results retrieval"):
            batch = await client.batches.retrieve(
                batch_id, timeout=self._timeouts.metadata
            )

        file_ids = [
            file_id
            for file_id in (batch.output_file_id, batch.error_file_id)
            if file_id
        ]
        if not file_ids:
            raise BatchNotReadyError(batch_id, status=batch.status)

        entries: list[BatchResultEntry] = []
        for file_id in file_ids:
            with _vendor_errors("Batch results download"):
                content = await client.files.content(
                    file_id, timeout=self._timeouts.download
                )
            entries.extend(
                _parse_result_line(line) for line in iter_jsonl(content.text)
            )

        logger.debug(f"Retrieved {len(entries)} result(s) for batch {batch_id}")
        return entries

    async def cancel_batch(self, batch_id: str) -> dict[str, Any]:
        """Request cancellation and return the batch as reported by the API."""
        client = self._get_async_client()
        with _vendor_errors("Batch cancellation"):
            batch = await client.batches.cancel(
                batch_id, timeout=self._timeouts.metadata
            )
        logger.info(f"Requested cancellation of batch {batch_id}")
        return batch.model_dump(mode="json")

    async def list_batches(self, limit: int = 20) -> dict[str, Any]:
        """Return the most recent batches (at most 100)."""
        client = self._get_async_client()
        with _vendor_errors("Batch listing"):
            page = await client.batches.list(
                limit=clamp_list_limit(limit), timeout=self._timeouts.metadata
            )
        return {
            "data": [batch.model_dump(mode="json") for batch in page.data],
            "has_more": bool(page.has_more),
        }


@contextmanager
def _vendor_errors(operation: str) -> Generator[None]:
    """Translate OpenAI SDK exceptions into translation service errors."""
    try:
        yield
    except openai.APIStatusError as e:
        message = vendor_error_message(e.body, e.response.text)
        logger.error(f"{operation} failed with status {e.status_code}: {message}")
        raise ProviderError(message, status_code=e.status_code) from e
    except (openai.APIConnectionError, httpx.TransportError) as e:
        logger.error(f"{operation} failed: {e}")
        raise ProviderConnectionError(f"Connection to OpenAI API failed: {e}") from e


def _extract_content(response: Any) -> str:
    """Return ``choices[0].message.content`` of a chat completion."""
    choices = getattr(response, "choices", None)
    if not choices:
        raise MalformedResponseError("Unexpected OpenAI response: no choices")
    content = getattr(getattr(choices[0], "message", None), "content", None)
    if not isinstance(content, str):
        raise MalformedResponseError(
            "Unexpected OpenAI response: first choice has no message content"
        )
    return content


def _to_batch_job(batch: Any, request_count: int | None = None) -> BatchJob:
    """Build a ``BatchJob`` from an OpenAI ``Batch``."""
    completed = failed = total = 0
    if batch.request_counts is not None:
        completed = batch.request_counts.completed or 0
        failed = batch.request_counts.failed or 0
        total = batch.request_counts.total or 0

    return BatchJob(
        id=batch.id,
        provider=ProviderName.OPENAI,
        status=_OPENAI_STATUS_MAP.get(batch.status, "in_progress"),
        request_count=request_count if request_count is not None else total,
        succeeded_count=completed,
        failed_count=failed,
        created_at=datetime.fromtimestamp(batch.created_at, UTC),
        output_handle=batch.output_file_id,
    )


def _parse_result_line(line: dict[str, Any]) -> BatchResultEntry:
    """Parse a single JSONL line from an OpenAI batch output or error file.

    Each line contains:
    - ``custom_id``: the originating request id
    - ``error``: top-level error (non-null when the request could not be dispatched)
    - ``response``: ``status_code`` and ``body`` with the completion or error detail
    """
    custom_id = line.get("custom_id")
    if not isinstance(custom_id, str):
        raise MalformedResponseError("Batch output line has no custom_id")

    if line.get("error"):
        error = line["error"]
        message = error.get("message") if isinstance(error, dict) else None
        return BatchResultEntry(
            custom_id=custom_id, raw=line, error=message or str(error)
        )

    response = line.get("response") or {}
    if not isinstance(response, dict):
        raise MalformedResponseError(
            f"Batch output line {custom_id} has a non-object response"
        )
    body = response.get("body") or {}
    if not isinstance(body, dict):
        raise MalformedResponseError(
            f"Batch output line {custom_id} has a non-object response body"
        )
    http_ok = 200
    if response.get("status_code") != http_ok:
        return BatchResultEntry(
            custom_id=custom_id,
            raw=line,
            error=vendor_error_message(
                body, f"Non-200 status: {response.get('status_code')}"
            ),
        )

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str):
        return BatchResultEntry(
            custom_id=custom_id, raw=line, error="Response has no message content"
        )

    return BatchResultEntry(
        custom_id=custom_id, raw=line, text=strip_code_fence(content)
    )


_OPENAI_STATUS_MAP: dict[str, BatchStatusLiteral] = {
    "validating": "validating",
    "in_progress": "in_progress",
    "finalizing": "in_progress",
    "completed": "completed",
    "failed": "failed",
    "expired": "expired",
    "cancelling": "cancelling",
    "cancelled": "cancelled",
}
