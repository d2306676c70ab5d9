"""Tests for AnthropicProvider.

Business behaviour: translates HTML through the Anthropic Messages API and
drives the Message Batches API, satisfying the TranslationProvider and
BatchProtocol protocols.
"""

import json
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import pytest

from html_translator.configuration import Timeouts
from html_translator.errors import (
    BatchNotReadyError,
    BatchSizeExceededError,
    ConfigurationError,
    MalformedResponseError,
    ProviderConnectionError,
    ProviderError,
)
from html_translator.providers import (
    AnthropicProvider,
    BatchProtocol,
    TranslationProvider,
)
from html_translator.types import TranslationRequest

CLIENT_PATH = "html_translator.providers.anthropic.AsyncAnthropic"
MESSAGES_URL = "https://api.anthropic.com/v1/messages"

# =============================================================================
# Helpers
# =============================================================================


def _message(text: str) -> Mock:
    """Create a Messages API response with one text block."""
    return Mock(content=[Mock(text=text)])


def _batch(
    processing_status: str = "in_progress",
    results_url: str | None = None,
    cancel_initiated_at: datetime | None = None,
    **counts: int,
) -> Mock:
    """Create a MessageBatch with the given request counts."""
    batch = Mock()
    batch.id = "msgbatch_123"
    batch.processing_status = processing_status
    batch.results_url = results_url
    batch.cancel_initiated_at = cancel_initiated_at
    batch.created_at = datetime(2025, 6, 15, 10, 0, 0, tzinfo=UTC)
    batch.request_counts = Mock(
        processing=counts.get("processing", 0),
        succeeded=counts.get("succeeded", 0),
        errored=counts.get("errored", 0),
        canceled=counts.get("canceled", 0),
        expired=counts.get("expired", 0),
    )
    return batch


def _status_error(status_code: int, message: str) -> anthropic.APIStatusError:
    body = {"type": "error", "error": {"type": "api_error", "message": message}}
    response = httpx.Response(
        status_code, json=body, request=httpx.Request("POST", MESSAGES_URL)
    )
    return anthropic.APIStatusError(message, response=response, body=body)


def _requests(count: int) -> list[TranslationRequest]:
    return [
        TranslationRequest(id=str(i), text=f"<p>Text {i}</p>") for i in range(count)
    ]


@pytest.fixture
def mock_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def provider(mock_client: AsyncMock) -> Iterator[AnthropicProvider]:
    with patch(CLIENT_PATH, return_value=mock_client):
        yield AnthropicProvider(api_key="test-key")


# =============================================================================
# Initialisation
# =============================================================================


class TestAnthropicProviderInitialisation:
    """Tests for AnthropicProvider initialisation and configuration."""

    def test_initialisation_with_explicit_parameters(self) -> None:
        """Provider accepts api_key and model parameters."""
        provider = AnthropicProvider(api_key="test-api-key", model="claude-opus-4-5")

        assert provider.model_name == "claude-opus-4-5"
        assert provider.provider_name == "anthropic"
        assert provider.max_batch_size == 100_000

    def test_initialisation_with_environment_variables(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Provider reads from ANTHROPIC_API_KEY and ANTHROPIC_MODEL env vars."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-api-key")
        monkeypatch.setenv("ANTHROPIC_MODEL", "claude-haiku-4-5")

        provider = AnthropicProvider()

        assert provider.model_name == "claude-haiku-4-5"

    def test_initialisation_uses_default_model(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Provider uses claude-sonnet-4-5-20250929 when model not specified."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")

        provider = AnthropicProvider()

        assert provider.model_name == "claude-sonnet-4-5-20250929"

    def test_missing_api_key_raises_configuration_error(self) -> None:
        """Missing API key raises ConfigurationError with helpful message."""
        with pytest.raises(ConfigurationError) as exc_info:
            AnthropicProvider()

        assert "ANTHROPIC_API_KEY" in str(exc_info.value)

    def test_empty_api_key_raises_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An explicit empty key is rejected even if the environment has one."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

        with pytest.raises(ConfigurationError):
            AnthropicProvider(api_key="")

    def test_with_model_returns_new_provider(self) -> None:
        """with_model() leaves the original adapter untouched."""
        provider = AnthropicProvider(api_key="test-key", model="claude-opus-4-5")

        other = provider.with_model("claude-haiku-4-5")

        assert other.model_name == "claude-haiku-4-5"
        assert provider.model_name == "claude-opus-4-5"

    def test_client_created_without_retries(self) -> None:
        """The SDK client is built lazily with retries disabled."""
        with patch(CLIENT_PATH) as mock_client_class:
            provider = AnthropicProvider(
                api_key="test-key", base_url="http://localhost:9000"
            )
            provider._get_async_client()
            provider._get_async_client()

        mock_client_class.assert_called_once_with(
            api_key="test-key", base_url="http://localhost:9000", max_retries=0
        )

    def test_satisfies_both_protocols(self) -> None:
        """Provider satisfies TranslationProvider and BatchProtocol."""
        provider = AnthropicProvider(api_key="test-key")

        assert isinstance(provider, TranslationProvider)
        assert isinstance(provider, BatchProtocol)


# =============================================================================
# translate / converse
# =============================================================================


class TestAnthropicProviderTranslate:
    """Tests for single-request translation."""

    async def test_translate_returns_reply_text(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A plain reply is returned as the translation."""
        mock_client.messages.create.return_value = _message("<p>Dzień dobry</p>")

        result = await provider.translate("<p>Dobrý den</p>", "cs", "pl")

        assert result == "<p>Dzień dobry</p>"

    async def test_translate_sends_prompt_with_model_and_timeout(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """The request carries the model, token limit, prompt and chat timeout."""
        mock_client.messages.create.return_value = _message("<p>x</p>")

        await provider.translate("<p>Dobrý den</p>", "cs", "pl", max_tokens=1000)

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-sonnet-4-5-20250929"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["timeout"] == 120.0
        [message] = kwargs["messages"]
        assert message["role"] == "user"
        assert "from Czech to Polish" in message["content"]
        assert message["content"].endswith("<p>Dobrý den</p>")

    async def test_translate_strips_code_fence(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A fenced reply is returned without the fence."""
        mock_client.messages.create.return_value = _message(
            "```html\n<p>Dzień dobry</p>\n```"
        )

        result = await provider.translate("<p>Dobrý den</p>", "cs", "pl")

        assert result == "<p>Dzień dobry</p>"

    async def test_converse_returns_raw_reply_with_options(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """converse() skips templating and sanitizing and merges options."""
        mock_client.messages.create.return_value = _message("```\nhi\n```")

        result = await provider.converse("Hello", options={"temperature": 0.2})

        assert result == "```\nhi\n```"
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Hello"}]
        assert kwargs["temperature"] == 0.2

    async def test_reply_without_text_raises_malformed_response(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A reply with no content blocks is malformed."""
        mock_client.messages.create.return_value = Mock(content=[])

        with pytest.raises(MalformedResponseError):
            await provider.translate("<p>x</p>")

    async def test_status_error_raises_provider_error(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """HTTP 401 surfaces the vendor message and status code."""
        mock_client.messages.create.side_effect = _status_error(401, "Invalid API key")

        with pytest.raises(ProviderError) as exc_info:
            await provider.translate("<p>x</p>")

        assert exc_info.value.message == "Invalid API key"
        assert exc_info.value.status_code == 401

    async def test_connection_failure_raises_connection_error(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """Transport failures surface as ProviderConnectionError."""
        mock_client.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", MESSAGES_URL)
        )

        with pytest.raises(ProviderConnectionError):
            await provider.translate("<p>x</p>")

    async def test_timeout_raises_connection_error(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """SDK timeouts are connection failures."""
        mock_client.messages.create.side_effect = anthropic.APITimeoutError(
            request=httpx.Request("POST", MESSAGES_URL)
        )

        with pytest.raises(ProviderConnectionError):
            await provider.translate("<p>x</p>")


# =============================================================================
# Batch submission
# =============================================================================


class TestAnthropicProviderCreateBatch:
    """Tests for create_batch()."""

    async def test_create_batch_posts_all_requests(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """Each request becomes {custom_id, params} in one create call."""
        mock_client.messages.batches.create.return_value = _batch(processing=2)
        requests = [
            TranslationRequest(id="a", text="<p>Ahoj</p>"),
            TranslationRequest(id="b", text="<p>Sbohem</p>", target_lang="de"),
        ]

        job = await provider.create_batch(requests, max_tokens=2048)

        kwargs = mock_client.messages.batches.create.call_args.kwargs
        sent = kwargs["requests"]
        assert [r["custom_id"] for r in sent] == ["a", "b"]
        assert sent[0]["params"]["model"] == "claude-sonnet-4-5-20250929"
        assert sent[0]["params"]["max_tokens"] == 2048
        assert "from Czech to German" in sent[1]["params"]["messages"][0]["content"]
        assert kwargs["timeout"] == 60.0

        assert job.id == "msgbatch_123"
        assert job.provider == "anthropic"
        assert job.status == "in_progress"
        assert job.request_count == 2

    async def test_create_batch_over_ceiling_makes_no_call(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """100 001 requests are rejected before any network call."""
        request = TranslationRequest(id="1", text="<p>x</p>")

        with pytest.raises(BatchSizeExceededError):
            await provider.create_batch([request] * 100_001)

        mock_client.messages.batches.create.assert_not_called()

    async def test_create_batch_rejection_raises_provider_error(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A rejected submission surfaces the vendor message."""
        mock_client.messages.batches.create.side_effect = _status_error(
            400, "requests: too many items"
        )

        with pytest.raises(ProviderError, match="too many items"):
            await provider.create_batch(_requests(2))


# =============================================================================
# Batch status
# =============================================================================


class TestAnthropicProviderBatchStatus:
    """Tests for get_batch_status()."""

    @pytest.mark.parametrize(
        ("anthropic_status", "expected_status"),
        [
            ("in_progress", "in_progress"),
            ("canceling", "cancelling"),
            ("ended", "completed"),
        ],
    )
    async def test_status_mapping(
        self,
        provider: AnthropicProvider,
        mock_client: AsyncMock,
        anthropic_status: str,
        expected_status: str,
    ) -> None:
        """Anthropic processing statuses map to the batch lifecycle."""
        mock_client.messages.batches.retrieve.return_value = _batch(anthropic_status)

        job = await provider.get_batch_status("msgbatch_123")

        assert job.status == expected_status

    async def test_ended_after_cancel_is_cancelled(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A batch that ended after a cancel request reports cancelled."""
        mock_client.messages.batches.retrieve.return_value = _batch(
            "ended", cancel_initiated_at=datetime(2025, 6, 15, 11, 0, tzinfo=UTC)
        )

        job = await provider.get_batch_status("msgbatch_123")

        assert job.status == "cancelled"

    async def test_counts_are_mapped(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """Errored, expired and cancelled requests all count as failed."""
        mock_client.messages.batches.retrieve.return_value = _batch(
            "ended",
            results_url="https://api.anthropic.com/results",
            succeeded=5,
            errored=2,
            expired=1,
            canceled=1,
            processing=3,
        )

        job = await provider.get_batch_status("msgbatch_123")

        assert job.succeeded_count == 5
        assert job.failed_count == 4
        assert job.request_count == 12
        assert job.output_handle == "https://api.anthropic.com/results"
        mock_client.messages.batches.retrieve.assert_awaited_once_with(
            "msgbatch_123", timeout=30.0
        )


# =============================================================================
# Batch results
# =============================================================================


class TestAnthropicProviderBatchResults:
    """Tests for get_batch_results()."""

    @staticmethod
    def _response(custom_id: str, result_type: str, **fields: Any) -> Mock:
        response = Mock()
        response.custom_id = custom_id
        response.result.type = result_type
        response.model_dump.return_value = {
            "custom_id": custom_id,
            "result": {"type": result_type},
        }
        if "text" in fields:
            response.result.message.content = [Mock(text=fields["text"])]
        if "error" in fields:
            response.result.error.error.message = fields["error"]
        return response

    async def test_results_parse_every_outcome(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """One entry per request, with sanitized text or an error."""
        responses = [
            self._response("1", "succeeded", text="```html\n<p>Cześć</p>\n```"),
            self._response("2", "errored", error="Overloaded"),
            self._response("3", "canceled"),
            self._response("4", "expired"),
        ]

        async def stream():
            for response in responses:
                yield response

        mock_client.messages.batches.retrieve.return_value = _batch(
            "ended", results_url="https://api.anthropic.com/results"
        )
        mock_client.messages.batches.results.return_value = stream()

        entries = await provider.get_batch_results("msgbatch_123")

        assert [e.custom_id for e in entries] == ["1", "2", "3", "4"]
        assert entries[0].text == "<p>Cześć</p>"
        assert entries[0].raw == {"custom_id": "1", "result": {"type": "succeeded"}}
        assert entries[1].error == "Overloaded"
        assert entries[2].error == "Request was cancelled"
        assert entries[3].error == "Request expired"
        assert [e.succeeded for e in entries] == [True, False, False, False]
        mock_client.messages.batches.results.assert_awaited_once_with(
            "msgbatch_123", timeout=120.0
        )

    async def test_results_not_ready_skips_download(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """Without a results URL no download is attempted."""
        mock_client.messages.batches.retrieve.return_value = _batch("in_progress")

        with pytest.raises(BatchNotReadyError) as exc_info:
            await provider.get_batch_results("msgbatch_123")

        assert exc_info.value.status == "in_progress"
        mock_client.messages.batches.results.assert_not_called()

    async def test_results_with_invalid_json_are_malformed(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A JSON decode failure in the results stream is a malformed response."""
        first = self._response("1", "succeeded", text="<p>Ahoj</p>")

        async def stream():
            yield first
            raise json.JSONDecodeError("Expecting value", "{", 0)

        mock_client.messages.batches.retrieve.return_value = _batch(
            "ended", results_url="https://api.anthropic.com/results"
        )
        mock_client.messages.batches.results.return_value = stream()

        with pytest.raises(MalformedResponseError) as exc_info:
            await provider.get_batch_results("msgbatch_123")

        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)


# =============================================================================
# Cancel / list
# =============================================================================


class TestAnthropicProviderCancelAndList:
    """Tests for cancel_batch() and list_batches()."""

    async def test_cancel_returns_vendor_payload(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """The acknowledgement is the batch as dumped by the SDK."""
        cancelled = Mock()
        cancelled.model_dump.return_value = {
            "id": "msgbatch_123",
            "processing_status": "canceling",
        }
        mock_client.messages.batches.cancel.return_value = cancelled

        ack = await provider.cancel_batch("msgbatch_123")

        assert ack["processing_status"] == "canceling"
        mock_client.messages.batches.cancel.assert_awaited_once_with(
            "msgbatch_123", timeout=30.0
        )

    async def test_cancel_unknown_batch_raises_provider_error(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """A 404 from the vendor is a ProviderError."""
        mock_client.messages.batches.cancel.side_effect = _status_error(
            404, "Batch not found"
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.cancel_batch("msgbatch_missing")

        assert exc_info.value.status_code == 404

    async def test_list_clamps_limit(
        self, provider: AnthropicProvider, mock_client: AsyncMock
    ) -> None:
        """Limits above 100 are clamped and the page is returned as data."""
        item = Mock()
        item.model_dump.return_value = {"id": "msgbatch_1"}
        mock_client.messages.batches.list.return_value = Mock(
            data=[item], has_more=True
        )

        page = await provider.list_batches(500)

        assert page == {"data": [{"id": "msgbatch_1"}], "has_more": True}
        mock_client.messages.batches.list.assert_awaited_once_with(
            limit=100, timeout=30.0
        )


class TestAnthropicProviderTimeouts:
    """Tests for configurable timeouts."""

    async def test_custom_chat_timeout(self, mock_client: AsyncMock) -> None:
        """The chat timeout is passed to every message request."""
        mock_client.messages.create.return_value = _message("<p>x</p>")

        with patch(CLIENT_PATH, return_value=mock_client):
            provider = AnthropicProvider(api_key="k", timeouts=Timeouts(chat=5))
            await provider.converse("Hi")

        assert mock_client.messages.create.call_args.kwargs["timeout"] == 5
