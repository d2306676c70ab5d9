"""Data models shared by the providers and the batch orchestrator.

These are pure value objects: immutable after creation. A ``BatchJob`` is a
view of vendor-owned state, rebuilt on every status query.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

MAX_TEXT_LENGTH = 50_000
"""Maximum characters of HTML accepted per translation request."""

BatchStatusLiteral: TypeAlias = Literal[
    "submitted",
    "validating",
    "in_progress",
    "completed",
    "failed",
    "expired",
    "cancelling",
    "cancelled",
]
"""Lifecycle states of a batch job, as observed from the vendor."""

TERMINAL_STATUSES: frozenset[str] = frozenset(
    {"completed", "failed", "expired", "cancelled"}
)


class ProviderName(StrEnum):
    """Supported translation providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class TranslationRequest(BaseModel):
    """A single HTML fragment to translate within a batch.

    The ``id`` is the correlation key: it is sent to the vendor as
    ``custom_id`` and comes back on the matching result line.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    source_lang: str = Field(default="cs", min_length=2, max_length=2)
    target_lang: str = Field(default="pl", min_length=2, max_length=2)


class BatchJob(BaseModel):
    """Current state of a vendor batch job."""

    model_config = ConfigDict(frozen=True)

    id: str
    """Vendor's batch identifier."""

    provider: ProviderName
    status: BatchStatusLiteral
    request_count: int
    succeeded_count: int = 0
    failed_count: int = 0
    created_at: datetime
    output_handle: str | None = None
    """Results URL (Anthropic) or output file id (OpenAI), once available."""

    @property
    def is_terminal(self) -> bool:
        """Return True when the vendor will not change this batch any more."""
        return self.status in TERMINAL_STATUSES


class BatchResultEntry(BaseModel):
    """Per-request result of a finished batch."""

    model_config = ConfigDict(frozen=True)

    custom_id: str
    raw: dict[str, Any]
    """The vendor's result line, unmodified."""

    text: str | None = None
    """Sanitized completion text, when the request succeeded."""

    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return True when the vendor produced a completion for this request."""
        return self.text is not None
