"""Batch orchestrator for the translation batch lifecycle.

Drives vendor batch jobs through an injected ``BatchProtocol`` strategy:
submission, status checks, result retrieval, cancellation and listing. The
vendor owns the job state machine::

    submitted → validating → in_progress → completed | failed | expired
                                         → cancelling → cancelled

The orchestrator never changes that state itself. It only triggers vendor
transitions (``submit``, ``cancel``) and observes the current state
(``status``). There is no polling loop: each call is a single request, and
the caller decides when to ask again.

Typical usage::

    orchestrator = BatchOrchestrator(AnthropicProvider())
    job = await orchestrator.submit(requests)
    ...
    job = await orchestrator.status(job.id)
    if job.status == "completed":
        results = await orchestrator.results(job.id)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any

from html_translator.errors import BatchValidationError
from html_translator.providers._wire import check_batch_size
from html_translator.providers.protocol import BatchProtocol
from html_translator.types import (
    TERMINAL_STATUSES,
    BatchJob,
    BatchResultEntry,
    TranslationRequest,
)

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Uniform batch lifecycle interface over one vendor's batch API."""

    def __init__(self, protocol: BatchProtocol) -> None:
        """Initialise the orchestrator.

        Args:
            protocol: Vendor batch strategy (e.g. ``AnthropicProvider``).

        """
        self._protocol = protocol

    @property
    def protocol(self) -> BatchProtocol:
        """Return the vendor batch strategy in use."""
        return self._protocol

    def validate(self, requests: Sequence[TranslationRequest]) -> None:
        """Check a submission without contacting the vendor.

        Raises:
            BatchValidationError: If the batch is empty or ids repeat.
            BatchSizeExceededError: If the batch exceeds the provider ceiling.

        """
        if not requests:
            raise BatchValidationError("Batch must contain at least one request")

        check_batch_size(
            len(requests),
            self._protocol.max_batch_size,
            self._protocol.provider_name,
        )

        duplicates = sorted(
            request_id
            for request_id, count in Counter(r.id for r in requests).items()
            if count > 1
        )
        if duplicates:
            shown = ", ".join(duplicates[:5])
            more = f" (+{len(duplicates) - 5} more)" if len(duplicates) > 5 else ""
            raise BatchValidationError(f"Duplicate request ids: {shown}{more}")

    async def submit(
        self, requests: Sequence[TranslationRequest], max_tokens: int = 4096
    ) -> BatchJob:
        """Validate and submit translation requests as one vendor batch.

        Args:
            requests: Requests with unique ids.
            max_tokens: Completion token limit per request.

        Returns:
            The created job; ``request_count`` equals ``len(requests)``.

        """
        self.validate(requests)

        job = await self._protocol.create_batch(requests, max_tokens)
        logger.info(
            f"Created {job.provider} batch {job.id} "
            f"({job.request_count} request(s), status {job.status})"
        )
        return job

    async def status(self, batch_id: str) -> BatchJob:
        """Return the vendor's current view of a batch."""
        return await self._protocol.get_batch_status(batch_id)

    async def status_many(self, batch_ids: Iterable[str]) -> list[BatchJob]:
        """Check several batches concurrently, preserving input order.

        The first failure propagates to the caller.
        """
        return list(
            await asyncio.gather(
                *(self._protocol.get_batch_status(batch_id) for batch_id in batch_ids)
            )
        )

    async def results(self, batch_id: str) -> list[BatchResultEntry]:
        """Return the per-request results of a finished batch.

        Raises:
            BatchNotReadyError: If the vendor has not produced results yet.

        """
        entries = await self._protocol.get_batch_results(batch_id)
        failed = sum(1 for entry in entries if not entry.succeeded)
        logger.info(
            f"Fetched {len(entries)} result(s) for batch {batch_id} ({failed} failed)"
        )
        return entries

    async def cancel(self, batch_id: str) -> dict[str, Any]:
        """Request cancellation; returns the vendor acknowledgement unmodified."""
        return await self._protocol.cancel_batch(batch_id)

    async def list_batches(self, limit: int = 20) -> dict[str, Any]:
        """Return a page of recent batches (``limit`` is clamped to 100)."""
        return await self._protocol.list_batches(limit)

    @staticmethod
    def is_terminal(status: str) -> bool:
        """Return True for statuses the vendor will not leave again."""
        return status in TERMINAL_STATUSES
