"""Wire-format helpers shared by the provider adapters."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import Any

from html_translator.errors import BatchSizeExceededError, MalformedResponseError

MAX_LIST_LIMIT = 100
"""Largest page size accepted by the vendors' batch list endpoints."""


def check_batch_size(count: int, limit: int, provider: str) -> None:
    """Raise ``BatchSizeExceededError`` when ``count`` exceeds ``limit``."""
    if count > limit:
        raise BatchSizeExceededError(count=count, limit=limit, provider=provider)


def clamp_list_limit(limit: int) -> int:
    """Clamp a requested page size to ``1..MAX_LIST_LIMIT``."""
    return max(1, min(limit, MAX_LIST_LIMIT))


def encode_jsonl(lines: Iterable[dict[str, Any]]) -> bytes:
    """Encode objects as newline-delimited JSON (UTF-8, one object per line)."""
    return b"".join(
        json.dumps(line, ensure_ascii=False).encode("utf-8") + b"\n" for line in lines
    )


def iter_jsonl(text: str) -> Iterator[dict[str, Any]]:
    """Decode newline-delimited JSON, skipping blank lines.

    Raises:
        MalformedResponseError: If a non-blank line is not a JSON object.

    """
    for number, raw_line in enumerate(text.splitlines(), start=1):
        if not raw_line.strip():
            continue
        try:
            value = json.loads(raw_line)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Invalid JSON on line {number} of batch output: {e}"
            ) from e
        if not isinstance(value, dict):
            raise MalformedResponseError(
                f"Expected a JSON object on line {number} of batch output"
            )
        yield value
