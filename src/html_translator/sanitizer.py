"""Markdown code-fence removal for model replies."""

from __future__ import annotations

import re

# Only a wrapper around the whole reply is removed; fences inside the body stay.
# Known markup tags may be glued to the content; other tags need whitespace.
_LEADING_FENCE = re.compile(r"\A```(?:html|xml|[a-z0-9_+-]+(?=\s))?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\Z")


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapped around a model reply.

    Strips one optional leading fence (with an optional language tag such as
    ``html``) and one optional trailing fence, then trims outer whitespace.
    Already-clean text is returned unchanged apart from the trim.

    Args:
        text: Raw model reply.

    Returns:
        The reply without the surrounding fence.

    """
    text = text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()
