"""Translation prompt construction.

The prompt is a pure function of its inputs and the static language table,
so the same request always produces byte-identical prompt text.
"""

from __future__ import annotations

LANGUAGE_NAMES: dict[str, str] = {
    "cs": "Czech",
    "pl": "Polish",
    "en": "English",
    "de": "German",
    "sk": "Slovak",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "ru": "Russian",
    "uk": "Ukrainian",
}
"""Two-letter ISO 639-1 code to the English language name used in prompts."""

DEFAULT_NO_TRANSLATE_TAG = "em"


def language_name(code: str) -> str:
    """Return the language name for a code, or the code itself if unknown."""
    return LANGUAGE_NAMES.get(code.lower(), code)


def build_prompt(
    text: str,
    from_lang: str,
    to_lang: str,
    *,
    no_translate_tag: str = DEFAULT_NO_TRANSLATE_TAG,
) -> str:
    """Build the instruction prompt for translating an HTML fragment.

    Args:
        text: HTML fragment to translate, embedded verbatim.
        from_lang: Source language code (e.g. "cs").
        to_lang: Target language code (e.g. "pl").
        no_translate_tag: Inline element whose content must stay untouched
            (album titles are wrapped in ``<em>``).

    Returns:
        Complete prompt string.

    """
    source = language_name(from_lang)
    target = language_name(to_lang)

    return f"""Translate the following HTML text from {source} to {target}.

IMPORTANT INSTRUCTIONS:
- Preserve all HTML tags and the document structure exactly
- Keep every HTML attribute and its value unchanged
- Translate only the visible text content inside the tags
- Do NOT translate text inside <{no_translate_tag}> tags (album and work titles)
- Do NOT translate names of people, brands or other proper nouns
- Return ONLY the translated HTML, without any explanation
- Do NOT wrap the output in markdown code blocks (```html or ```)

HTML text to translate:

{text}"""
