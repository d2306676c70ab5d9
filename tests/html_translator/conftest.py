"""Shared fixtures for html_translator tests."""

import pytest

TRANSLATOR_ENV_VARS = [
    "TRANSLATOR_PROVIDER",
    "TRANSLATOR_ENV",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "ANTHROPIC_BASE_URL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
]


@pytest.fixture(autouse=True)
def clean_translator_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of every test."""
    for var in TRANSLATOR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
