"""CLI command implementations for single translations and conversations."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from html_translator.cli.errors import CLIError, cli_error_handler
from html_translator.cli.infrastructure import build_provider
from html_translator.configuration import API_KEY_ENV_VARS
from html_translator.logging import setup_logging
from html_translator.types import MAX_TEXT_LENGTH

logger = logging.getLogger(__name__)
console = Console()


def translate_command(  # noqa: PLR0913 - mirrors the CLI options
    provider: str,
    text: str | None = None,
    input_file: Path | None = None,
    output_file: Path | None = None,
    source_lang: str = "cs",
    target_lang: str = "pl",
    model: str | None = None,
    max_tokens: int = 4096,
    log_level: str = "WARNING",
) -> None:
    """Translate one HTML fragment and print or save the result.

    The text comes from ``text``, then ``input_file``, then an interactive
    prompt, in that order.
    """
    setup_logging(level=log_level)

    with cli_error_handler("translate", "Translation failed"):
        html = _resolve_text(text, input_file)
        adapter = build_provider("translate", provider, model)

        console.print(
            f"[dim]Translating {len(html)} character(s) "
            f"{source_lang} → {target_lang} with {adapter.model_name}...[/dim]",
            highlight=False,
        )
        translated = asyncio.run(
            adapter.translate(html, source_lang, target_lang, max_tokens=max_tokens)
        )

        if output_file is not None:
            output_file.write_text(translated, encoding="utf-8")
            console.print(f"[green]✓ Translation saved to {output_file}[/green]")
        else:
            typer.echo(translated)


def ask_command(
    provider: str,
    message: str,
    model: str | None = None,
    max_tokens: int = 4096,
    log_level: str = "WARNING",
) -> None:
    """Send a free-form message and print the raw reply."""
    setup_logging(level=log_level)

    with cli_error_handler("ask", "Request failed"):
        adapter = build_provider("ask", provider, model)
        reply = asyncio.run(adapter.converse(message, max_tokens=max_tokens))
        typer.echo(reply)


def check_command(log_level: str = "WARNING") -> None:
    """Report which provider API keys are configured.

    Only key lengths are shown; the keys themselves are never printed.
    """
    setup_logging(level=log_level)

    table = Table(title="API keys")
    table.add_column("Provider", style="cyan")
    table.add_column("Variable")
    table.add_column("Status")

    configured = 0
    for name, env_var in API_KEY_ENV_VARS.items():
        key = os.getenv(env_var, "")
        if key:
            configured += 1
            status = f"[green]set ({len(key)} characters)[/green]"
        else:
            status = "[red]missing[/red]"
        table.add_row(str(name), env_var, status)

    console.print(table)

    if not configured:
        console.print(
            Panel(
                "[yellow]No API key configured.[/yellow]\n\n"
                "Add ANTHROPIC_API_KEY or OPENAI_API_KEY to your .env file.",
                title="Configuration",
                border_style="yellow",
            )
        )
        raise typer.Exit(1)


def _resolve_text(text: str | None, input_file: Path | None) -> str:
    if text:
        html = text
    elif input_file is not None:
        try:
            html = input_file.read_text(encoding="utf-8")
        except OSError as e:
            raise CLIError(
                f"Cannot read input file {input_file}: {e}",
                command="translate",
                original_error=e,
            ) from e
    else:
        html = typer.prompt("HTML text to translate")

    if not html.strip():
        raise CLIError("Nothing to translate", command="translate")
    if len(html) > MAX_TEXT_LENGTH:
        raise CLIError(
            f"Text is {len(html)} characters long; the limit is {MAX_TEXT_LENGTH}",
            command="translate",
        )
    return html
