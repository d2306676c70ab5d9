"""Main entry point for the HTML translator.

This module provides the command-line interface, including commands for:
- Translating single HTML fragments
- Free-form conversations with a provider
- Checking API key configuration
- Managing batch translation jobs
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from html_translator.cli import (
    ask_command,
    batch_results_command,
    batch_status_command,
    cancel_batch_command,
    check_command,
    create_batch_command,
    list_batches_command,
    translate_command,
)

# Values already in the environment take precedence over .env
load_dotenv()

app = typer.Typer(name="html-translate", no_args_is_help=True)
batch_app = typer.Typer(help="Manage batch translation jobs.", no_args_is_help=True)
app.add_typer(batch_app, name="batch")

ProviderArg = Annotated[
    str,
    typer.Argument(help="Provider to use: anthropic (claude) or openai (chatgpt)"),
]
BatchIdArg = Annotated[str, typer.Argument(help="Vendor batch identifier")]
ModelOption = Annotated[
    str | None,
    typer.Option("--model", "-m", help="Model override (defaults per provider)"),
]
MaxTokensOption = Annotated[
    int,
    typer.Option("--max-tokens", help="Completion token limit per request", min=1),
]
YesOption = Annotated[
    bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")
]
LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        case_sensitive=False,
    ),
]


@app.command()
def translate(  # noqa: PLR0913 - CLI entry point with many options
    provider: ProviderArg,
    text: Annotated[
        str | None, typer.Option("--text", "-t", help="HTML text to translate")
    ] = None,
    input_file: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            help="Read the HTML text from a file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Save the translation to a file instead of printing it",
            file_okay=True,
            dir_okay=False,
            writable=True,
        ),
    ] = None,
    source_lang: Annotated[
        str, typer.Option("--from", "-f", help="Source language code")
    ] = "cs",
    target_lang: Annotated[
        str, typer.Option("--to", help="Target language code")
    ] = "pl",
    model: ModelOption = None,
    max_tokens: MaxTokensOption = 4096,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Translate an HTML fragment, preserving its markup.

    Example:
        html-translate translate claude --text "<p>Dobrý den</p>" --to pl
        html-translate translate openai -i article.html -o article.pl.html

    """
    translate_command(
        provider,
        text=text,
        input_file=input_file,
        output_file=output_file,
        source_lang=source_lang,
        target_lang=target_lang,
        model=model,
        max_tokens=max_tokens,
        log_level=log_level,
    )


@app.command()
def ask(
    provider: ProviderArg,
    message: Annotated[str, typer.Argument(help="Message to send")],
    model: ModelOption = None,
    max_tokens: MaxTokensOption = 4096,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Send a free-form message and print the reply."""
    ask_command(provider, message, model, max_tokens, log_level)


@app.command()
def check(log_level: LogLevelOption = "WARNING") -> None:
    """Report which provider API keys are configured."""
    check_command(log_level)


@batch_app.command(name="create")
def batch_create(
    provider: ProviderArg,
    input_file: Annotated[
        Path,
        typer.Option(
            "--input",
            "-i",
            help="CSV file with a header row and columns id,text,from,to",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    assume_yes: YesOption = False,
    max_tokens: MaxTokensOption = 4096,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Submit a CSV file of translations as one batch job."""
    create_batch_command(provider, input_file, assume_yes, max_tokens, log_level)


@batch_app.command(name="status")
def batch_status(
    provider: ProviderArg, batch_id: BatchIdArg, log_level: LogLevelOption = "WARNING"
) -> None:
    """Show the current state of a batch job."""
    batch_status_command(provider, batch_id, log_level)


@batch_app.command(name="results")
def batch_results(
    provider: ProviderArg,
    batch_id: BatchIdArg,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="JSON Lines output file",
            show_default="batch-results-<id>.jsonl",
            file_okay=True,
            dir_okay=False,
            writable=True,
        ),
    ] = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Download the results of a finished batch job."""
    batch_results_command(provider, batch_id, output_file, log_level)


@batch_app.command(name="cancel")
def batch_cancel(
    provider: ProviderArg,
    batch_id: BatchIdArg,
    assume_yes: YesOption = False,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Request cancellation of a batch job."""
    cancel_batch_command(provider, batch_id, assume_yes, log_level)


@batch_app.command(name="list")
def batch_list(
    provider: ProviderArg,
    limit: Annotated[
        int, typer.Option("--limit", "-l", help="Number of batches to show", min=1)
    ] = 20,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """List recent batch jobs."""
    list_batches_command(provider, limit, log_level)


if __name__ == "__main__":
    app()
