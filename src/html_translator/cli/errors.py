"""CLI error handling for the translator."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.panel import Panel
from typing_extensions import override

from html_translator.errors import ErrorKind, TranslationServiceError

logger = logging.getLogger(__name__)
console = Console()

_HINTS: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: (
        "Set ANTHROPIC_API_KEY or OPENAI_API_KEY (a .env file is read on start)."
    ),
    ErrorKind.CONNECTION: "The provider did not answer. The request can be retried.",
    ErrorKind.BATCH_NOT_READY: "Check 'batch status' and retry once the batch ended.",
}


class CLIError(Exception):
    """Exception for CLI-related errors with enhanced context.

    This exception serves as the CLI layer's unified error handling mechanism,
    providing meaningful context about what CLI operation failed and why.
    """

    def __init__(
        self,
        message: str,
        command: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialise CLI error with context.

        Args:
            message: Human-readable error message describing what went wrong
            command: Name of the CLI command that failed (e.g., "translate")
            original_error: The underlying exception that caused this CLI error

        """
        super().__init__(message)
        self.command = command
        self.original_error = original_error

    @override
    def __str__(self) -> str:
        """Return formatted error message with CLI context."""
        base_message = super().__str__()
        if self.command:
            return f"CLI command '{self.command}' failed: {base_message}"
        return base_message


def _panel_body(error: CLIError) -> str:
    body = f"[red]{error}[/red]"
    original = error.original_error
    if isinstance(original, TranslationServiceError) and original.kind in _HINTS:
        body += f"\n\n[dim]{_HINTS[original.kind]}[/dim]"
    return body


@contextmanager
def cli_error_handler(command: str, title: str) -> Generator[None]:
    """Context manager for unified CLI error handling.

    Catches exceptions, displays them as Rich error panels, and exits
    with code 1. Handles both pre-wrapped CLIError and raw exceptions.
    Typer's own ``Exit`` and ``Abort`` pass through untouched.

    Args:
        command: CLI command name for error context.
        title: Panel title for the error display.

    """
    try:
        yield
    except (typer.Exit, typer.Abort):
        raise
    except CLIError as e:
        logger.error("%s: %s", title, e)
        console.print(Panel(_panel_body(e), title=f"❌ {title}", border_style="red"))
        raise typer.Exit(1) from e
    except Exception as e:
        cli_error = CLIError(str(e), command=command, original_error=e)
        logger.error("%s: %s", title, cli_error)
        console.print(
            Panel(_panel_body(cli_error), title=f"❌ {title}", border_style="red")
        )
        raise typer.Exit(1) from cli_error
