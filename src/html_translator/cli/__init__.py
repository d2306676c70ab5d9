"""CLI command implementations for the translator."""

from html_translator.cli.batch import (
    batch_results_command,
    batch_status_command,
    cancel_batch_command,
    create_batch_command,
    list_batches_command,
)
from html_translator.cli.errors import CLIError
from html_translator.cli.translate import ask_command, check_command, translate_command

__all__ = [
    "CLIError",
    "ask_command",
    "batch_results_command",
    "batch_status_command",
    "cancel_batch_command",
    "check_command",
    "create_batch_command",
    "list_batches_command",
    "translate_command",
]
