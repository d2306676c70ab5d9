"""CLI command implementations for batch translation jobs."""

from __future__ import annotations

import asyncio
import csv
import json
import logging
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from html_translator.cli.errors import CLIError, cli_error_handler
from html_translator.cli.infrastructure import build_orchestrator
from html_translator.logging import setup_logging
from html_translator.types import BatchJob, BatchResultEntry, TranslationRequest

logger = logging.getLogger(__name__)
console = Console()

_STATUS_STYLES: dict[str, str] = {
    "completed": "green",
    "failed": "red",
    "expired": "red",
    "cancelled": "yellow",
    "cancelling": "yellow",
}


def create_batch_command(
    provider: str,
    input_file: Path,
    assume_yes: bool = False,
    max_tokens: int = 4096,
    log_level: str = "WARNING",
) -> None:
    """Submit every row of a CSV file as one batch job.

    Orchestrates the submission flow:
    1. Read requests from the CSV file
    2. Validate the batch against the provider ceiling
    3. Ask for confirmation (skipped with ``assume_yes``)
    4. Submit and display the created job
    """
    setup_logging(level=log_level)

    with cli_error_handler("batch create", "Batch submission failed"):
        requests = read_requests_csv(input_file)
        orchestrator = build_orchestrator("batch create", provider)
        orchestrator.validate(requests)

        console.print(
            f"Loaded [bold]{len(requests)}[/bold] request(s) from {input_file}"
        )
        if not assume_yes:
            typer.confirm(
                f"Submit {len(requests)} request(s) to "
                f"{orchestrator.protocol.provider_name}?",
                abort=True,
            )

        job = asyncio.run(orchestrator.submit(requests, max_tokens))
        _print_job(job, title="Batch created")
        console.print(
            f"\nCheck progress with:\n  html-translate batch status {provider} {job.id}"
        )


def batch_status_command(
    provider: str, batch_id: str, log_level: str = "WARNING"
) -> None:
    """Display the current state of a batch job."""
    setup_logging(level=log_level)

    with cli_error_handler("batch status", "Status check failed"):
        orchestrator = build_orchestrator("batch status", provider)
        job = asyncio.run(orchestrator.status(batch_id))
        _print_job(job, title="Batch status")

        if job.status == "completed":
            console.print(
                f"\nDownload results with:\n"
                f"  html-translate batch results {provider} {job.id}"
            )


def batch_results_command(
    provider: str,
    batch_id: str,
    output_file: Path | None = None,
    log_level: str = "WARNING",
) -> None:
    """Download batch results and save them as JSON Lines.

    Writes one object per request (``custom_id``, ``text``, ``error``,
    ``raw``) to ``output_file``, by default ``batch-results-<id>.jsonl``.
    """
    setup_logging(level=log_level)

    with cli_error_handler("batch results", "Result download failed"):
        orchestrator = build_orchestrator("batch results", provider)
        entries = asyncio.run(orchestrator.results(batch_id))

        path = output_file or Path(f"batch-results-{batch_id}.jsonl")
        write_results_jsonl(entries, path)

        failed = sum(1 for entry in entries if not entry.succeeded)
        border = "green" if not failed else "yellow"
        console.print(
            Panel(
                f"[bold]Results:[/bold] {len(entries)}\n"
                f"[bold]Succeeded:[/bold] {len(entries) - failed}\n"
                f"[bold]Failed:[/bold] {failed}\n\n"
                f"Saved to {path}",
                title="Batch results",
                border_style=border,
            )
        )


def cancel_batch_command(
    provider: str,
    batch_id: str,
    assume_yes: bool = False,
    log_level: str = "WARNING",
) -> None:
    """Request cancellation of a batch job."""
    setup_logging(level=log_level)

    with cli_error_handler("batch cancel", "Cancellation failed"):
        orchestrator = build_orchestrator("batch cancel", provider)
        if not assume_yes:
            typer.confirm(f"Cancel batch {batch_id}?", abort=True)

        ack = asyncio.run(orchestrator.cancel(batch_id))
        status = ack.get("processing_status") or ack.get("status") or "unknown"
        console.print(
            f"[yellow]Cancellation requested for {batch_id}[/yellow] "
            f"(vendor status: {status})"
        )


def list_batches_command(
    provider: str, limit: int = 20, log_level: str = "WARNING"
) -> None:
    """Display recent batch jobs for a provider."""
    setup_logging(level=log_level)

    with cli_error_handler("batch list", "Listing batches failed"):
        orchestrator = build_orchestrator("batch list", provider)
        page = asyncio.run(orchestrator.list_batches(limit))

        batches: list[dict[str, Any]] = page.get("data", [])
        if not batches:
            console.print("[yellow]No batches found.[/yellow]")
            return

        table = Table(title=f"Recent {orchestrator.protocol.provider_name} batches")
        table.add_column("ID", style="cyan")
        table.add_column("Status")
        table.add_column("Created")

        for batch in batches:
            status = batch.get("processing_status") or batch.get("status") or ""
            table.add_row(
                str(batch.get("id", "")), str(status), str(batch.get("created_at", ""))
            )

        console.print(table)
        if page.get("has_more"):
            console.print("[dim]More batches exist; raise --limit to see them.[/dim]")


def read_requests_csv(path: Path) -> list[TranslationRequest]:
    """Read translation requests from a CSV file.

    The first row is a header. Columns are ``id,text,from,to``; ``from`` and
    ``to`` default to ``cs`` and ``pl``. Rows with fewer than two columns
    are skipped with a warning.

    Raises:
        CLIError: If the file cannot be read or a row is invalid.

    """
    requests: list[TranslationRequest] = []
    try:
        with open(path, encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            next(reader, None)
            for line_number, row in enumerate(reader, start=2):
                if len(row) < 2:
                    logger.warning(f"Skipping line {line_number}: expected id,text")
                    continue
                requests.append(_row_to_request(row, line_number))
    except OSError as e:
        raise CLIError(
            f"Cannot read {path}: {e}", command="batch create", original_error=e
        ) from e

    if not requests:
        raise CLIError(f"No requests found in {path}", command="batch create")
    return requests


def _row_to_request(row: list[str], line_number: int) -> TranslationRequest:
    source_lang = row[2].strip() if len(row) > 2 and row[2].strip() else "cs"
    target_lang = row[3].strip() if len(row) > 3 and row[3].strip() else "pl"
    try:
        return TranslationRequest(
            id=row[0].strip(),
            text=row[1],
            source_lang=source_lang,
            target_lang=target_lang,
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in item['loc'])}: {item['msg']}"
            for item in e.errors()
        )
        raise CLIError(
            f"Invalid request on line {line_number}: {problems}",
            command="batch create",
            original_error=e,
        ) from e


def write_results_jsonl(entries: list[BatchResultEntry], path: Path) -> None:
    """Write result entries to ``path``, one JSON object per line."""
    with open(path, "w", encoding="utf-8") as f:
        for entry in entries:
            f.write(json.dumps(entry.model_dump(mode="json"), ensure_ascii=False))
            f.write("\n")
    logger.info(f"Wrote {len(entries)} result(s) to {path}")


def _print_job(job: BatchJob, title: str) -> None:
    style = _STATUS_STYLES.get(job.status, "cyan")
    console.print(
        Panel(
            f"[bold]ID:[/bold] {job.id}\n"
            f"[bold]Provider:[/bold] {job.provider}\n"
            f"[bold]Status:[/bold] [{style}]{job.status}[/{style}]\n"
            f"[bold]Requests:[/bold] {job.request_count}\n"
            f"[bold]Succeeded:[/bold] {job.succeeded_count}\n"
            f"[bold]Failed:[/bold] {job.failed_count}\n"
            f"[bold]Created:[/bold] {job.created_at:%Y-%m-%d %H:%M:%S %Z}",
            title=title,
            border_style=style,
        )
    )
