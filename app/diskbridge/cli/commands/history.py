"""History command for viewing past mount operations.

This module provides the `diskbridge history` command for viewing
the history of mount and unmount attempts.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from diskbridge.cli.types import get_services, run_async
from diskbridge.models.history import HistoryEntry
from diskbridge.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    name="history",
    help="View history of mount operations.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
    clear: Annotated[
        bool,
        typer.Option(
            "--clear",
            help="Delete all history entries.",
        ),
    ] = False,
) -> None:
    """Show history of mount operations.

    Every mount and unmount attempt is recorded, including failures with
    their error details.

    Examples:
        diskbridge history              # Show last 20 entries
        diskbridge history -n 50        # Show last 50 entries
        diskbridge history --json       # JSON output for scripting
        diskbridge history --clear
    """
    if ctx.invoked_subcommand is not None:
        return

    log = get_services().history

    if clear:
        if not run_async(log.clear()):
            print_error("Could not clear history.")
            raise typer.Exit(code=1)
        print_success("History cleared.")
        return

    entries = run_async(log.get_history(limit=limit))

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(entries)
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as Rich table.

    Args:
        entries: List of history entries to display.
    """
    table = Table(title="Mount History", header_style="bold_header", border_style="border")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Operation", style="green")
    table.add_column("Target", style="white")
    table.add_column("Access", style="white")
    table.add_column("Result")

    for entry in entries:
        target = f"disk {entry.disk_index}"
        if entry.partition_number is not None:
            target += f" p{entry.partition_number}"

        if entry.success:
            outcome = "[success]OK[/]"
        else:
            outcome = f"[error]{entry.failed_step.value}[/]: {escape(entry.error_message or '')}"

        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.operation.value,
            target,
            _format_access(entry),
            outcome,
        )

    console.print(table)


def _format_access(entry: HistoryEntry) -> str:
    if entry.drive_letter:
        return f"{entry.drive_letter}:"
    if entry.network_location_name:
        return entry.network_location_name
    return entry.access_mode.value


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display (YYYY-MM-DD HH:MM)."""
    try:
        dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except ValueError:
        return iso_timestamp
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(entries: list[HistoryEntry]) -> None:
    """Print history as JSON for scripting."""
    output = [entry.to_dict() for entry in entries]
    typer.echo(json.dumps(output, indent=2))
