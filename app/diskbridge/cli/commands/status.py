"""Status command for listing active mounts.

This module provides the `diskbridge status` command.
"""

import json
from typing import Annotated

import typer

from diskbridge.cli.types import get_services, run_async, startup_reconcile
from diskbridge.core.factory import Services
from diskbridge.models.mount import ActiveMount
from diskbridge.utils.formatting import console, create_mount_table, format_mount_row, print_info

app = typer.Typer(
    name="status",
    help="Show active mounts.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def status(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the recorded active mounts.

    Examples:
        diskbridge status
        diskbridge status --json    # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet")) or json_output
    services = get_services()
    mounts = run_async(_active_mounts(services, quiet))

    if json_output:
        typer.echo(json.dumps([m.to_dict() for m in mounts], indent=2))
        return

    if not mounts:
        print_info("No active mounts.")
        return

    table = create_mount_table()
    for mount in mounts:
        table.add_row(*format_mount_row(mount))
    console.print(table)


async def _active_mounts(services: Services, quiet: bool) -> list[ActiveMount]:
    await startup_reconcile(services, quiet)
    return await services.state.get_active_mounts()
