"""Reconcile command.

Checks every recorded mount against the host and drops orphaned records.
"""

import typer

from diskbridge.cli.types import get_services, run_async
from diskbridge.utils.formatting import console, print_success

app = typer.Typer(
    name="reconcile",
    help="Drop mount records that no longer match the host.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def reconcile(ctx: typer.Context) -> None:
    """Verify recorded mounts and drop orphaned ones.

    Runs regardless of the ``startup.auto_reconcile`` setting.
    """
    if ctx.invoked_subcommand is not None:
        return

    services = get_services()
    orphaned = run_async(services.state.reconcile())

    if not orphaned:
        print_success("All mount records are consistent.")
        return

    for mount in orphaned:
        console.print(
            f"[warning]Dropped[/] disk {mount.disk_index} partition "
            f"{mount.partition_number} ({mount.access_label})"
        )
    print_success(f"Removed {len(orphaned)} orphaned mount record(s).")
