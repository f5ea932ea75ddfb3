"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from diskbridge import __version__
from diskbridge.cli.commands import config, detect, history, mount, reconcile, status, unmount
from diskbridge.utils.log import setup_logging

# Create main Typer app
app = typer.Typer(
    name="diskbridge",
    help="Mount Linux disk partitions in WSL and expose them on the Windows host.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"diskbridge version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output.",
        ),
    ] = False,
) -> None:
    """diskbridge - Linux partitions on Windows through WSL.

    Attach a partition to WSL, expose it as a drive letter or network
    location, and keep track of what is mounted across restarts.
    """
    setup_logging(verbose)
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command(name="mount")(mount.mount)
app.command(name="unmount")(unmount.unmount)
app.command(name="detect")(detect.detect)
app.add_typer(status.app, name="status")
app.add_typer(reconcile.app, name="reconcile")
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
