"""Detect command for reading a partition's filesystem type."""

from typing import Annotated

import typer

from diskbridge.cli.types import get_services, run_async
from diskbridge.utils.formatting import console, print_error


def detect(
    disk: Annotated[int, typer.Argument(help="Physical disk index.")],
    partition: Annotated[int, typer.Argument(help="Partition number, starting at 1.")],
    distro: Annotated[
        str | None,
        typer.Option(
            "--distro",
            "-d",
            help="WSL distribution used for inspection.",
        ),
    ] = None,
) -> None:
    """Detect the filesystem type of a partition.

    The disk is attached to WSL without mounting, inspected and detached
    again. Requires elevation.
    """
    services = get_services(distro)
    fs_type = run_async(services.detector.detect(disk, partition))
    if not fs_type:
        print_error(f"Could not detect the filesystem of disk {disk} partition {partition}.")
        raise typer.Exit(code=1)
    console.print(fs_type)
