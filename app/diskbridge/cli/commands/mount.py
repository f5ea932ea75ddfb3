"""Mount command.

Attaches a partition to WSL and exposes it on the host as a drive letter,
a network location, or not at all.
"""

from typing import Annotated

import typer

from diskbridge.cli.display import print_mount_result
from diskbridge.cli.types import get_services, progress_printer, run_async, startup_reconcile
from diskbridge.core.factory import Services
from diskbridge.models.mount import AccessMode
from diskbridge.models.result import MountAndMapResult
from diskbridge.utils.formatting import print_error, print_info


def mount(
    ctx: typer.Context,
    disk: Annotated[int, typer.Argument(help="Physical disk index (as in Disk Management).")],
    partition: Annotated[int, typer.Argument(help="Partition number, starting at 1.")],
    mode: Annotated[
        AccessMode,
        typer.Option(
            "--mode",
            "-m",
            help="How to expose the mount on the host.",
            case_sensitive=False,
        ),
    ] = AccessMode.NETWORK_LOCATION,
    letter: Annotated[
        str | None,
        typer.Option(
            "--letter",
            "-l",
            help="Drive letter (drive_letter_legacy mode).",
        ),
    ] = None,
    fs_type: Annotated[
        str,
        typer.Option(
            "--fs",
            "-f",
            help="Filesystem type (ext4, xfs, btrfs, vfat, auto).",
        ),
    ] = "ext4",
    distro: Annotated[
        str | None,
        typer.Option(
            "--distro",
            "-d",
            help="WSL distribution to mount in (default distribution if omitted).",
        ),
    ] = None,
    name: Annotated[
        str | None,
        typer.Option(
            "--name",
            help="Network location name (network_location mode).",
        ),
    ] = None,
    detect: Annotated[
        bool,
        typer.Option(
            "--detect",
            help="Detect the filesystem type first instead of using --fs.",
        ),
    ] = False,
) -> None:
    """Mount a disk partition and expose it on the host.

    Examples:
        diskbridge mount 2 1                          # network location
        diskbridge mount 2 1 -m drive_letter_legacy -l Z
        diskbridge mount 2 3 --detect -m none
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    services = get_services(distro)

    result = run_async(
        _mount(services, disk, partition, mode, letter, fs_type, distro, name, detect, quiet)
    )
    if result is None:
        raise typer.Exit(code=1)

    print_mount_result(result)
    if result.failed:
        raise typer.Exit(code=1)


async def _mount(
    services: Services,
    disk: int,
    partition: int,
    mode: AccessMode,
    letter: str | None,
    fs_type: str,
    distro: str | None,
    name: str | None,
    detect: bool,
    quiet: bool,
) -> MountAndMapResult | None:
    await startup_reconcile(services, quiet)

    if detect:
        detected = await services.detector.detect(disk, partition)
        if not detected:
            print_error("Could not detect the filesystem type. Pass it with --fs.")
            return None
        if not quiet:
            print_info(f"Detected filesystem type: {detected}")
        fs_type = detected

    return await services.mounter.mount_and_map(
        disk,
        partition,
        mode,
        drive_letter=letter,
        fs_type=fs_type,
        distro_name=distro,
        network_location_name=name,
        progress=progress_printer(quiet),
    )
