"""Unmount command.

Removes the host access surface of a disk and detaches it from WSL. Mode,
letter and network location name default to the recorded mount.
"""

from typing import Annotated

import typer

from diskbridge.cli.display import print_unmount_result
from diskbridge.cli.types import get_services, progress_printer, run_async, startup_reconcile
from diskbridge.core.factory import Services
from diskbridge.models.history import HistoryEntry
from diskbridge.models.mount import AccessMode, ActiveMount
from diskbridge.models.result import UnmountAndUnmapResult


def unmount(
    ctx: typer.Context,
    disk: Annotated[int, typer.Argument(help="Physical disk index.")],
    mode: Annotated[
        AccessMode | None,
        typer.Option(
            "--mode",
            "-m",
            help="Access mode to remove (default: as recorded).",
            case_sensitive=False,
        ),
    ] = None,
    letter: Annotated[
        str | None,
        typer.Option(
            "--letter",
            "-l",
            help="Drive letter to unmap (default: as recorded).",
        ),
    ] = None,
) -> None:
    """Remove a disk's access surface and detach it from WSL.

    Examples:
        diskbridge unmount 2
        diskbridge unmount 2 -m drive_letter_legacy -l Z
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    services = get_services()

    result = run_async(_unmount(services, disk, mode, letter, quiet))
    print_unmount_result(result)
    if result.failed:
        raise typer.Exit(code=1)


async def _unmount(
    services: Services,
    disk: int,
    mode: AccessMode | None,
    letter: str | None,
    quiet: bool,
) -> UnmountAndUnmapResult:
    await startup_reconcile(services, quiet)

    name: str | None = None
    recorded: ActiveMount | HistoryEntry | None = None
    if disk >= 0:
        recorded = await services.state.get_first_for_disk(disk)
    if recorded is None and disk >= 0 and mode is None:
        # Nothing recorded anymore: use how the disk was last mounted
        recorded = await services.history.get_last_mount_for_disk(disk)
    if recorded is not None and mode in (None, recorded.access_mode):
        mode = recorded.access_mode
        letter = letter or recorded.drive_letter
        name = recorded.network_location_name
    mode = mode or AccessMode.NONE

    return await services.unmounter.unmount_and_unmap(
        disk,
        mode,
        drive_letter=letter if mode.requires_drive_letter else None,
        network_location_name=name,
        progress=progress_printer(quiet),
    )
