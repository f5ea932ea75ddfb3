"""Shared Rich display functions for workflow results.

Provides the summary printers used by the mount and unmount commands.
"""

from rich.markup import escape
from rich.table import Table

from diskbridge.models.mount import AccessMode
from diskbridge.models.result import FailedStep, MountAndMapResult, UnmountAndUnmapResult
from diskbridge.utils.formatting import console, print_error, print_success, print_warning


def _print_warnings(warnings: tuple[str, ...]) -> None:
    for warning in warnings:
        print_warning(warning)


def create_result_table(result: MountAndMapResult) -> Table:
    """Create a two-column table describing a successful mount.

    Args:
        result: Successful mount result.

    Returns:
        Rich Table with one row per known detail.
    """
    table = Table(show_header=False, border_style="border", box=None, padding=(0, 2))
    table.add_column("Field", style="muted")
    table.add_column("Value")

    rows = [
        ("Disk", f"{result.disk_index} partition {result.partition}"),
        ("Distro", result.distro_name),
        ("Guest path", result.guest_path),
        ("Host path", result.host_path),
    ]
    if result.access_mode is AccessMode.DRIVE_LETTER_LEGACY:
        rows.append(("Drive", f"{result.drive_letter}:"))
    elif result.access_mode is AccessMode.NETWORK_LOCATION:
        rows.append(("Network location", result.network_location_name))

    for field, value in rows:
        if value:
            table.add_row(field, value)
    return table


def print_mount_result(result: MountAndMapResult) -> None:
    """Print the outcome of a mount, including gateway diagnostics on failure."""
    _print_warnings(result.warnings)
    if result.success:
        print_success("Mounted successfully.")
        console.print(create_result_table(result))
        return

    print_error(f"{result.failed_step.value} step failed: {result.error_message}")
    if result.error_code:
        console.print(f"[muted]Code:[/] {escape(result.error_code)}")
    if result.error_hint:
        console.print(f"[info]Hint:[/] {escape(result.error_hint)}")
    if result.diagnostic_excerpt:
        console.print("[muted]Kernel log:[/]")
        console.print(result.diagnostic_excerpt, markup=False, highlight=False)


def print_unmount_result(result: UnmountAndUnmapResult) -> None:
    """Print the outcome of an unmount."""
    _print_warnings(result.warnings)
    if result.success:
        print_success(f"Disk {result.disk_index} unmounted successfully.")
        return

    print_error(f"{result.failed_step.value} step failed: {result.error_message}")
    if result.failed_step is FailedStep.UNMAP:
        console.print(
            "[info]Hint:[/] The disk is detached; the access surface may need manual removal."
        )
