"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from diskbridge.models.mount import ActiveMount

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "verified": "#03b971",
        "unverified": "#f5b332",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_mount_table(title: str = "Active Mounts") -> Table:
    """Create a pre-configured table for displaying active mounts.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for mount display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    # Verification column: icon only, no header text
    table.add_column("", width=2, justify="center")
    table.add_column("Disk", justify="right")
    table.add_column("Part", justify="right")
    table.add_column("Access", no_wrap=True)
    table.add_column("Distro", style="muted")
    table.add_column("Host Path", style="info", overflow="fold")
    table.add_column("Mounted", style="muted")
    return table


def format_mount_row(mount: ActiveMount) -> tuple[str, str, str, str, str, str, str]:
    """Format an active mount as a table row with proper styling.

    Verified mounts get a filled circle, unverified ones an empty circle.

    Args:
        mount: The mount to format.

    Returns:
        Tuple of (icon, disk, partition, access, distro, host path, mounted at).
    """
    icon = "[verified]●[/]" if mount.is_verified else "[unverified]○[/]"
    return (
        icon,
        str(mount.disk_index),
        str(mount.partition_number),
        mount.access_label,
        mount.distro_name or "-",
        mount.host_path or "-",
        mount.mounted_at[:16].replace("T", " "),
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
