"""CLI commands for diskbridge.

This package contains all subcommand implementations.
"""

from diskbridge.cli.commands import config, detect, history, mount, reconcile, status, unmount

__all__ = ["config", "detect", "history", "mount", "reconcile", "status", "unmount"]
