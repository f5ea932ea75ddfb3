"""Shared types and utilities for CLI commands.

This module provides helper functions used across multiple CLI command
modules to avoid code duplication.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.markup import escape

from diskbridge.core.config import ConfigError
from diskbridge.core.factory import Services, build_services, reconcile_on_startup
from diskbridge.core.mount import ProgressCallback
from diskbridge.utils.formatting import console, print_error, print_info

T = TypeVar("T")


def get_services(distro_name: str | None = None) -> Services:
    """Build services from the user's configuration.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    try:
        return build_services(distro_name=distro_name)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from synchronous CLI code."""
    return asyncio.run(coro)


async def startup_reconcile(services: Services, quiet: bool = False) -> None:
    """Run startup reconciliation and mention dropped mounts."""
    orphaned = await reconcile_on_startup(services)
    if orphaned and not quiet:
        print_info(f"Removed {len(orphaned)} stale mount record(s).")


def progress_printer(quiet: bool) -> ProgressCallback | None:
    """Progress callback printing to the console, or None when quiet."""
    if quiet:
        return None
    return lambda message: console.print(f"[muted]{escape(message)}[/]")
