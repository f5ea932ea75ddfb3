"""Logging configuration for the CLI."""

import logging

from rich.logging import RichHandler

from diskbridge.utils.formatting import err_console


def setup_logging(verbose: bool = False) -> None:
    """Route all log records through Rich on stderr.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )
