"""Utility modules for diskbridge.

This module exports commonly used utility functions.
"""

from diskbridge.utils.formatting import (
    console,
    create_mount_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from diskbridge.utils.keyvalue import parse_key_values
from diskbridge.utils.shell import CommandResult, run_command

__all__ = [
    "CommandResult",
    "console",
    "create_mount_table",
    "err_console",
    "parse_key_values",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
