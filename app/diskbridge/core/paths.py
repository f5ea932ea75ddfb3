"""Per-user path management for diskbridge.

This module provides standardized paths for configuration and state storage.
On POSIX hosts they follow the XDG Base Directory Specification; on Windows
both live under ``%LOCALAPPDATA%\\diskbridge``.

XDG defaults:
- Config: ~/.config/diskbridge/
- State: ~/.local/state/diskbridge/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "diskbridge"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get a per-user application directory.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    local_app_data = os.environ.get("LOCALAPPDATA")
    if os.name == "nt" and local_app_data:
        return Path(local_app_data) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/diskbridge/ (or XDG_CONFIG_HOME/diskbridge/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the active mount record and the operation history.

    Returns:
        Path to ~/.local/state/diskbridge/ (or XDG_STATE_HOME/diskbridge/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/diskbridge/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_mount_state_path() -> Path:
    """Get the active mount state file path.

    Returns:
        Path to ~/.local/state/diskbridge/mount-state.json.
    """
    return get_state_dir() / "mount-state.json"


def get_history_path() -> Path:
    """Get the history file path.

    Returns:
        Path to ~/.local/state/diskbridge/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def ensure_parent_dir(path: Path, name: str) -> Path:
    """Create the parent directory of ``path`` if it doesn't exist.

    Args:
        path: File path whose parent should exist.
        name: Human-readable name for error messages.

    Returns:
        The parent directory.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {parent}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {parent}: {e}"
        raise RuntimeError(msg) from e
    return parent
