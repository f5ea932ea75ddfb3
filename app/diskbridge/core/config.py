"""diskbridge configuration and settings.

This module provides the configuration model and I/O functions for mount
operations, state/history storage, helper execution and startup behavior.

Configuration is stored in ~/.config/diskbridge/config.toml. A missing file
means "all defaults".
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from diskbridge.core.paths import get_config_path, get_history_path, get_mount_state_path

logger = logging.getLogger(__name__)


class MountOperationsConfig(BaseModel):
    """Timing of host path verification.

    Attributes:
        host_path_retries: Attempts at seeing the host path after attach.
        host_path_delay_ms: Fixed delay between attempts.
        reconcile_timeout_ms: Per-entry timeout of the reconciliation check.
    """

    model_config = ConfigDict(extra="forbid")

    host_path_retries: Annotated[
        int,
        Field(ge=0, le=100, description="Host path accessibility retries (0-100)"),
    ] = 5
    host_path_delay_ms: Annotated[
        int,
        Field(ge=10, le=5000, description="Delay between retries in ms (10-5000)"),
    ] = 500
    reconcile_timeout_ms: Annotated[
        int,
        Field(ge=100, le=60000, description="Reconciliation check timeout in ms"),
    ] = 2000


class HistoryConfig(BaseModel):
    """Storage of the operation history and active mount state."""

    model_config = ConfigDict(extra="forbid")

    max_entries: Annotated[
        int,
        Field(ge=1, le=10000, description="History entries to retain (1-10000)"),
    ] = 100
    history_path: Annotated[
        Path | None,
        Field(description="History file (None = per-user default)"),
    ] = None
    state_path: Annotated[
        Path | None,
        Field(description="Mount state file (None = per-user default)"),
    ] = None

    @property
    def effective_history_path(self) -> Path:
        """Configured history path or the per-user default."""
        return self.history_path or get_history_path()

    @property
    def effective_state_path(self) -> Path:
        """Configured state path or the per-user default."""
        return self.state_path or get_mount_state_path()


class HelperConfig(BaseModel):
    """Execution of the PowerShell and WSL helpers.

    Attributes:
        scripts_dir: Directory holding the helper scripts.
        output_poll_timeout_s: How long to wait for an elevated helper's output file.
        poll_interval_ms: Interval between output file checks.
        skip_elevation: Run helpers unelevated (test machines only).
        command_timeout_s: Upper bound for any single helper process.
    """

    model_config = ConfigDict(extra="forbid")

    scripts_dir: Annotated[
        Path | None,
        Field(description="Helper scripts directory (None = bundled 'scripts')"),
    ] = None
    output_poll_timeout_s: Annotated[
        int,
        Field(ge=0, le=300, description="Elevated output polling timeout (0-300s)"),
    ] = 5
    poll_interval_ms: Annotated[
        int,
        Field(ge=1, le=10000, description="Polling interval in ms (1-10000)"),
    ] = 100
    skip_elevation: Annotated[
        bool,
        Field(description="Run helpers without elevation"),
    ] = False
    command_timeout_s: Annotated[
        int,
        Field(ge=1, le=3600, description="Helper process timeout in seconds"),
    ] = 300

    @property
    def effective_scripts_dir(self) -> Path:
        """Configured scripts directory or ``./scripts`` next to the working directory."""
        return self.scripts_dir or Path.cwd() / "scripts"


class StartupConfig(BaseModel):
    """Behavior when the CLI starts."""

    model_config = ConfigDict(extra="forbid")

    auto_reconcile: Annotated[
        bool,
        Field(description="Reconcile mount state before mount/unmount/status"),
    ] = True


class DiskBridgeConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra="forbid")

    mount: MountOperationsConfig = Field(default_factory=MountOperationsConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    helpers: HelperConfig = Field(default_factory=HelperConfig)
    startup: StartupConfig = Field(default_factory=StartupConfig)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when a required config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None, *, required: bool = False) -> DiskBridgeConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.
        required: Raise instead of returning defaults when the file is missing.

    Returns:
        Validated DiskBridgeConfig object.

    Raises:
        ConfigNotFoundError: If ``required`` and the file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        if required:
            raise ConfigNotFoundError(f"Config not found: {config_path}")
        logger.debug("No config at %s, using defaults", config_path)
        return DiskBridgeConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return DiskBridgeConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: DiskBridgeConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The configuration to save.
        path: Destination. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # TOML has no null; unset paths are simply left out
    data = config.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
