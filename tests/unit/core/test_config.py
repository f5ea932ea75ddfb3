"""Unit tests for configuration loading and saving."""

from pathlib import Path

import pytest
from diskbridge.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    DiskBridgeConfig,
    HistoryConfig,
    MountOperationsConfig,
    load_config,
    save_config,
)
from pydantic import ValidationError


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        """Defaults match the documented values."""
        config = DiskBridgeConfig()

        assert config.mount.host_path_retries == 5
        assert config.mount.host_path_delay_ms == 500
        assert config.mount.reconcile_timeout_ms == 2000
        assert config.history.max_entries == 100
        assert config.helpers.output_poll_timeout_s == 5
        assert config.helpers.poll_interval_ms == 100
        assert config.startup.auto_reconcile is True

    @pytest.mark.parametrize(
        ("field", "value"),
        [("host_path_retries", 101), ("host_path_delay_ms", 5), ("host_path_delay_ms", 6000)],
    )
    def test_mount_bounds(self, field: str, value: int) -> None:
        """Out-of-range timing values are rejected."""
        with pytest.raises(ValidationError):
            MountOperationsConfig(**{field: value})

    def test_history_bounds(self) -> None:
        """max_entries must be within 1-10000."""
        with pytest.raises(ValidationError):
            HistoryConfig(max_entries=0)

    def test_unknown_keys_rejected(self) -> None:
        """Typos in config sections are errors."""
        with pytest.raises(ValidationError):
            DiskBridgeConfig.model_validate({"mount": {"retries": 3}})

    def test_effective_paths_use_overrides(self, tmp_path: Path) -> None:
        """Configured paths take precedence over defaults."""
        config = HistoryConfig(history_path=tmp_path / "h.jsonl", state_path=tmp_path / "s.json")

        assert config.effective_history_path == tmp_path / "h.jsonl"
        assert config.effective_state_path == tmp_path / "s.json"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        """No file means defaults."""
        assert load_config(tmp_path / "missing.toml") == DiskBridgeConfig()

    def test_missing_file_required(self, tmp_path: Path) -> None:
        """required=True turns a missing file into an error."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "missing.toml", required=True)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("[mount\nhost_path_retries = ")

        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("[mount]\nhost_path_retries = 1000\n")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_partial_file(self, tmp_path: Path) -> None:
        """Sections not in the file keep their defaults."""
        path = tmp_path / "config.toml"
        path.write_text("[startup]\nauto_reconcile = false\n")

        config = load_config(path)

        assert config.startup.auto_reconcile is False
        assert config.mount.host_path_retries == 5


class TestSaveConfig:
    """Tests for save_config function."""

    def test_save_then_load(self, tmp_path: Path) -> None:
        """A saved config loads back unchanged."""
        config = DiskBridgeConfig(
            mount=MountOperationsConfig(host_path_retries=2),
            history=HistoryConfig(max_entries=50, state_path=tmp_path / "state.json"),
        )
        path = tmp_path / "nested" / "config.toml"

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The atomic write leaves only the config file behind."""
        save_config(DiskBridgeConfig(), tmp_path / "config.toml")

        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]
