"""Unit tests for cli/display.py.

Tests for the result printers used by the mount and unmount commands.
"""

import io

import pytest
from diskbridge.cli.display import create_result_table, print_mount_result, print_unmount_result
from diskbridge.models.mount import AccessMode
from diskbridge.models.result import FailedStep, MountAndMapResult, UnmountAndUnmapResult
from diskbridge.utils.formatting import THEME
from rich.console import Console


@pytest.fixture
def mounted() -> MountAndMapResult:
    """A successful drive-letter mount."""
    return MountAndMapResult(
        success=True,
        disk_index=2,
        partition=1,
        access_mode=AccessMode.DRIVE_LETTER_LEGACY,
        drive_letter="Z",
        distro_name="Ubuntu",
        guest_path="/mnt/wsl/PHYSICALDRIVE2p1",
        host_path="\\\\wsl.localhost\\Ubuntu\\mnt\\wsl\\PHYSICALDRIVE2p1",
    )


def _capture_console_output(
    monkeypatch: pytest.MonkeyPatch, func: object, *args: object
) -> str:
    """Capture Rich output of both consoles into one buffer."""
    import diskbridge.cli.display as display_mod
    import diskbridge.utils.formatting as fmt_mod

    buf = io.StringIO()
    test_console = Console(theme=THEME, file=buf, color_system=None, width=200)
    monkeypatch.setattr(display_mod, "console", test_console)
    monkeypatch.setattr(fmt_mod, "console", test_console)
    monkeypatch.setattr(fmt_mod, "err_console", test_console)

    func(*args)  # type: ignore[operator]
    return buf.getvalue()


class TestCreateResultTable:
    """Tests for create_result_table."""

    def test_drive_letter_row(self, mounted: MountAndMapResult) -> None:
        """Drive-letter mounts list the letter."""
        table = create_result_table(mounted)

        assert table.row_count == 5

    def test_missing_values_are_skipped(self) -> None:
        """Unknown details produce no rows."""
        result = MountAndMapResult(
            success=True, disk_index=2, partition=1, access_mode=AccessMode.NONE
        )

        assert create_result_table(result).row_count == 1


class TestPrintMountResult:
    """Tests for print_mount_result."""

    def test_success(self, monkeypatch: pytest.MonkeyPatch, mounted: MountAndMapResult) -> None:
        """Success prints the summary table."""
        output = _capture_console_output(monkeypatch, print_mount_result, mounted)

        assert "Mounted successfully." in output
        assert "Z:" in output
        assert "/mnt/wsl/PHYSICALDRIVE2p1" in output

    def test_failure_with_diagnostics(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Failures print step, code, hint and kernel log."""
        result = MountAndMapResult.failure(
            2,
            1,
            AccessMode.NONE,
            "Failed to mount partition",
            FailedStep.MOUNT,
            error_code="XFS_UNSUPPORTED_FEATURES",
            error_hint="Update the WSL kernel",
            diagnostic_excerpt="XFS (sdd1): unknown incompatible features [0x20]",
        )

        output = _capture_console_output(monkeypatch, print_mount_result, result)

        assert "mount step failed: Failed to mount partition" in output
        assert "XFS_UNSUPPORTED_FEATURES" in output
        assert "Update the WSL kernel" in output
        assert "[0x20]" in output

    def test_warnings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Warnings are printed before the outcome."""
        result = MountAndMapResult(
            success=True,
            disk_index=2,
            partition=1,
            access_mode=AccessMode.NONE,
            warnings=("Mount state was not saved",),
        )

        output = _capture_console_output(monkeypatch, print_mount_result, result)

        assert "Warning: Mount state was not saved" in output


class TestPrintUnmountResult:
    """Tests for print_unmount_result."""

    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Success names the disk."""
        result = UnmountAndUnmapResult(success=True, disk_index=2)

        output = _capture_console_output(monkeypatch, print_unmount_result, result)

        assert "Disk 2 unmounted successfully." in output

    def test_unmap_failure_hint(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unmap failure explains that the disk is detached."""
        result = UnmountAndUnmapResult.failure(
            2, AccessMode.DRIVE_LETTER_LEGACY, "Drive Z: is in use", FailedStep.UNMAP
        )

        output = _capture_console_output(monkeypatch, print_unmount_result, result)

        assert "unmap step failed: Drive Z: is in use" in output
        assert "manual removal" in output
