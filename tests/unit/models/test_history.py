"""Unit tests for History models.

Tests for the HistoryEntry data structure and its result factories.
"""

import json

import pytest
from diskbridge.models.history import (
    HistoryEntry,
    HistoryOperation,
    entry_from_mount_result,
    entry_from_unmount_result,
)
from diskbridge.models.mount import AccessMode
from diskbridge.models.result import FailedStep, MountAndMapResult, UnmountAndUnmapResult


class TestHistoryEntry:
    """Tests for HistoryEntry serialization."""

    def test_operation_values(self) -> None:
        """HistoryOperation has expected values."""
        assert HistoryOperation.MOUNT.value == "mount"
        assert HistoryOperation.UNMOUNT.value == "unmount"

    def test_empty_id_rejected(self) -> None:
        """Entries need an ID."""
        with pytest.raises(ValueError, match="ID"):
            HistoryEntry(
                id="",
                timestamp="2026-01-01T00:00:00+00:00",
                operation=HistoryOperation.MOUNT,
                disk_index=1,
            )

    def test_to_dict_omits_unset_optionals(self) -> None:
        """None fields are left out of the JSON form."""
        entry = HistoryEntry(
            id="abc123456789",
            timestamp="2026-01-26T14:30:00+00:00",
            operation=HistoryOperation.UNMOUNT,
            disk_index=2,
        )

        data = entry.to_dict()

        assert "drive_letter" not in data
        assert "partition_number" not in data
        assert data["operation"] == "unmount"
        assert data["failed_step"] == "none"

    def test_json_line_round_trip(self) -> None:
        """to_json_line/from_json_line keep every field."""
        entry = HistoryEntry(
            id="abc123456789",
            timestamp="2026-01-26T14:30:00+00:00",
            operation=HistoryOperation.MOUNT,
            disk_index=2,
            partition_number=1,
            access_mode=AccessMode.DRIVE_LETTER_LEGACY,
            drive_letter="Z",
            success=False,
            error_message="boom",
            failed_step=FailedStep.MAP,
        )

        line = entry.to_json_line()

        assert "\n" not in line
        assert json.loads(line)["failed_step"] == "map"
        assert HistoryEntry.from_json_line(line) == entry

    def test_from_json_line_rejects_unknown_operation(self) -> None:
        """Unknown operation names are reported as ValueError."""
        line = json.dumps(
            {"id": "x", "timestamp": "t", "operation": "format", "disk_index": 1}
        )
        with pytest.raises(ValueError):
            HistoryEntry.from_json_line(line)


class TestEntryFactories:
    """Tests for building entries from workflow results."""

    def test_entry_from_mount_failure(self) -> None:
        """Failure details are copied from the result."""
        result = MountAndMapResult.failure(
            1,
            2,
            AccessMode.NETWORK_LOCATION,
            "mount failed",
            FailedStep.MOUNT,
            error_code="E42",
            error_hint="try again",
        )

        entry = entry_from_mount_result(result)

        assert entry.operation is HistoryOperation.MOUNT
        assert entry.partition_number == 2
        assert entry.success is False
        assert entry.error_code == "E42"
        assert entry.error_hint == "try again"
        assert entry.failed_step is FailedStep.MOUNT
        assert entry.timestamp == result.timestamp
        assert len(entry.id) == 12

    def test_entry_from_unmount_success(self) -> None:
        """Unmount entries carry no partition number."""
        result = UnmountAndUnmapResult(
            success=True,
            disk_index=3,
            access_mode=AccessMode.DRIVE_LETTER_LEGACY,
            drive_letter="Y",
        )

        entry = entry_from_unmount_result(result)

        assert entry.operation is HistoryOperation.UNMOUNT
        assert entry.partition_number is None
        assert entry.drive_letter == "Y"
        assert entry.success is True
