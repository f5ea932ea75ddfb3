"""Unit tests for HistoryLog.

Tests for the JSON Lines history file handling.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from diskbridge.core.history import HistoryLog
from diskbridge.models.history import HistoryEntry, HistoryOperation
from diskbridge.models.mount import AccessMode


def _entry(
    entry_id: str,
    disk: int = 1,
    operation: HistoryOperation = HistoryOperation.MOUNT,
    success: bool = True,
) -> HistoryEntry:
    return HistoryEntry(
        id=entry_id,
        timestamp="2026-01-26T14:30:00+00:00",
        operation=operation,
        disk_index=disk,
        partition_number=1 if operation is HistoryOperation.MOUNT else None,
        access_mode=AccessMode.DRIVE_LETTER_LEGACY,
        drive_letter="Z",
        success=success,
    )


class TestAppend:
    """Tests for HistoryLog.append."""

    async def test_append_creates_file_and_directories(self, tmp_path: Path) -> None:
        """Parent directories are created on first write."""
        log = HistoryLog(tmp_path / "deep" / "nested" / "history.jsonl")

        assert await log.append(_entry("a1"))

        assert log.history_path.exists()

    async def test_append_writes_one_line_per_entry(self, history_log: HistoryLog) -> None:
        """Each entry is a single JSON line."""
        await history_log.append(_entry("a1"))
        await history_log.append(_entry("a2"))

        lines = history_log.history_path.read_text().splitlines()

        assert len(lines) == 2
        assert HistoryEntry.from_json_line(lines[1]).id == "a2"

    async def test_trims_to_max_entries(self, tmp_path: Path) -> None:
        """Only the newest max_entries are retained."""
        log = HistoryLog(tmp_path / "history.jsonl", max_entries=3)

        for i in range(5):
            await log.append(_entry(f"e{i}"))

        assert [e.id for e in await log.get_history()] == ["e4", "e3", "e2"]

    def test_max_entries_is_clamped(self, tmp_path: Path) -> None:
        """max_entries stays within 1-10000."""
        assert HistoryLog(tmp_path / "h", max_entries=0).max_entries == 1
        assert HistoryLog(tmp_path / "h", max_entries=50000).max_entries == 10000

    async def test_write_failure_returns_false(
        self, history_log: HistoryLog, caplog: pytest.LogCaptureFixture
    ) -> None:
        """I/O errors are logged, not raised."""
        with (
            patch.object(Path, "open", side_effect=OSError("read-only")),
            caplog.at_level(logging.ERROR),
        ):
            assert not await history_log.append(_entry("a1"))

        assert "Failed to write history entry" in caplog.text

    async def test_trim_failure_keeps_entry(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failed trim is logged but the appended entry counts as saved."""
        log = HistoryLog(tmp_path / "history.jsonl", max_entries=1)
        await log.append(_entry("e0"))

        with (
            patch.object(HistoryLog, "_rewrite", side_effect=OSError("disk full")),
            caplog.at_level(logging.WARNING),
        ):
            assert await log.append(_entry("e1"))

        assert "Failed to trim history" in caplog.text
        assert [e.id for e in await log.get_history()] == ["e1", "e0"]


class TestGetHistory:
    """Tests for HistoryLog.get_history."""

    async def test_newest_first_with_limit(self, history_log: HistoryLog) -> None:
        """Entries come back newest first, limited."""
        for i in range(4):
            await history_log.append(_entry(f"e{i}"))

        entries = await history_log.get_history(limit=2)

        assert [e.id for e in entries] == ["e3", "e2"]

    async def test_missing_file(self, history_log: HistoryLog) -> None:
        """No file means no history."""
        assert await history_log.get_history() == []

    async def test_skips_corrupt_lines(
        self, history_log: HistoryLog, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Corrupt lines are skipped with a warning."""
        good = _entry("good").to_json_line()
        history_log.history_path.write_text(f"{good}\nnot json\n{{\"id\": \"x\"}}\n")

        with caplog.at_level(logging.WARNING):
            entries = await history_log.get_history()

        assert [e.id for e in entries] == ["good"]
        assert "Skipping corrupt history line 2" in caplog.text


class TestQueries:
    """Tests for get_last_mount_for_disk and clear."""

    async def test_last_mount_for_disk(self, history_log: HistoryLog) -> None:
        """Only successful mounts of the disk are considered."""
        await history_log.append(_entry("old", disk=1))
        await history_log.append(_entry("other", disk=2))
        await history_log.append(_entry("failed", disk=1, success=False))
        await history_log.append(_entry("unmount", disk=1, operation=HistoryOperation.UNMOUNT))

        last = await history_log.get_last_mount_for_disk(1)

        assert last is not None
        assert last.id == "old"

    async def test_last_mount_none(self, history_log: HistoryLog) -> None:
        """Disks never mounted have no last mount."""
        assert await history_log.get_last_mount_for_disk(9) is None

    async def test_clear(self, history_log: HistoryLog) -> None:
        """clear removes the file; clearing twice is fine."""
        await history_log.append(_entry("a1"))

        assert await history_log.clear()
        assert await history_log.clear()
        assert await history_log.get_history() == []
