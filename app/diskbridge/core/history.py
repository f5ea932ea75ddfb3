"""Operation history in JSON Lines format.

This module provides the HistoryLog class for persisting and querying
mount and unmount history entries.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from diskbridge.core.paths import ensure_parent_dir, get_history_path
from diskbridge.models.history import HistoryEntry, HistoryOperation

logger = logging.getLogger(__name__)


class HistoryLog:
    """Manages the operation history in a JSONL file.

    Storage location: ~/.local/state/diskbridge/history.jsonl

    Each line is a complete JSON object representing a HistoryEntry.
    Entries are appended; once the file holds more than ``max_entries``
    lines it is rewritten atomically with only the newest ones.

    History is an audit aid: I/O failures are logged and never raised.

    Attributes:
        history_path: Path of the history file.
        max_entries: Number of entries retained.
    """

    def __init__(self, history_path: Path | None = None, max_entries: int = 100) -> None:
        """Initialize HistoryLog.

        Args:
            history_path: Optional override for the history file.
                         Default: ~/.local/state/diskbridge/history.jsonl
            max_entries: Entries to retain (clamped to 1-10000).
        """
        self.history_path = history_path if history_path is not None else get_history_path()
        self.max_entries = min(max(max_entries, 1), 10000)
        self._lock = asyncio.Lock()

    async def append(self, entry: HistoryEntry) -> bool:
        """Append an entry, trimming old entries beyond ``max_entries``.

        Args:
            entry: The history entry to record.

        Returns:
            True if the entry was written.
        """
        async with self._lock:
            try:
                await asyncio.to_thread(self._append, entry)
            except (OSError, RuntimeError) as e:
                logger.error("Failed to write history entry %s: %s", entry.id, e)
                return False
        return True

    def _append(self, entry: HistoryEntry) -> None:
        ensure_parent_dir(self.history_path, "state")
        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

        # The entry is saved at this point; trimming is best effort
        try:
            lines = self._read_lines()
            if len(lines) > self.max_entries:
                self._rewrite(lines[-self.max_entries :])
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to trim history %s: %s", self.history_path, e)

    def _read_lines(self) -> list[str]:
        if not self.history_path.exists():
            return []
        with self.history_path.open(encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip()]

    def _rewrite(self, lines: list[str]) -> None:
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.history_path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.writelines(line + "\n" for line in lines)
            os.replace(str(tmp_path), str(self.history_path))
        except OSError:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise

    def _read_entries(self) -> list[HistoryEntry]:
        entries: list[HistoryEntry] = []
        for line_num, line in enumerate(self._read_lines(), start=1):
            try:
                entries.append(HistoryEntry.from_json_line(line))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
        return entries

    async def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Args:
            limit: Maximum number of entries to return.
                  If None, returns all entries.

        Returns:
            List of HistoryEntry, newest first.
            Returns empty list if the file doesn't exist or cannot be read.
        """
        async with self._lock:
            try:
                entries = await asyncio.to_thread(self._read_entries)
            except OSError as e:
                logger.error("Failed to read history %s: %s", self.history_path, e)
                return []

        entries.reverse()
        if limit is not None:
            return entries[:limit]
        return entries

    async def get_last_mount_for_disk(self, disk_index: int) -> HistoryEntry | None:
        """Most recent successful mount of a disk.

        Used to recall how a disk was exposed when nothing is recorded in
        the mount state anymore.
        """
        for entry in await self.get_history():
            if (
                entry.operation is HistoryOperation.MOUNT
                and entry.disk_index == disk_index
                and entry.success
            ):
                return entry
        return None

    async def clear(self) -> bool:
        """Delete all history.

        Returns:
            True if the history is now empty.
        """
        async with self._lock:
            try:
                await asyncio.to_thread(self.history_path.unlink, missing_ok=True)
            except OSError as e:
                logger.error("Failed to clear history %s: %s", self.history_path, e)
                return False
        return True
