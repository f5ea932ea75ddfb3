"""Durable record of active mounts.

This module provides the MountStateStore class, which keeps one ActiveMount
per (disk, partition) in a JSON file and reconciles it against the host.
"""

import asyncio
import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from diskbridge.core.paths import ensure_parent_dir, get_mount_state_path
from diskbridge.gateways.base import DriveLetterTable
from diskbridge.models.mount import AccessMode, ActiveMount, normalize_drive_letter, utc_now

logger = logging.getLogger(__name__)


class StoreClosedError(RuntimeError):
    """Raised when a closed MountStateStore is used."""


def _path_exists(path: str) -> bool:
    try:
        return Path(path).exists()
    except OSError:
        return False


class MountStateStore:
    """Manages active mount state in a JSON file.

    Storage location: ~/.local/state/diskbridge/mount-state.json

    The file holds a JSON array of ActiveMount dictionaries and is rewritten
    in full on every change: written to a temp file in the same directory,
    then moved into place with os.replace(). All operations are serialized
    by one asyncio.Lock.

    A missing, unreadable or corrupt file is treated as "nothing mounted";
    failed writes are logged and skipped. Neither raises.

    Attributes:
        state_path: Path of the state file.
    """

    def __init__(
        self,
        state_path: Path | None = None,
        drive_letters: DriveLetterTable | None = None,
        reconcile_timeout_ms: int = 2000,
    ) -> None:
        """Initialize MountStateStore.

        Args:
            state_path: Optional override for the state file.
                       Default: ~/.local/state/diskbridge/mount-state.json
            drive_letters: Source of assigned drive letters for reconciliation.
                          Without it the drive letter check is skipped.
            reconcile_timeout_ms: Per-entry timeout of the host path check.
        """
        self.state_path = state_path if state_path is not None else get_mount_state_path()
        self._drive_letters = drive_letters
        self._reconcile_timeout = reconcile_timeout_ms / 1000
        self._lock = asyncio.Lock()
        self._closed = False

    def _read(self) -> list[ActiveMount]:
        if not self.state_path.exists():
            return []
        try:
            data: Any = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable mount state %s: %s", self.state_path, e)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring mount state %s: expected a JSON array", self.state_path)
            return []

        mounts: list[ActiveMount] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                logger.warning("Skipping mount state entry %d: expected a JSON object", index)
                continue
            try:
                mounts.append(ActiveMount.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt mount state entry %d: %s", index, e)
        return mounts

    def _write(self, mounts: list[ActiveMount]) -> bool:
        payload = json.dumps([mount.to_dict() for mount in mounts], indent=2)
        tmp_path: Path | None = None
        try:
            ensure_parent_dir(self.state_path, "state")
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.state_path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(payload)
            os.replace(str(tmp_path), str(self.state_path))
            return True
        except (OSError, RuntimeError) as e:
            logger.error("Failed to save mount state to %s: %s", self.state_path, e)
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            return False

    async def _load(self) -> list[ActiveMount]:
        return await asyncio.to_thread(self._read)

    async def _save(self, mounts: list[ActiveMount]) -> bool:
        return await asyncio.to_thread(self._write, mounts)

    def _check_open(self) -> None:
        if self._closed:
            msg = "Mount state store is closed"
            raise StoreClosedError(msg)

    async def register(self, mount: ActiveMount) -> bool:
        """Record a mount, replacing any entry for the same disk and partition.

        The stored entry is stamped as mounted and verified now.

        Args:
            mount: Mount to record.

        Returns:
            True if the state file was written.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        self._check_open()
        now = utc_now()
        stored = replace(mount, mounted_at=now, is_verified=True, last_verified=now)
        async with self._lock:
            mounts = [m for m in await self._load() if m.key != stored.key]
            mounts.append(stored)
            saved = await self._save(mounts)
        logger.debug("Registered mount disk=%d partition=%d", *stored.key)
        return saved

    async def unregister_partition(self, disk_index: int, partition_number: int) -> bool:
        """Remove the entry for one partition.

        Returns:
            True if an entry was removed and the state file was written.

        Raises:
            ValueError: If disk_index < 0 or partition_number < 1.
            StoreClosedError: If the store has been closed.
        """
        self._check_open()
        _validate_disk(disk_index)
        _validate_partition(partition_number)
        async with self._lock:
            mounts = await self._load()
            kept = [m for m in mounts if m.key != (disk_index, partition_number)]
            if len(kept) == len(mounts):
                return False
            return await self._save(kept)

    async def unregister_disk(self, disk_index: int) -> bool:
        """Remove all entries of a disk, leaving other disks untouched.

        Returns:
            False if entries were removed but the state file could not be
            written; True otherwise.

        Raises:
            ValueError: If disk_index < 0.
            StoreClosedError: If the store has been closed.
        """
        self._check_open()
        _validate_disk(disk_index)
        async with self._lock:
            mounts = await self._load()
            kept = [m for m in mounts if m.disk_index != disk_index]
            if len(kept) == len(mounts):
                return True
            removed = len(mounts) - len(kept)
            logger.debug("Unregistering %d mount(s) of disk %d", removed, disk_index)
            return await self._save(kept)

    async def clear_all(self) -> bool:
        """Forget every recorded mount.

        Returns:
            True if the state file was written.
        """
        self._check_open()
        async with self._lock:
            return await self._save([])

    async def get_active_mounts(self) -> list[ActiveMount]:
        """Return all recorded mounts ordered by disk and partition."""
        self._check_open()
        async with self._lock:
            mounts = await self._load()
        return sorted(mounts, key=lambda m: m.key)

    async def get_for_disk(self, disk_index: int) -> list[ActiveMount]:
        """Return the recorded mounts of every partition of a disk."""
        _validate_disk(disk_index)
        return [m for m in await self.get_active_mounts() if m.disk_index == disk_index]

    async def get_first_for_disk(self, disk_index: int) -> ActiveMount | None:
        """Return the lowest-numbered recorded partition of a disk, if any."""
        mounts = await self.get_for_disk(disk_index)
        return mounts[0] if mounts else None

    async def get_for_disk_partition(
        self, disk_index: int, partition_number: int
    ) -> ActiveMount | None:
        """Return the entry for one partition, if recorded."""
        _validate_disk(disk_index)
        _validate_partition(partition_number)
        for mount in await self.get_active_mounts():
            if mount.key == (disk_index, partition_number):
                return mount
        return None

    async def get_for_drive_letter(self, drive_letter: str) -> ActiveMount | None:
        """Return the entry mapped to a drive letter (case-insensitive)."""
        letter = normalize_drive_letter(drive_letter)
        if not letter:
            return None
        for mount in await self.get_active_mounts():
            if mount.drive_letter == letter:
                return mount
        return None

    async def is_disk_mounted(self, disk_index: int) -> bool:
        """Check if any partition of a disk is recorded."""
        return bool(await self.get_for_disk(disk_index))

    async def is_drive_letter_in_use(self, drive_letter: str) -> bool:
        """Check if a recorded mount uses a drive letter."""
        return await self.get_for_drive_letter(drive_letter) is not None

    async def reconcile(self) -> list[ActiveMount]:
        """Compare recorded mounts with the host and drop orphans.

        Each entry is checked independently:

        - An empty host path can never be verified: orphaned.
        - A drive-letter mount whose letter the host no longer has assigned
          is orphaned (only when the letter table can be read).
        - Otherwise the entry is kept; its verified flag reflects whether the
          host path exists within the reconcile timeout.

        Returns:
            The dropped entries.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        self._check_open()
        assigned = None
        if self._drive_letters is not None:
            assigned = await self._drive_letters.assigned_letters()

        async with self._lock:
            mounts = await self._load()
            if not mounts:
                return []
            checks = await asyncio.gather(*(self._host_path_exists(m) for m in mounts))

            kept: list[ActiveMount] = []
            orphaned: list[ActiveMount] = []
            now = utc_now()
            for mount, exists in zip(mounts, checks, strict=True):
                if self._is_orphaned(mount, assigned):
                    orphaned.append(mount)
                elif exists:
                    kept.append(replace(mount, is_verified=True, last_verified=now))
                else:
                    kept.append(replace(mount, is_verified=False))

            await self._save(kept)

        for mount in orphaned:
            logger.info(
                "Dropped orphaned mount disk=%d partition=%d (%s)",
                mount.disk_index,
                mount.partition_number,
                mount.access_label,
            )
        return orphaned

    def _is_orphaned(self, mount: ActiveMount, assigned: set[str] | None) -> bool:
        if not mount.host_path:
            return True
        if (
            assigned is not None
            and mount.access_mode is AccessMode.DRIVE_LETTER_LEGACY
            and mount.drive_letter not in assigned
        ):
            return True
        return False

    async def _host_path_exists(self, mount: ActiveMount) -> bool:
        if not mount.host_path:
            return False
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(_path_exists, mount.host_path),
                timeout=self._reconcile_timeout,
            )
        except TimeoutError:
            logger.debug("Host path check timed out for %s", mount.host_path)
            return False

    async def close(self) -> None:
        """Close the store; later calls raise StoreClosedError."""
        async with self._lock:
            self._closed = True


def _validate_disk(disk_index: int) -> None:
    if disk_index < 0:
        msg = "Disk index must be non-negative"
        raise ValueError(msg)


def _validate_partition(partition_number: int) -> None:
    if partition_number < 1:
        msg = "Partition number must be greater than 0"
        raise ValueError(msg)
