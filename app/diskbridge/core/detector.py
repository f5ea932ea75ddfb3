"""Filesystem type detection for unmounted partitions.

The disk is attached bare to the guest, and ``lsblk`` snapshots taken before
and after the attach are compared to find the block device it produced.
The partition's filesystem type is read from that device's children. When
the diff is ambiguous, the live mount table of the expected guest mount
point is consulted instead.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from diskbridge.gateways.base import AttachGateway, FilesystemDetector, GuestShell
from diskbridge.gateways.wsl import guest_mount_path

logger = logging.getLogger(__name__)

LSBLK_SNAPSHOT_ARGS = ["lsblk", "-f", "-o", "NAME,PKNAME,FSTYPE", "-P"]

_NAME_RE = re.compile(r'\bNAME="([^"]+)"')
_FSTYPE_RE = re.compile(r'\bFSTYPE="([^"]*)"')
_PKNAME_RE = re.compile(r'\bPKNAME="([^"]*)"')
_PARTITION_SUFFIX_RE = re.compile(r"\D(\d+)$")


@dataclass(frozen=True, slots=True)
class BlockDeviceEntry:
    """One row of an ``lsblk -P`` snapshot.

    Attributes:
        name: Kernel device name (e.g. ``sdd1``).
        parent_name: Parent device name; None for whole disks.
        fs_type: Filesystem type; empty when none was found.
    """

    name: str
    parent_name: str | None
    fs_type: str


def parse_lsblk_snapshot(output: str) -> list[BlockDeviceEntry]:
    """Parse ``lsblk -o NAME,PKNAME,FSTYPE -P`` output.

    Lines without both a NAME and an FSTYPE attribute are skipped.
    """
    entries: list[BlockDeviceEntry] = []
    for line in output.splitlines():
        if 'NAME="' not in line or 'FSTYPE="' not in line:
            continue
        name_match = _NAME_RE.search(line)
        fs_match = _FSTYPE_RE.search(line)
        if not name_match or not fs_match:
            continue
        parent_match = _PKNAME_RE.search(line)
        parent = parent_match.group(1).strip() if parent_match else ""
        entries.append(
            BlockDeviceEntry(
                name=name_match.group(1),
                parent_name=parent or None,
                fs_type=fs_match.group(1),
            )
        )
    return entries


def is_matching_partition_name(name: str, partition_number: int) -> bool:
    """Check if a device name's numeric suffix is the partition number.

    ``sdd1`` and ``nvme0n1p1`` match partition 1; ``sdd11`` does not.
    """
    match = _PARTITION_SUFFIX_RE.search(name)
    return match is not None and int(match.group(1)) == partition_number


def resolve_fs_type_from_snapshots(
    before: list[BlockDeviceEntry],
    after: list[BlockDeviceEntry],
    partition_number: int,
) -> str | None:
    """Find the partition's filesystem type on the disk that appeared.

    Returns:
        The filesystem type if exactly one new whole disk appeared and
        exactly one of its partitions matches; None otherwise.
    """
    if not before or not after:
        return None

    before_roots = {e.name.lower() for e in before if not e.parent_name}
    new_roots = {
        e.name.lower() for e in after if not e.parent_name and e.name.lower() not in before_roots
    }
    if len(new_roots) != 1:
        logger.debug("Snapshot diff found %d new disks, expected 1", len(new_roots))
        return None

    root = new_roots.pop()
    matches = [
        e
        for e in after
        if e.parent_name is not None
        and e.parent_name.lower() == root
        and is_matching_partition_name(e.name, partition_number)
        and e.fs_type.strip()
    ]
    if len(matches) != 1:
        return None
    return matches[0].fs_type


def _first_line(output: str) -> str | None:
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return None


class FilesystemTypeDetector(FilesystemDetector):
    """Detects a partition's filesystem type through a temporary bare attach.

    Example:
        >>> detector = FilesystemTypeDetector(attach_gateway, guest_shell)
        >>> await detector.detect(2, 1)
        'xfs'
    """

    def __init__(self, attach_gateway: AttachGateway, guest_shell: GuestShell) -> None:
        """Initialize the detector.

        Args:
            attach_gateway: Used for the bare attach and the cleanup detach.
            guest_shell: Runs ``lsblk`` and ``findmnt`` in the guest.
        """
        self._attach = attach_gateway
        self._guest = guest_shell

    async def detect(self, disk_index: int, partition_number: int) -> str | None:
        if disk_index < 0 or partition_number < 1:
            return None

        logger.info(
            "Detecting filesystem type for disk %d partition %d", disk_index, partition_number
        )
        try:
            return await self._detect(disk_index, partition_number)
        except Exception:
            logger.exception("Error detecting filesystem type for disk %d", disk_index)
            return None

    async def _detect(self, disk_index: int, partition_number: int) -> str | None:
        if await self._is_already_mounted(disk_index, partition_number):
            logger.info(
                "Disk %d partition %d is already mounted; reading the live mount table",
                disk_index,
                partition_number,
            )
            return await self._fs_type_from_mount_table(disk_index, partition_number)

        before = await self._snapshot()

        attach = await self._attach.attach_bare(disk_index)
        if not attach.success:
            message = attach.error_message or ""
            if "already mounted" in message.lower():
                logger.info("Disk already mounted, reading the live mount table")
                return await self._fs_type_from_mount_table(disk_index, partition_number)
            logger.warning("Failed to attach disk for filesystem detection: %s", message)
            return None

        try:
            after = await self._snapshot()
            fs_type = resolve_fs_type_from_snapshots(before, after, partition_number)
            if not fs_type:
                fs_type = await self._fs_type_from_mount_table(disk_index, partition_number)
            logger.info("Detected filesystem type: %s", fs_type or "unknown")
            return fs_type
        finally:
            await self._cleanup(disk_index)

    async def _cleanup(self, disk_index: int) -> None:
        # Shielded so a cancelled detection still detaches the disk
        try:
            outcome = await asyncio.shield(self._attach.detach(disk_index))
        except asyncio.CancelledError:
            logger.warning("Cleanup detach was cancelled for disk %d", disk_index)
            raise
        if not outcome.success and not outcome.is_already_detached:
            logger.warning(
                "Cleanup detach failed for disk %d: %s", disk_index, outcome.error_message
            )

    async def _is_already_mounted(self, disk_index: int, partition_number: int) -> bool:
        host_path = await self._guest.host_path(guest_mount_path(disk_index, partition_number))
        if not host_path:
            return False
        try:
            return await asyncio.to_thread(Path(host_path).is_dir)
        except OSError:
            return False

    async def _snapshot(self) -> list[BlockDeviceEntry]:
        result = await self._guest.run(LSBLK_SNAPSHOT_ARGS)
        if not result.success or not result.stdout.strip():
            logger.warning("Failed to run lsblk snapshot: %s", result.stderr.strip() or "no output")
            return []
        return parse_lsblk_snapshot(result.stdout)

    async def _fs_type_from_mount_table(self, disk_index: int, partition_number: int) -> str | None:
        mount_path = guest_mount_path(disk_index, partition_number)
        source = await self._guest.run(["findmnt", "-no", "SOURCE", mount_path])
        device = _first_line(source.stdout) if source.success else None
        if not device:
            logger.debug("Unable to resolve mounted source for %s", mount_path)
            return None

        fs = await self._guest.run(["lsblk", "-no", "FSTYPE", device])
        if not fs.success:
            logger.debug("Unable to resolve filesystem type for %s", device)
            return None
        return _first_line(fs.stdout)
