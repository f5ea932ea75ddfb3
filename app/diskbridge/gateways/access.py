"""Host access surfaces: drive letters and network locations.

Mapping and unmapping run unelevated helper scripts; drive mappings are
per-user and would not be visible to the user from an elevated session.
"""

import asyncio
import logging
import re
import sys

from diskbridge.gateways.base import AccessGateway, DriveLetterTable
from diskbridge.gateways.helper import HelperRunner
from diskbridge.models.mount import AccessMode, is_valid_drive_letter, normalize_drive_letter
from diskbridge.models.outcome import AccessInfo, AccessOutcome, RemoveAccessOutcome
from diskbridge.utils.keyvalue import get_error_message, is_ok, parse_key_values
from diskbridge.utils.shell import CommandResult

logger = logging.getLogger(__name__)

MAP_SCRIPT = "Map-WSLShareToDrive.ps1"
UNMAP_SCRIPT = "Unmap-DriveLetter.ps1"
CREATE_LOCATION_SCRIPT = "network/Create-NetworkLocation.ps1"
REMOVE_LOCATION_SCRIPT = "network/Remove-NetworkLocation.ps1"

FALLBACK_LOCATION_NAME = "diskbridge Mount"

# Characters Windows does not allow in file names, plus control characters
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def default_location_name(disk_index: int, partition: int) -> str:
    """Network location name used when the caller gives none."""
    return f"diskbridge Disk {disk_index} Partition {partition}"


def sanitize_location_name(name: str | None) -> str:
    """Make ``name`` usable as a shortcut folder name.

    Invalid file name characters become ``_``; an empty result falls back
    to :data:`FALLBACK_LOCATION_NAME`.
    """
    cleaned = _INVALID_NAME_CHARS.sub("_", (name or "").strip()).strip(" .")
    return cleaned or FALLBACK_LOCATION_NAME


def _failure_text(result: CommandResult) -> str | None:
    values = parse_key_values(result.stdout)
    message = get_error_message(values)
    if message:
        return message
    stderr = result.stderr.strip()
    return stderr or None


class HostAccessGateway(AccessGateway):
    """Creates drive mappings and network locations through helper scripts.

    Example:
        >>> gateway = HostAccessGateway(HelperRunner(config.helpers))
        >>> outcome = await gateway.create_access(
        ...     AccessMode.DRIVE_LETTER_LEGACY, r"\\\\wsl.localhost\\Ubuntu\\mnt", "Z"
        ... )
    """

    def __init__(self, runner: HelperRunner) -> None:
        self._runner = runner

    async def create_access(
        self,
        mode: AccessMode,
        host_path: str,
        drive_letter: str | None = None,
        network_location_name: str | None = None,
        disk_index: int = 0,
        partition: int = 1,
    ) -> AccessOutcome:
        if mode is AccessMode.NONE:
            return AccessOutcome.ok(AccessInfo(access_mode=mode, host_path=host_path))

        if not host_path or not host_path.strip():
            return AccessOutcome.fail("Target host path cannot be empty", "validation")

        if mode is AccessMode.DRIVE_LETTER_LEGACY:
            return await self._map_drive(host_path, drive_letter)
        return await self._create_location(
            host_path,
            network_location_name or default_location_name(disk_index, partition),
        )

    async def remove_access(self, access_info: AccessInfo) -> RemoveAccessOutcome:
        if access_info.access_mode is AccessMode.NONE:
            return RemoveAccessOutcome.ok()

        if access_info.access_mode is AccessMode.DRIVE_LETTER_LEGACY:
            letter = normalize_drive_letter(access_info.drive_letter)
            if not is_valid_drive_letter(letter):
                return RemoveAccessOutcome.fail(
                    "Drive letter is required to remove a drive mapping",
                    failed_step_hint="validation",
                )
            result = await self._runner.run_script(UNMAP_SCRIPT, ["-DriveLetter", letter])
        else:
            if not access_info.network_location_name:
                return RemoveAccessOutcome.ok()
            result = await self._runner.run_script(
                REMOVE_LOCATION_SCRIPT,
                ["-Name", sanitize_location_name(access_info.network_location_name)],
            )

        if is_ok(parse_key_values(result.stdout)):
            return RemoveAccessOutcome.ok(exit_code=result.returncode)
        return RemoveAccessOutcome.fail(_failure_text(result), exit_code=result.returncode)

    async def _map_drive(self, host_path: str, drive_letter: str | None) -> AccessOutcome:
        letter = normalize_drive_letter(drive_letter)
        if not is_valid_drive_letter(letter):
            return AccessOutcome.fail(
                f"Invalid drive letter: {drive_letter!r}", failed_step_hint="validation"
            )

        result = await self._runner.run_script(
            MAP_SCRIPT, ["-DriveLetter", letter, "-TargetUNC", host_path]
        )
        if not is_ok(parse_key_values(result.stdout)):
            message = (
                _failure_text(result) or f"Drive mapping failed (exit code {result.returncode})"
            )
            return AccessOutcome.fail(message)

        logger.info("Mapped %s: to %s", letter, host_path)
        return AccessOutcome.ok(
            AccessInfo(
                access_mode=AccessMode.DRIVE_LETTER_LEGACY,
                host_path=host_path,
                drive_letter=letter,
            )
        )

    async def _create_location(self, host_path: str, name: str) -> AccessOutcome:
        name = sanitize_location_name(name)
        result = await self._runner.run_script(
            CREATE_LOCATION_SCRIPT, ["-Name", name, "-TargetUNC", host_path]
        )
        values = parse_key_values(result.stdout)
        if not is_ok(values):
            message = (
                _failure_text(result)
                or f"Network location creation failed (exit code {result.returncode})"
            )
            return AccessOutcome.fail(message)

        created = values.get("NetworkLocationName") or name
        logger.info("Created network location %r for %s", created, host_path)
        return AccessOutcome.ok(
            AccessInfo(
                access_mode=AccessMode.NETWORK_LOCATION,
                host_path=host_path,
                network_location_name=created,
            )
        )


def _logical_drive_mask() -> int:
    from ctypes import windll  # type: ignore[attr-defined]

    return int(windll.kernel32.GetLogicalDrives())


def letters_from_mask(mask: int) -> set[str]:
    """Decode a GetLogicalDrives bitmask (bit 0 = ``A``)."""
    return {chr(ord("A") + bit) for bit in range(26) if mask & (1 << bit)}


class HostDriveLetterTable(DriveLetterTable):
    """Assigned drive letters of the Windows host.

    On other platforms the table is unavailable and reports None.
    """

    async def assigned_letters(self) -> set[str] | None:
        if sys.platform != "win32":
            return None
        try:
            mask = await asyncio.to_thread(_logical_drive_mask)
        except OSError as e:
            logger.warning("Cannot read logical drives: %s", e)
            return None
        return letters_from_mask(mask)
