"""Unmount workflow: remove the host access surface and detach the disk.

Detach is attempted even when removing the access surface failed, so a
stuck mapping never keeps the disk attached to the guest. Surfaces recorded
for other partitions of the same disk are removed as well, since all of the
disk's records are dropped once it is detached.
"""

import logging
from dataclasses import replace

from diskbridge.core.history import HistoryLog
from diskbridge.core.mount import ProgressCallback
from diskbridge.core.state import MountStateStore, StoreClosedError
from diskbridge.gateways.base import AccessGateway, AttachGateway
from diskbridge.models.history import entry_from_unmount_result
from diskbridge.models.mount import AccessMode, is_valid_drive_letter, normalize_drive_letter
from diskbridge.models.outcome import AccessInfo
from diskbridge.models.result import FailedStep, UnmountAndUnmapResult

logger = logging.getLogger(__name__)


class UnmountOrchestrator:
    """Coordinates removing an access surface and detaching a disk.

    Example:
        >>> orchestrator = UnmountOrchestrator(attach, access, store, history)
        >>> result = await orchestrator.unmount_and_unmap(2, AccessMode.DRIVE_LETTER_LEGACY, "Z")
    """

    def __init__(
        self,
        attach_gateway: AttachGateway,
        access_gateway: AccessGateway,
        state_store: MountStateStore | None = None,
        history: HistoryLog | None = None,
    ) -> None:
        self._attach = attach_gateway
        self._access = access_gateway
        self._state = state_store
        self._history = history

    async def unmount_and_unmap(
        self,
        disk_index: int,
        access_mode: AccessMode = AccessMode.NETWORK_LOCATION,
        drive_letter: str | None = None,
        network_location_name: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> UnmountAndUnmapResult:
        """Remove the access surfaces of a disk and detach it from the guest.

        Args:
            disk_index: Physical disk index (>= 0).
            access_mode: Kind of access surface to remove.
            drive_letter: Mapped letter; required for drive-letter mode only.
            network_location_name: Alias to remove in network-location mode.
            progress: Receives human-readable progress messages.

        Returns:
            UnmountAndUnmapResult; a failed detach is reported as ``unmount``
            even when unmapping failed too.
        """
        report = progress or (lambda _message: None)
        letter = normalize_drive_letter(drive_letter)

        error = self._validate(disk_index, access_mode, letter)
        if error:
            result = UnmountAndUnmapResult.failure(
                disk_index, access_mode, error, FailedStep.VALIDATION
            )
            return await self._finish(result)

        warnings: list[str] = []
        unmap_errors: list[str] = []

        requested: AccessInfo | None = None
        if access_mode is not AccessMode.NONE:
            requested = AccessInfo(
                access_mode=access_mode,
                drive_letter=letter if access_mode.requires_drive_letter else None,
                network_location_name=network_location_name,
            )
            report(f"Removing {_surface_label(access_mode, letter, network_location_name)}...")
            error = await self._remove_surface(disk_index, requested, warnings)
            if error:
                unmap_errors.append(error)
                report(f"Access removal failed: {error}")
            else:
                report("Access surface removed successfully")

        # Every record of the disk is dropped below, so their surfaces go too
        for info in await self._other_recorded_surfaces(disk_index, requested):
            label = _surface_label(
                info.access_mode, info.drive_letter, info.network_location_name
            )
            report(f"Removing recorded {label}...")
            error = await self._remove_surface(disk_index, info, warnings)
            if error:
                unmap_errors.append(error)
                report(f"Access removal failed: {error}")
        unmap_error = "; ".join(unmap_errors) or None

        report("Unmounting disk from WSL...")
        detach = await self._attach.detach(disk_index)
        if not detach.success and not detach.is_already_detached:
            message = detach.error_message or "Unknown error during unmount"
            report(f"Unmount failed: {message}")
            result = UnmountAndUnmapResult.failure(
                disk_index,
                access_mode,
                message,
                FailedStep.UNMOUNT,
                drive_letter=letter,
                network_location_name=network_location_name,
                warnings=tuple(warnings),
            )
            return await self._finish(result)

        if detach.is_already_detached:
            logger.info("Disk %d was already detached: %s", disk_index, detach.error_message)
            report("Disk was already detached from WSL")
        else:
            report("Disk unmounted successfully from WSL")

        if unmap_error:
            # Record kept so a retried unmount can remove the leftover surface
            result = UnmountAndUnmapResult.failure(
                disk_index,
                access_mode,
                unmap_error,
                FailedStep.UNMAP,
                drive_letter=letter,
                network_location_name=network_location_name,
                warnings=tuple(warnings),
            )
            return await self._finish(result)

        warning = await self._unregister(disk_index)
        if warning:
            warnings.append(warning)
        result = UnmountAndUnmapResult(
            success=True,
            disk_index=disk_index,
            access_mode=access_mode,
            drive_letter=letter,
            network_location_name=network_location_name,
            warnings=tuple(warnings),
        )
        return await self._finish(result)

    def _validate(
        self, disk_index: int, access_mode: AccessMode, drive_letter: str | None
    ) -> str | None:
        if disk_index < 0:
            return "Disk index must be non-negative"
        if access_mode.requires_drive_letter and not is_valid_drive_letter(drive_letter):
            return "Drive letter must be a valid letter (A-Z)"
        return None

    async def _remove_surface(
        self, disk_index: int, info: AccessInfo, warnings: list[str]
    ) -> str | None:
        removal = await self._access.remove_access(info)
        if removal.is_silent_success:
            logger.warning(
                "Access removal for disk %d reported failure without details "
                "and exit code 0; treating it as removed",
                disk_index,
            )
            warnings.append("Access removal reported no details; assumed removed")
            return None
        if not removal.success:
            return removal.error_message or "Unknown error during unmapping"
        return None

    async def _other_recorded_surfaces(
        self, disk_index: int, requested: AccessInfo | None
    ) -> list[AccessInfo]:
        if self._state is None:
            return []
        try:
            recorded = await self._state.get_for_disk(disk_index)
        except StoreClosedError as e:
            logger.error("Failed to read mount records of disk %d: %s", disk_index, e)
            return []

        surfaces: list[AccessInfo] = []
        for mount in recorded:
            if mount.access_mode is AccessMode.NONE:
                continue
            info = AccessInfo(
                access_mode=mount.access_mode,
                drive_letter=mount.drive_letter,
                network_location_name=mount.network_location_name,
            )
            if info != requested and info not in surfaces:
                surfaces.append(info)
        return surfaces

    async def _unregister(self, disk_index: int) -> str | None:
        if self._state is None:
            return None
        try:
            saved = await self._state.unregister_disk(disk_index)
        except StoreClosedError as e:
            logger.error("Failed to remove mount records of disk %d: %s", disk_index, e)
            return f"Mount state was not updated: {e}"
        if not saved:
            return "Mount state was not updated"
        return None

    async def _finish(self, result: UnmountAndUnmapResult) -> UnmountAndUnmapResult:
        if self._history is None:
            return result
        if await self._history.append(entry_from_unmount_result(result)):
            return result
        return replace(result, warnings=(*result.warnings, "History entry was not saved"))


def _surface_label(mode: AccessMode, drive_letter: str | None, name: str | None) -> str:
    if mode is AccessMode.DRIVE_LETTER_LEGACY:
        return f"drive letter {drive_letter}:"
    return f"network location {name}" if name else "network location"
