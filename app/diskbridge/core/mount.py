"""Mount workflow: attach a partition and expose it on the host.

The MountOrchestrator runs validation, attach, host path verification and
access creation in order, rolls the attach back when access creation fails,
records the mount and appends one history entry per call.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from diskbridge.core.config import MountOperationsConfig
from diskbridge.core.history import HistoryLog
from diskbridge.core.state import MountStateStore, StoreClosedError
from diskbridge.gateways.base import AccessGateway, AttachGateway
from diskbridge.models.history import entry_from_mount_result
from diskbridge.models.mount import (
    AccessMode,
    ActiveMount,
    is_valid_drive_letter,
    normalize_drive_letter,
)
from diskbridge.models.result import FailedStep, MountAndMapResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def _default_path_exists(path: str) -> bool:
    try:
        return Path(path).exists()
    except OSError:
        return False


class MountOrchestrator:
    """Coordinates attaching a partition and creating its access surface.

    Example:
        >>> orchestrator = MountOrchestrator(attach, access, store, history)
        >>> result = await orchestrator.mount_and_map(2, 1, AccessMode.DRIVE_LETTER_LEGACY, "Z")
        >>> result.success
        True
    """

    def __init__(
        self,
        attach_gateway: AttachGateway,
        access_gateway: AccessGateway,
        state_store: MountStateStore | None = None,
        history: HistoryLog | None = None,
        config: MountOperationsConfig | None = None,
        path_exists: Callable[[str], bool] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            attach_gateway: Attaches and detaches disks.
            access_gateway: Creates host access surfaces.
            state_store: Where successful mounts are recorded; None skips it.
            history: Where every attempt is logged; None skips it.
            config: Host path verification timing.
            path_exists: Host path existence check (blocking; run in a thread).
        """
        self._attach = attach_gateway
        self._access = access_gateway
        self._state = state_store
        self._history = history
        self._config = config or MountOperationsConfig()
        self._path_exists = path_exists or _default_path_exists

    async def mount_and_map(
        self,
        disk_index: int,
        partition: int,
        access_mode: AccessMode = AccessMode.NETWORK_LOCATION,
        drive_letter: str | None = None,
        fs_type: str = "ext4",
        distro_name: str | None = None,
        network_location_name: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> MountAndMapResult:
        """Attach a partition to the guest and expose it on the host.

        Args:
            disk_index: Physical disk index (>= 0).
            partition: Partition number (>= 1).
            access_mode: Kind of host access surface.
            drive_letter: Letter to map; required for drive-letter mode only.
            fs_type: Filesystem type passed to the attach.
            distro_name: Guest distribution; None uses the default one.
            network_location_name: Alias for network-location mode.
            progress: Receives human-readable progress messages.

        Returns:
            MountAndMapResult; failures carry the failed step.
        """
        report = progress or (lambda _message: None)
        letter = normalize_drive_letter(drive_letter)

        error = self._validate(disk_index, partition, access_mode, letter, fs_type)
        if error:
            result = MountAndMapResult.failure(
                disk_index, partition, access_mode, error, FailedStep.VALIDATION
            )
            return await self._finish(result)

        report(f"Starting mount operation for disk {disk_index} partition {partition}...")
        report("Mounting disk in WSL (this may take a moment)...")
        attach = await self._attach.attach(disk_index, partition, fs_type.strip(), distro_name)
        if not attach.success:
            message = attach.error_message or "Unknown error during mount"
            report(f"Mount failed: {message}")
            result = MountAndMapResult.failure(
                disk_index,
                partition,
                access_mode,
                message,
                FailedStep.MOUNT,
                distro_name=attach.distro_name,
                error_code=attach.error_code,
                error_hint=attach.error_hint,
                diagnostic_excerpt=attach.diagnostic_excerpt,
            )
            return await self._finish(result)

        report(f"Disk mounted successfully at {attach.guest_path}")
        host_path = attach.host_path or ""
        warnings: list[str] = []

        if host_path and attach.host_path_verified is not True:
            report("Verifying WSL share accessibility...")
            if not await self._wait_for_host_path(host_path):
                report(f"Warning: host path {host_path} not immediately accessible")
                warnings.append(f"Host path {host_path} was not accessible after mounting")

        report(_access_progress(access_mode, letter))
        access = await self._access.create_access(
            access_mode,
            host_path,
            drive_letter=letter,
            network_location_name=network_location_name,
            disk_index=disk_index,
            partition=partition,
        )
        if not access.success or access.access_info is None:
            message = access.error_message or "Unknown error while creating access"
            report(f"Access creation failed: {message}")
            await self._rollback(disk_index)
            result = MountAndMapResult.failure(
                disk_index,
                partition,
                access_mode,
                message,
                FailedStep.MAP,
                distro_name=attach.distro_name,
                guest_path=attach.guest_path,
                host_path=attach.host_path,
                warnings=tuple(warnings),
            )
            return await self._finish(result)

        info = access.access_info
        report(_success_progress(access_mode, info.drive_letter, info.network_location_name))

        mount = ActiveMount(
            disk_index=disk_index,
            partition_number=partition,
            access_mode=access_mode,
            drive_letter=info.drive_letter if access_mode.requires_drive_letter else None,
            network_location_name=(
                info.network_location_name
                if access_mode is AccessMode.NETWORK_LOCATION
                else None
            ),
            distro_name=attach.distro_name or "",
            guest_path=attach.guest_path or "",
            host_path=host_path,
        )
        warning = await self._register(mount)
        if warning:
            warnings.append(warning)

        result = MountAndMapResult(
            success=True,
            disk_index=disk_index,
            partition=partition,
            access_mode=access_mode,
            drive_letter=mount.drive_letter,
            network_location_name=mount.network_location_name,
            distro_name=attach.distro_name,
            guest_path=attach.guest_path,
            host_path=attach.host_path,
            warnings=tuple(warnings),
        )
        return await self._finish(result)

    def _validate(
        self,
        disk_index: int,
        partition: int,
        access_mode: AccessMode,
        drive_letter: str | None,
        fs_type: str | None,
    ) -> str | None:
        if disk_index < 0:
            return "Disk index must be non-negative"
        if partition < 1:
            return "Partition number must be greater than 0"
        if access_mode.requires_drive_letter and not is_valid_drive_letter(drive_letter):
            return "Drive letter must be a valid letter (A-Z)"
        if not fs_type or not fs_type.strip():
            return "Filesystem type cannot be empty"
        return None

    async def _wait_for_host_path(self, host_path: str) -> bool:
        delay = self._config.host_path_delay_ms / 1000
        for attempt in range(self._config.host_path_retries):
            if await asyncio.to_thread(self._path_exists, host_path):
                return True
            if attempt < self._config.host_path_retries - 1:
                await asyncio.sleep(delay)
        return False

    async def _rollback(self, disk_index: int) -> None:
        logger.info("Rolling back attach of disk %d", disk_index)
        try:
            outcome = await self._attach.detach(disk_index)
        except Exception:
            logger.exception("Rollback detach of disk %d raised", disk_index)
            return
        if not outcome.success and not outcome.is_already_detached:
            logger.warning(
                "Rollback detach of disk %d failed: %s", disk_index, outcome.error_message
            )

    async def _register(self, mount: ActiveMount) -> str | None:
        if self._state is None:
            return None
        try:
            saved = await self._state.register(mount)
        except StoreClosedError as e:
            logger.error(
                "Failed to record mount of disk %d partition %d: %s",
                mount.disk_index,
                mount.partition_number,
                e,
            )
            return f"Mount state was not saved: {e}"
        if not saved:
            return "Mount state was not saved"
        return None

    async def _finish(self, result: MountAndMapResult) -> MountAndMapResult:
        if self._history is None:
            return result
        if await self._history.append(entry_from_mount_result(result)):
            return result
        return replace(result, warnings=(*result.warnings, "History entry was not saved"))


def _access_progress(mode: AccessMode, drive_letter: str | None) -> str:
    if mode is AccessMode.DRIVE_LETTER_LEGACY:
        return f"Mapping drive letter {drive_letter}:..."
    if mode is AccessMode.NETWORK_LOCATION:
        return "Creating network location..."
    return "No host access surface requested"


def _success_progress(mode: AccessMode, drive_letter: str | None, name: str | None) -> str:
    if mode is AccessMode.DRIVE_LETTER_LEGACY:
        return f"Successfully mapped as {drive_letter}:"
    if mode is AccessMode.NETWORK_LOCATION:
        return f"Created network location {name}"
    return "Mounted without a host access surface"
