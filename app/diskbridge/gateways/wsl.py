"""WSL-backed attach gateway and guest shell.

Disks are attached with ``wsl --mount`` through the elevated
``Mount-LinuxDiskCore.ps1`` / ``Unmount-LinuxDisk.ps1`` helpers; WSL mounts
partition ``p`` of disk ``n`` at ``/mnt/wsl/PHYSICALDRIVE{n}p{p}``.
"""

import logging

from diskbridge.gateways.base import AttachGateway, GuestShell
from diskbridge.gateways.helper import HelperRunner
from diskbridge.models.outcome import AttachOutcome, DetachOutcome
from diskbridge.utils.keyvalue import parse_key_values
from diskbridge.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

WSL_EXE = "wsl.exe"
MOUNT_SCRIPT = "Mount-LinuxDiskCore.ps1"
UNMOUNT_SCRIPT = "Unmount-LinuxDisk.ps1"

# Filesystem types accepted by the mount helper
SUPPORTED_FS_TYPES: frozenset[str] = frozenset({"ext4", "xfs", "btrfs", "vfat", "auto"})


def physical_drive_path(disk_index: int) -> str:
    """Windows device path of a physical disk."""
    return rf"\\.\PHYSICALDRIVE{disk_index}"


def guest_mount_path(disk_index: int, partition: int) -> str:
    """Mount point WSL uses for a partition."""
    return f"/mnt/wsl/PHYSICALDRIVE{disk_index}p{partition}"


def host_path_for(distro_name: str, guest_path: str) -> str:
    """UNC path through which the host reaches ``guest_path``."""
    relative = guest_path.strip("/").replace("/", "\\")
    return "\\\\wsl.localhost\\" + distro_name + "\\" + relative


class WslAttachGateway(AttachGateway):
    """Attaches disks to WSL using the elevated helper scripts.

    Example:
        >>> gateway = WslAttachGateway(HelperRunner(config.helpers))
        >>> outcome = await gateway.attach(2, 1, "ext4", "Ubuntu")
    """

    def __init__(self, runner: HelperRunner) -> None:
        """Initialize the gateway.

        Args:
            runner: Helper runner used for all elevated calls.
        """
        self._runner = runner

    async def attach(
        self,
        disk_index: int,
        partition: int,
        fs_type: str,
        distro_name: str | None = None,
    ) -> AttachOutcome:
        if disk_index < 0:
            return AttachOutcome(success=False, error_message="Disk index must be non-negative")
        if partition < 1:
            return AttachOutcome(
                success=False, error_message="Partition number must be greater than 0"
            )

        # fs_type reaches a command line; only known names are passed on
        normalized_fs = (fs_type or "").strip().lower()
        if normalized_fs not in SUPPORTED_FS_TYPES:
            supported = ", ".join(sorted(SUPPORTED_FS_TYPES))
            return AttachOutcome(
                success=False,
                error_message=(
                    f"Unsupported filesystem type '{fs_type}'. Supported types: {supported}"
                ),
            )

        args = [
            "-DiskIndex",
            str(disk_index),
            "-Partition",
            str(partition),
            "-FsType",
            normalized_fs,
        ]
        if distro_name:
            args.extend(["-DistroName", distro_name])

        output = await self._runner.run_elevated_script(MOUNT_SCRIPT, args)
        outcome = AttachOutcome.from_key_values(parse_key_values(output))
        if outcome.failed and not outcome.error_message:
            return AttachOutcome(
                success=False,
                error_message="Unknown error during mount",
                error_code=outcome.error_code,
                error_hint=outcome.error_hint,
                diagnostic_excerpt=outcome.diagnostic_excerpt,
            )
        return outcome

    async def attach_bare(self, disk_index: int) -> AttachOutcome:
        if disk_index < 0:
            return AttachOutcome(success=False, error_message="Disk index must be non-negative")

        result = await self._runner.run_elevated(
            WSL_EXE, ["--mount", physical_drive_path(disk_index), "--bare"]
        )
        if result.success:
            return AttachOutcome(success=True)

        message = (
            result.stderr.strip() or result.stdout.strip() or f"Exit code: {result.returncode}"
        )
        return AttachOutcome(
            success=False,
            already_attached="already" in message.lower(),
            error_message=message,
        )

    async def detach(self, disk_index: int) -> DetachOutcome:
        if disk_index < 0:
            return DetachOutcome(
                success=False,
                disk_index=disk_index,
                error_message="Disk index must be non-negative",
            )

        output = await self._runner.run_elevated_script(
            UNMOUNT_SCRIPT, ["-DiskIndex", str(disk_index)]
        )
        outcome = DetachOutcome.from_key_values(parse_key_values(output), disk_index)
        if not outcome.success and not outcome.error_message:
            return DetachOutcome(
                success=False, disk_index=disk_index, error_message="Unknown error during unmount"
            )
        return outcome


class WslGuestShell(GuestShell):
    """Runs commands inside a WSL distribution.

    Attributes:
        distro_name: Distribution to use; None means the default one.
    """

    def __init__(self, distro_name: str | None = None, timeout: float = 30.0) -> None:
        self.distro_name = distro_name
        self._timeout = timeout

    async def run(self, args: list[str]) -> CommandResult:
        command = [WSL_EXE]
        if self.distro_name:
            command.extend(["-d", self.distro_name])
        command.extend(["-e", *args])
        return await run_command(command, timeout=self._timeout)

    async def list_distros(self) -> list[str]:
        """Installed distributions, default first."""
        try:
            result = await run_command([WSL_EXE, "-l", "-q"], timeout=self._timeout)
        except OSError as e:
            logger.debug("Cannot list WSL distributions: %s", e)
            return []
        if not result.success:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    async def host_path(self, guest_path: str) -> str | None:
        distro = self.distro_name
        if not distro:
            distros = await self.list_distros()
            if not distros:
                return None
            distro = distros[0]
        return host_path_for(distro, guest_path)
