"""Abstract gateway interfaces.

The orchestrators, the state store and the filesystem detector only talk to
the host and guest through these narrow capabilities. Concrete helper-backed
implementations live in :mod:`diskbridge.gateways.wsl` and
:mod:`diskbridge.gateways.access`; tests substitute fakes.
"""

from abc import ABC, abstractmethod

from diskbridge.models.mount import AccessMode
from diskbridge.models.outcome import (
    AccessInfo,
    AccessOutcome,
    AttachOutcome,
    DetachOutcome,
    RemoveAccessOutcome,
)
from diskbridge.utils.shell import CommandResult


class AttachGateway(ABC):
    """Attaches and detaches physical disks to the guest.

    Implementations report every failure through the returned outcome and
    never raise for gateway-level problems.

    Example:
        >>> outcome = await gateway.attach(2, 1, "ext4")
        >>> if outcome.success:
        ...     print(outcome.host_path)
    """

    @abstractmethod
    async def attach(
        self,
        disk_index: int,
        partition: int,
        fs_type: str,
        distro_name: str | None = None,
    ) -> AttachOutcome:
        """Attach a disk and mount one partition inside the guest.

        Args:
            disk_index: Physical disk index.
            partition: Partition number to mount.
            fs_type: Filesystem type passed to the guest mount.
            distro_name: Guest distribution; None uses the default one.

        Returns:
            AttachOutcome describing the mount.
        """

    @abstractmethod
    async def attach_bare(self, disk_index: int) -> AttachOutcome:
        """Attach a disk without mounting any filesystem, for inspection.

        Args:
            disk_index: Physical disk index.

        Returns:
            AttachOutcome; only ``success`` and error fields are meaningful.
        """

    @abstractmethod
    async def detach(self, disk_index: int) -> DetachOutcome:
        """Detach a whole disk from the guest.

        Args:
            disk_index: Physical disk index.

        Returns:
            DetachOutcome; see :attr:`DetachOutcome.is_already_detached`.
        """


class AccessGateway(ABC):
    """Creates and removes host-visible access surfaces over a host path."""

    @abstractmethod
    async def create_access(
        self,
        mode: AccessMode,
        host_path: str,
        drive_letter: str | None = None,
        network_location_name: str | None = None,
        disk_index: int = 0,
        partition: int = 1,
    ) -> AccessOutcome:
        """Expose ``host_path`` on the host.

        Args:
            mode: Kind of surface to create.
            host_path: Host path of the guest mount.
            drive_letter: Letter to map (drive-letter mode).
            network_location_name: Alias to create (network-location mode);
                a name is derived from disk/partition when None.
            disk_index: Disk index, used for derived names.
            partition: Partition number, used for derived names.

        Returns:
            AccessOutcome with the created AccessInfo on success.
        """

    @abstractmethod
    async def remove_access(self, access_info: AccessInfo) -> RemoveAccessOutcome:
        """Remove a previously created surface.

        Args:
            access_info: Surface to remove.

        Returns:
            RemoveAccessOutcome.
        """


class DriveLetterTable(ABC):
    """Reports which drive letters the host has assigned."""

    @abstractmethod
    async def assigned_letters(self) -> set[str] | None:
        """Return upper-case assigned letters, or None if the table is unavailable."""


class GuestShell(ABC):
    """Runs read-only commands inside the guest."""

    @abstractmethod
    async def run(self, args: list[str]) -> CommandResult:
        """Run ``args`` in the guest and return its result.

        Raises:
            OSError: If the guest cannot be reached at all.
        """

    @abstractmethod
    async def host_path(self, guest_path: str) -> str | None:
        """Translate a guest path to a host-addressable path.

        Returns:
            Host path, or None if no guest distribution is available.
        """


class FilesystemDetector(ABC):
    """Infers the filesystem type of a partition."""

    @abstractmethod
    async def detect(self, disk_index: int, partition_number: int) -> str | None:
        """Return the filesystem type name, or None when unknown. Never raises."""
